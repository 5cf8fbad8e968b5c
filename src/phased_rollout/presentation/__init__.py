"""Presentation layer: console rendering of rollout reports."""

from phased_rollout.presentation.console import ConsoleDashboard

__all__ = ["ConsoleDashboard"]
