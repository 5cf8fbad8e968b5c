"""Shared fixtures for graph tests."""

from __future__ import annotations

import dataclasses

import pytest

from phased_rollout.domain.events import DomainEvent
from phased_rollout.infrastructure.config import RolloutConfig
from phased_rollout.infrastructure.event_bus import EventBus


@pytest.fixture
def recorded_events(event_bus: EventBus) -> list[DomainEvent]:
    """Every event published on ``event_bus``, in order."""
    events: list[DomainEvent] = []
    event_bus.subscribe_all(events.append)
    return events


@pytest.fixture
def configure(config: RolloutConfig):
    """Return a copy of the default config with some fields replaced."""

    def _configure(**overrides) -> RolloutConfig:
        return dataclasses.replace(config, **overrides)

    return _configure
