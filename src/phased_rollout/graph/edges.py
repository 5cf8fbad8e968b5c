"""Conditional edge functions for the rollout LangGraph.

Every check node either records a terminal ``status`` or leaves it unset.
The routers below send terminal states straight to ``finalize`` and
everything else on to the next phase.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

FINALIZE = "finalize"


def is_halted(state: dict[str, Any]) -> bool:
    """True once a node has recorded a terminal status."""
    return state.get("status") is not None


def make_router(next_node: str) -> Callable[[dict[str, Any]], str]:
    """Build a router returning *next_node*, or ``"finalize"`` when halted."""

    def route(state: dict[str, Any]) -> str:
        if is_halted(state):
            return FINALIZE
        return next_node

    route.__name__ = f"route_to_{next_node}"
    return route
