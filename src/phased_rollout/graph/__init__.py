"""LangGraph wiring for the phased rollout state machine.

Provides:

- ``RolloutState`` -- TypedDict state schema.
- ``build_rollout_graph()`` -- compile the single-run StateGraph.
- ``RolloutBuilder`` -- fluent builder returning ``(app, initial_state)``.
- ``run_rollout()`` -- validate, invoke once, return the report.
- Node functions and edge routers for custom graph construction.
"""

from phased_rollout.graph.builder import RolloutBuilder
from phased_rollout.graph.edges import FINALIZE, is_halted, make_router
from phased_rollout.graph.graph import build_rollout_graph
from phased_rollout.graph.nodes import (
    check_percentage_node,
    check_window_node,
    make_check_targets_node,
    make_filter_candidates_node,
    make_finalize_node,
    make_include_node,
    make_start_node,
    select_node,
)
from phased_rollout.graph.runner import make_initial_state, run_rollout
from phased_rollout.graph.state import RolloutState

__all__ = [
    "RolloutBuilder",
    "RolloutState",
    "build_rollout_graph",
    "make_initial_state",
    "run_rollout",
    "FINALIZE",
    "is_halted",
    "make_router",
    "check_percentage_node",
    "check_window_node",
    "make_check_targets_node",
    "make_filter_candidates_node",
    "make_finalize_node",
    "make_include_node",
    "make_start_node",
    "select_node",
]
