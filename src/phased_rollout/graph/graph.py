"""Build the rollout StateGraph.

``build_rollout_graph()`` wires the single-run state machine::

    start -> check_window -> check_targets -> check_percentage
          -> filter_candidates -> select -> include -> finalize

Every check routes to ``finalize`` as soon as it records a terminal status,
so no mutation happens after a failed gate.
"""

from typing import Any

from langgraph.graph import END, START, StateGraph

from phased_rollout.graph.edges import FINALIZE, make_router
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
from phased_rollout.graph.state import RolloutState
from phased_rollout.infrastructure.client import ManagementPlaneClient
from phased_rollout.infrastructure.event_bus import EventBus
from phased_rollout.services.window import Clock, utc_now

_PIPELINE = (
    "check_window",
    "check_targets",
    "check_percentage",
    "filter_candidates",
    "select",
    "include",
)


def build_rollout_graph(
    client: ManagementPlaneClient,
    clock: Clock = utc_now,
    event_bus: EventBus | None = None,
    checkpointer: Any | None = None,
    interrupt_before: list[str] | None = None,
) -> Any:
    """Build and compile the rollout StateGraph.

    Parameters
    ----------
    client:
        Management-plane client used for lookups and include rules.
    clock:
        Returns the current time; read once per run by the ``start`` node.
    event_bus:
        Optional bus receiving the run's domain events.
    checkpointer:
        Optional LangGraph checkpointer for persistence.
    interrupt_before:
        Node names to interrupt before (e.g. ``["include"]`` for a manual
        approval step).

    Returns
    -------
    CompiledStateGraph
        A compiled graph ready for ``.invoke()`` or ``.stream()``.
    """
    graph = StateGraph(RolloutState)

    graph.add_node("start", make_start_node(clock, event_bus))
    graph.add_node("check_window", check_window_node)
    graph.add_node("check_targets", make_check_targets_node(client))
    graph.add_node("check_percentage", check_percentage_node)
    graph.add_node("filter_candidates", make_filter_candidates_node(client))
    graph.add_node("select", select_node)
    graph.add_node("include", make_include_node(client, event_bus))
    graph.add_node(FINALIZE, make_finalize_node(event_bus))

    graph.add_edge(START, "start")
    graph.add_edge("start", "check_window")

    # Each gate either continues to the next phase or short-circuits.
    for current, following in zip(_PIPELINE, _PIPELINE[1:]):
        graph.add_conditional_edges(
            current,
            make_router(following),
            {following: following, FINALIZE: FINALIZE},
        )
    graph.add_edge("include", FINALIZE)
    graph.add_edge(FINALIZE, END)

    compile_kwargs: dict[str, Any] = {}
    if checkpointer is not None:
        compile_kwargs["checkpointer"] = checkpointer
    if interrupt_before:
        compile_kwargs["interrupt_before"] = interrupt_before

    return graph.compile(**compile_kwargs)
