"""One-call entry point: validate, run the graph once, return the report."""

from __future__ import annotations

import logging
from typing import Any

from phased_rollout.domain.values import RolloutReport
from phased_rollout.graph.graph import build_rollout_graph
from phased_rollout.infrastructure.client import ManagementPlaneClient
from phased_rollout.infrastructure.config import RolloutConfig
from phased_rollout.infrastructure.event_bus import EventBus
from phased_rollout.infrastructure.logging import configure_run_log, detach_run_log
from phased_rollout.services.window import Clock, utc_now

logger = logging.getLogger(__name__)


def make_initial_state(
    config: RolloutConfig,
    metadata: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Return the input state for one invocation of the rollout graph."""
    return {
        "config": config,
        "status": None,
        "notes": [],
        "metadata": dict(metadata or {}),
    }


def run_rollout(
    config: RolloutConfig,
    client: ManagementPlaneClient,
    clock: Clock = utc_now,
    event_bus: EventBus | None = None,
    log_path: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> RolloutReport:
    """Evaluate one rollout and return its :class:`RolloutReport`.

    Parameters
    ----------
    config:
        Run parameters; validated before anything is called.
    client:
        Management-plane client.
    clock:
        Source of the current time (for the window and staleness checks).
    event_bus:
        Optional bus receiving the run's domain events.
    log_path:
        File receiving ``[timestamp] [LEVEL] message`` lines for this run.
        Defaults to ``config.log_path``; empty means no run log file.
    metadata:
        Free-form data copied into the report.

    Raises
    ------
    ValueError
        If *config* is invalid.
    """
    config.validate()
    path = log_path if log_path is not None else config.log_path
    handler = configure_run_log(path) if path else None
    try:
        app = build_rollout_graph(client, clock=clock, event_bus=event_bus)
        result = app.invoke(make_initial_state(config, metadata))
        return result["report"]
    finally:
        if handler is not None:
            detach_run_log(handler)
