"""Phased Rollout.

LangGraph state machine that widens a phased software rollout one wave at a
time: once a deployment's success percentage clears a threshold, the next
eligible wave collection(s) are included in the deployment's target
collection.
"""

__version__ = "0.1.0"

from phased_rollout.domain import RolloutReport, RolloutStatus
from phased_rollout.graph import (
    RolloutBuilder,
    RolloutState,
    build_rollout_graph,
    run_rollout,
)
from phased_rollout.infrastructure import (
    InMemoryManagementPlane,
    ManagementPlaneClient,
    RolloutConfig,
)

__all__ = [
    "build_rollout_graph",
    "run_rollout",
    "RolloutBuilder",
    "RolloutState",
    "RolloutConfig",
    "RolloutReport",
    "RolloutStatus",
    "ManagementPlaneClient",
    "InMemoryManagementPlane",
]
