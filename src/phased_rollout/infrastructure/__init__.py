"""Infrastructure layer for the phased rollout helper.

Re-exports the public API surface for convenience::

    from phased_rollout.infrastructure import (
        EventBus, RolloutConfig, InMemoryManagementPlane, configure_run_log,
    )
"""

from phased_rollout.infrastructure.client import (
    InMemoryManagementPlane,
    ManagementPlaneClient,
)
from phased_rollout.infrastructure.config import (
    RolloutConfig,
    load_config,
    load_config_from_json,
)
from phased_rollout.infrastructure.event_bus import EventBus
from phased_rollout.infrastructure.logging import (
    RunLogFormatter,
    configure_run_log,
    detach_run_log,
)
from phased_rollout.infrastructure.records import CollectionRecord, DeploymentRecord
from phased_rollout.infrastructure.serialization import (
    from_json,
    from_yaml,
    report_from_dict,
    report_to_dict,
    to_json,
    to_yaml,
)

__all__ = [
    # Management plane
    "ManagementPlaneClient",
    "InMemoryManagementPlane",
    "DeploymentRecord",
    "CollectionRecord",
    # Configuration
    "RolloutConfig",
    "load_config",
    "load_config_from_json",
    # Events
    "EventBus",
    # Logging
    "RunLogFormatter",
    "configure_run_log",
    "detach_run_log",
    # Serialization
    "report_to_dict",
    "report_from_dict",
    "to_json",
    "from_json",
    "to_yaml",
    "from_yaml",
]
