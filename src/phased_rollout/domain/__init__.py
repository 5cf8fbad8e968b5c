"""Domain layer for the phased rollout helper.

Re-exports all public domain types so that consumers can write::

    from phased_rollout.domain import RolloutReport, RolloutStatus, TimeWindow
"""

# -- Enumerations -------------------------------------------------------------
from .enums import InclusionState, RolloutPhase, RolloutStatus, SuccessMetric

# -- Value Objects ------------------------------------------------------------
from .values import (
    CandidateCollection,
    DeploymentSnapshot,
    ExclusionRules,
    InclusionOutcome,
    RolloutReport,
    TimeWindow,
    parse_weekday,
)

# -- Domain Events ------------------------------------------------------------
from .events import (
    CollectionIncluded,
    DomainEvent,
    InclusionFailed,
    RolloutCompleted,
    RolloutHalted,
    RolloutStarted,
)

# -- Exceptions ---------------------------------------------------------------
from .exceptions import (
    AmbiguousMatchError,
    CollectionNotFoundError,
    DeploymentNotFoundError,
    InclusionError,
    ManagementPlaneError,
    PhasedRolloutError,
    TargetMismatchError,
)

__all__ = [
    # enums
    "InclusionState",
    "RolloutPhase",
    "RolloutStatus",
    "SuccessMetric",
    # values
    "CandidateCollection",
    "DeploymentSnapshot",
    "ExclusionRules",
    "InclusionOutcome",
    "RolloutReport",
    "TimeWindow",
    "parse_weekday",
    # events
    "CollectionIncluded",
    "DomainEvent",
    "InclusionFailed",
    "RolloutCompleted",
    "RolloutHalted",
    "RolloutStarted",
    # exceptions
    "AmbiguousMatchError",
    "CollectionNotFoundError",
    "DeploymentNotFoundError",
    "InclusionError",
    "ManagementPlaneError",
    "PhasedRolloutError",
    "TargetMismatchError",
]
