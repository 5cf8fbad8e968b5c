"""Domain events for the phased rollout helper.

Every event is a frozen dataclass inheriting from ``DomainEvent``.  The
rollout graph emits events as it moves through its phases; listeners
(audit trail, console, tests) react without the graph knowing about them.

All events carry a ``timestamp`` and a ``source_id`` identifying the
deployment being evaluated.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from .enums import RolloutPhase, RolloutStatus
from .values import CandidateCollection, RolloutReport

# ---------------------------------------------------------------------------
# Base event
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DomainEvent:
    """Base class for all domain events."""

    timestamp: float = field(default_factory=time.time)
    source_id: str = ""


# ---------------------------------------------------------------------------
# Run lifecycle events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RolloutStarted(DomainEvent):
    """A rollout evaluation began."""

    deployment_id: str = ""
    threshold: float = 0.0
    dry_run: bool = False


@dataclass(frozen=True)
class RolloutHalted(DomainEvent):
    """A run stopped in a terminal state before any mutation."""

    status: RolloutStatus | None = None
    phase: RolloutPhase | None = None
    reason: str = ""


@dataclass(frozen=True)
class RolloutCompleted(DomainEvent):
    """A run finished and produced its report."""

    report: RolloutReport | None = None


# ---------------------------------------------------------------------------
# Mutation events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CollectionIncluded(DomainEvent):
    """A candidate collection was added to the target collection."""

    target_collection_id: str = ""
    collection: CandidateCollection | None = None


@dataclass(frozen=True)
class InclusionFailed(DomainEvent):
    """Adding a candidate collection to the target failed."""

    target_collection_id: str = ""
    collection: CandidateCollection | None = None
    error: str = ""
