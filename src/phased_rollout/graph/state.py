"""LangGraph state definition for one rollout run.

Defines ``RolloutState``, a ``TypedDict`` that flows through the rollout
``StateGraph``.  The ``notes`` channel is append-only
(``Annotated[list, operator.add]``) so every node can add diagnostics
without overwriting earlier ones.

Note: We intentionally do NOT use ``from __future__ import annotations`` because
LangGraph needs to resolve type hints at runtime via ``get_type_hints()``.
"""

import datetime
import operator
from typing import Annotated, Any, TypedDict

from phased_rollout.domain.enums import RolloutPhase, RolloutStatus
from phased_rollout.domain.values import (
    CandidateCollection,
    DeploymentSnapshot,
    InclusionOutcome,
    RolloutReport,
)
from phased_rollout.infrastructure.config import RolloutConfig
from phased_rollout.services.eligibility import CandidateFilterResult


class RolloutState(TypedDict, total=False):
    """State flowing through the rollout LangGraph.

    Fields are grouped into:

    * **Run control** -- config, clock reading, phase and terminal status.
    * **Target check** -- resolved snapshot and denominator.
    * **Percent check** -- computed percentage.
    * **Candidates** -- filter result, planned selection, mutation outcomes.
    * **Accumulation channels** -- append-only notes.
    * **Output** -- the finished report.
    """

    # -- Run control ----------------------------------------------------------
    config: RolloutConfig
    now: datetime.datetime
    started_at: float
    phase: RolloutPhase
    status: RolloutStatus | None

    # -- Target check -----------------------------------------------------------
    snapshot: DeploymentSnapshot
    target_collection_id: str
    target_count: int

    # -- Percent check ----------------------------------------------------------
    percentage: float | None

    # -- Candidates -------------------------------------------------------------
    filter_result: CandidateFilterResult
    planned: tuple[CandidateCollection, ...]
    outcomes: list[InclusionOutcome]

    # -- Accumulation channels --------------------------------------------------
    notes: Annotated[list, operator.add]

    # -- Output -----------------------------------------------------------------
    report: RolloutReport

    # -- Extensibility ----------------------------------------------------------
    metadata: dict[str, Any]
