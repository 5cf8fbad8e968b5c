"""LangGraph node functions for the rollout state machine.

Each node takes a ``RolloutState`` and returns a partial update dict.  The
nodes delegate decisions to the service layer; collaborators (management
plane client, clock, event bus) are injected through ``make_*_node``
closures so the state itself holds only plain data.

A node that ends the run sets ``status`` (and appends a note); the routers
in :mod:`phased_rollout.graph.edges` then jump to ``finalize``.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from phased_rollout.domain.enums import InclusionState, RolloutPhase, RolloutStatus
from phased_rollout.domain.events import (
    CollectionIncluded,
    DomainEvent,
    InclusionFailed,
    RolloutCompleted,
    RolloutHalted,
    RolloutStarted,
)
from phased_rollout.domain.exceptions import (
    AmbiguousMatchError,
    CollectionNotFoundError,
    DeploymentNotFoundError,
    TargetMismatchError,
)
from phased_rollout.domain.values import InclusionOutcome, RolloutReport
from phased_rollout.infrastructure.client import ManagementPlaneClient
from phased_rollout.infrastructure.event_bus import EventBus
from phased_rollout.services.eligibility import (
    CandidateFilter,
    candidates_from_records,
    select_next,
)
from phased_rollout.services.evaluation import (
    build_snapshot,
    compute_percentage,
    meets_threshold,
    resolve_target_count,
)
from phased_rollout.services.inclusion import include_collections
from phased_rollout.services.window import Clock, as_utc, check_window, utc_now

logger = logging.getLogger(__name__)


def _publish(bus: EventBus | None, event: DomainEvent) -> None:
    if bus is not None:
        bus.publish(event)


def _halt(
    status: RolloutStatus,
    phase: RolloutPhase,
    reason: str,
    level: int = logging.INFO,
) -> dict[str, Any]:
    logger.log(level, "%s: %s", status.value, reason)
    return {"status": status, "phase": phase, "notes": [reason]}


# ===================================================================== #
#  Start                                                                 #
# ===================================================================== #

def make_start_node(clock: Clock = utc_now, event_bus: EventBus | None = None):
    """Read the clock once (naive readings are UTC) and announce the run."""

    def start_node(state: dict[str, Any]) -> dict[str, Any]:
        config = state["config"]
        now = as_utc(clock())
        logger.info(
            "Evaluating rollout for %s (threshold %.2f%%, max %d per run%s)",
            config.deployment,
            config.success_threshold,
            config.max_per_run,
            ", dry run" if config.dry_run else "",
        )
        _publish(
            event_bus,
            RolloutStarted(
                source_id=config.deployment,
                deployment_id=config.deployment,
                threshold=config.success_threshold,
                dry_run=config.dry_run,
            ),
        )
        return {
            "now": now,
            "started_at": time.time(),
            "phase": RolloutPhase.START,
            "status": None,
        }

    return start_node


# ===================================================================== #
#  WindowCheck                                                           #
# ===================================================================== #

def check_window_node(state: dict[str, Any]) -> dict[str, Any]:
    """Stop with ``outside_window`` when the run falls outside the window.

    Reads ``config`` and ``now``.  Writes ``phase`` and, when halting,
    ``status`` and ``notes``.
    """
    allowed, note = check_window(state["config"].window, state["now"])
    if not allowed:
        return _halt(RolloutStatus.OUTSIDE_WINDOW, RolloutPhase.WINDOW_CHECK, note)
    return {"phase": RolloutPhase.WINDOW_CHECK}


# ===================================================================== #
#  TargetCheck                                                           #
# ===================================================================== #

def make_check_targets_node(client: ManagementPlaneClient):
    """Resolve the deployment and master collection, then the denominator.

    Lookup failures (error raised, nothing found, ambiguous match) halt with
    ``error``; a deployment aimed at an unexpected collection halts with
    ``mismatch``; a zero denominator halts with ``no_targets``.
    """

    def check_targets_node(state: dict[str, Any]) -> dict[str, Any]:
        config = state["config"]
        phase = RolloutPhase.TARGET_CHECK

        try:
            matches = client.find_deployments(config.deployment)
        except Exception as exc:
            return _halt(
                RolloutStatus.ERROR, phase,
                f"deployment lookup failed: {exc}", logging.ERROR,
            )
        if not matches:
            return _halt(
                RolloutStatus.ERROR, phase,
                str(DeploymentNotFoundError(config.deployment)), logging.ERROR,
            )
        if len(matches) > 1:
            ambiguous = AmbiguousMatchError(
                config.deployment, tuple(m.deployment_id for m in matches)
            )
            return _halt(RolloutStatus.ERROR, phase, str(ambiguous), logging.ERROR)

        record = matches[0]
        expected = config.target_collection_id
        if expected and record.collection_id != expected:
            mismatch = TargetMismatchError(expected=expected, actual=record.collection_id)
            return _halt(RolloutStatus.MISMATCH, phase, str(mismatch), logging.ERROR)
        target_id = record.collection_id

        try:
            target = client.get_collection(target_id)
        except Exception as exc:
            return _halt(
                RolloutStatus.ERROR, phase,
                f"target collection lookup failed: {exc}", logging.ERROR,
            )
        if target is None:
            return _halt(
                RolloutStatus.ERROR, phase,
                str(CollectionNotFoundError(target_id)), logging.ERROR,
            )

        snapshot = build_snapshot(record, config.metric)
        notes: list[str] = [
            f"deployment {snapshot.deployment_id} targets {target.name} ({target_id}); "
            f"metric {snapshot.metric.value}"
        ]

        max_age = config.max_summary_age_minutes
        age = snapshot.summary_age(state["now"])
        if max_age and age is not None and age.total_seconds() > max_age * 60:
            stale = (
                f"deployment summary is {int(age.total_seconds() // 60)} minutes old "
                f"(limit {max_age})"
            )
            logger.warning(stale)
            notes.append(stale)

        target_count, fallback_note = resolve_target_count(
            snapshot, target.member_count, config.use_member_count_fallback
        )
        if fallback_note:
            notes.append(fallback_note)

        update: dict[str, Any] = {
            "snapshot": snapshot,
            "target_collection_id": target_id,
            "target_count": target_count,
        }
        if target_count <= 0:
            halted = _halt(
                RolloutStatus.NO_TARGETS, phase,
                f"deployment {snapshot.deployment_id} has no targets",
            )
            halted["notes"] = notes + halted["notes"]
            return {**update, **halted}
        return {**update, "phase": phase, "notes": notes}

    return check_targets_node


# ===================================================================== #
#  PercentCheck                                                          #
# ===================================================================== #

def check_percentage_node(state: dict[str, Any]) -> dict[str, Any]:
    """Compute the success percentage and gate on the threshold."""
    config = state["config"]
    snapshot = state["snapshot"]
    percentage = compute_percentage(snapshot.success_count, state["target_count"])
    logger.info(
        "Success %d/%d = %.2f%% (threshold %.2f%%)",
        snapshot.success_count,
        state["target_count"],
        percentage,
        config.success_threshold,
    )
    if not meets_threshold(percentage, config.success_threshold):
        halted = _halt(
            RolloutStatus.BELOW_THRESHOLD,
            RolloutPhase.PERCENT_CHECK,
            f"success {percentage:.2f}% is below threshold {config.success_threshold:g}%",
        )
        return {**halted, "percentage": percentage}
    return {"phase": RolloutPhase.PERCENT_CHECK, "percentage": percentage}


# ===================================================================== #
#  CandidateFilter                                                       #
# ===================================================================== #

def make_filter_candidates_node(client: ManagementPlaneClient):
    """List candidates for every pattern and drop ineligible ones."""

    def filter_candidates_node(state: dict[str, Any]) -> dict[str, Any]:
        config = state["config"]
        target_id = state["target_collection_id"]
        phase = RolloutPhase.CANDIDATE_FILTER

        try:
            records = [
                record
                for pattern in config.candidate_patterns
                for record in client.list_collections(pattern)
            ]
            already_included = client.list_included_collection_ids(target_id)
        except Exception as exc:
            return _halt(
                RolloutStatus.ERROR, phase,
                f"candidate lookup failed: {exc}", logging.ERROR,
            )

        result = CandidateFilter(config.exclusions).apply(
            candidates_from_records(records), already_included, target_id
        )
        for collection in result.excluded:
            logger.debug(
                "skip %s: %s", collection.name, result.reasons[collection.collection_id]
            )
        note = (
            f"{len(result.eligible) + len(result.included) + len(result.excluded)} "
            f"candidate(s): {len(result.eligible)} eligible, "
            f"{len(result.included)} already included, {len(result.excluded)} excluded"
        )
        if result.is_empty:
            halted = _halt(
                RolloutStatus.NO_CANDIDATES, phase,
                f"no eligible collections match {', '.join(config.candidate_patterns)}",
            )
            return {**halted, "filter_result": result, "notes": [note] + halted["notes"]}
        return {"phase": phase, "filter_result": result, "notes": [note]}

    return filter_candidates_node


# ===================================================================== #
#  Selection                                                             #
# ===================================================================== #

def select_node(state: dict[str, Any]) -> dict[str, Any]:
    """Take the first ``max_per_run`` eligible collections by name.

    A dry run ends here with ``planned_only``.
    """
    config = state["config"]
    planned = select_next(state["filter_result"].eligible, config.max_per_run)
    names = ", ".join(c.name for c in planned)
    logger.info("Planned: %s", names)
    update: dict[str, Any] = {
        "phase": RolloutPhase.SELECTION,
        "planned": planned,
        "notes": [f"planned: {names}"],
    }
    if config.dry_run:
        update["status"] = RolloutStatus.PLANNED_ONLY
        update["notes"].append("dry run: include rules not added")
    return update


# ===================================================================== #
#  Mutation                                                              #
# ===================================================================== #

def make_include_node(client: ManagementPlaneClient, event_bus: EventBus | None = None):
    """Add an include rule for each planned collection, independently."""

    def include_node(state: dict[str, Any]) -> dict[str, Any]:
        target_id = state["target_collection_id"]
        source_id = state["config"].deployment

        def on_outcome(outcome: InclusionOutcome) -> None:
            if outcome.succeeded:
                event: DomainEvent = CollectionIncluded(
                    source_id=source_id,
                    target_collection_id=target_id,
                    collection=outcome.collection,
                )
            else:
                event = InclusionFailed(
                    source_id=source_id,
                    target_collection_id=target_id,
                    collection=outcome.collection,
                    error=outcome.error,
                )
            _publish(event_bus, event)

        outcomes = include_collections(client, target_id, state["planned"], on_outcome)
        notes = [
            f"failed to include {o.collection.name}: {o.error}"
            for o in outcomes
            if not o.succeeded
        ]
        return {
            "phase": RolloutPhase.MUTATION,
            "status": RolloutStatus.INCLUDED,
            "outcomes": outcomes,
            "notes": notes,
        }

    return include_node


# ===================================================================== #
#  Done                                                                  #
# ===================================================================== #

def make_finalize_node(event_bus: EventBus | None = None):
    """Assemble the immutable report and announce it."""

    def finalize_node(state: dict[str, Any]) -> dict[str, Any]:
        config = state["config"]
        status: RolloutStatus = state.get("status") or RolloutStatus.ERROR
        phase: RolloutPhase = state.get("phase", RolloutPhase.START)
        snapshot = state.get("snapshot")
        filter_result = state.get("filter_result")
        outcomes: list[InclusionOutcome] = state.get("outcomes") or []

        report = RolloutReport(
            status=status,
            phase=phase,
            deployment_id=snapshot.deployment_id if snapshot else config.deployment,
            target_collection_id=state.get("target_collection_id", "")
            or config.target_collection_id,
            metric=snapshot.metric if snapshot else None,
            success_count=snapshot.success_count if snapshot else None,
            target_count=state.get("target_count"),
            percentage=state.get("percentage"),
            threshold=config.success_threshold,
            eligible=filter_result.eligible if filter_result else (),
            planned=state.get("planned", ()),
            included=tuple(
                o.collection.with_state(InclusionState.INCLUDED)
                for o in outcomes
                if o.succeeded
            ),
            failed=tuple(o for o in outcomes if not o.succeeded),
            notes=tuple(state.get("notes", [])),
            dry_run=config.dry_run,
            started_at=state.get("started_at", 0.0),
            finished_at=time.time(),
            metadata=dict(state.get("metadata") or {}),
        )

        level = logging.ERROR if status in (RolloutStatus.ERROR, RolloutStatus.MISMATCH) else logging.INFO
        logger.log(
            level,
            "Rollout %s finished: %s (included %d, failed %d)",
            report.deployment_id,
            status.value,
            len(report.included),
            len(report.failed),
        )
        if not status.is_success:
            _publish(
                event_bus,
                RolloutHalted(
                    source_id=config.deployment,
                    status=status,
                    phase=phase,
                    reason=report.notes[-1] if report.notes else "",
                ),
            )
        _publish(event_bus, RolloutCompleted(source_id=config.deployment, report=report))
        return {"phase": RolloutPhase.DONE, "report": report}

    return finalize_node
