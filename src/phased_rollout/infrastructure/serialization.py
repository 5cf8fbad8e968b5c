"""Serialization utilities for rollout reports.

Provides ``to_dict`` / ``from_dict`` conversion for reports and the values
they carry, plus JSON and YAML string helpers.

- Every ``*_to_dict`` output is JSON-serializable (enums become their
  values, tuples become lists, datetimes are never embedded).
- ``*_from_dict`` reconstructors accept permissive input and raise
  ``ValueError`` for unrecoverable data.
"""

from __future__ import annotations

import datetime
import json
from typing import Any

import yaml

from phased_rollout.domain.enums import (
    InclusionState,
    RolloutPhase,
    RolloutStatus,
    SuccessMetric,
)
from phased_rollout.domain.values import (
    CandidateCollection,
    InclusionOutcome,
    RolloutReport,
)


def _iso(ts: float) -> str:
    if not ts:
        return ""
    return datetime.datetime.fromtimestamp(ts, tz=datetime.timezone.utc).isoformat()


# =========================================================================== #
#  Collections                                                                 #
# =========================================================================== #

def collection_to_dict(collection: CandidateCollection) -> dict[str, Any]:
    return {
        "collection_id": collection.collection_id,
        "name": collection.name,
        "member_count": collection.member_count,
        "state": collection.state.value,
    }


def collection_from_dict(data: dict[str, Any]) -> CandidateCollection:
    try:
        return CandidateCollection(
            collection_id=str(data["collection_id"]),
            name=str(data.get("name", "")),
            member_count=data.get("member_count"),
            state=InclusionState(data.get("state", InclusionState.ELIGIBLE.value)),
        )
    except KeyError as exc:
        raise ValueError(f"collection is missing field {exc}") from exc


def outcome_to_dict(outcome: InclusionOutcome) -> dict[str, Any]:
    return {
        "collection": collection_to_dict(outcome.collection),
        "succeeded": outcome.succeeded,
        "error": outcome.error,
    }


def outcome_from_dict(data: dict[str, Any]) -> InclusionOutcome:
    return InclusionOutcome(
        collection=collection_from_dict(data["collection"]),
        succeeded=bool(data.get("succeeded", False)),
        error=str(data.get("error", "")),
    )


# =========================================================================== #
#  Reports                                                                     #
# =========================================================================== #

def report_to_dict(report: RolloutReport) -> dict[str, Any]:
    """Convert a :class:`RolloutReport` into a JSON-compatible dict."""
    return {
        "status": report.status.value,
        "phase": report.phase.value,
        "deployment_id": report.deployment_id,
        "target_collection_id": report.target_collection_id,
        "metric": report.metric.value if report.metric is not None else None,
        "success_count": report.success_count,
        "target_count": report.target_count,
        "percentage": report.percentage,
        "threshold": report.threshold,
        "eligible": [collection_to_dict(c) for c in report.eligible],
        "planned": [collection_to_dict(c) for c in report.planned],
        "included": [collection_to_dict(c) for c in report.included],
        "failed": [outcome_to_dict(o) for o in report.failed],
        "notes": list(report.notes),
        "dry_run": report.dry_run,
        "started_at": report.started_at,
        "finished_at": report.finished_at,
        "finished_at_iso": _iso(report.finished_at),
        "metadata": dict(report.metadata),
    }


def report_from_dict(data: dict[str, Any]) -> RolloutReport:
    """Rebuild a :class:`RolloutReport` from :func:`report_to_dict` output."""
    try:
        status = RolloutStatus(data["status"])
        deployment_id = str(data["deployment_id"])
    except KeyError as exc:
        raise ValueError(f"report is missing field {exc}") from exc
    metric = data.get("metric")
    return RolloutReport(
        status=status,
        deployment_id=deployment_id,
        phase=RolloutPhase(data.get("phase", RolloutPhase.DONE.value)),
        target_collection_id=str(data.get("target_collection_id", "")),
        metric=SuccessMetric(metric) if metric else None,
        success_count=data.get("success_count"),
        target_count=data.get("target_count"),
        percentage=data.get("percentage"),
        threshold=float(data.get("threshold", 0.0)),
        eligible=tuple(collection_from_dict(c) for c in data.get("eligible", [])),
        planned=tuple(collection_from_dict(c) for c in data.get("planned", [])),
        included=tuple(collection_from_dict(c) for c in data.get("included", [])),
        failed=tuple(outcome_from_dict(o) for o in data.get("failed", [])),
        notes=tuple(str(n) for n in data.get("notes", [])),
        dry_run=bool(data.get("dry_run", False)),
        started_at=float(data.get("started_at", 0.0)),
        finished_at=float(data.get("finished_at", 0.0)),
        metadata=dict(data.get("metadata", {})),
    )


# =========================================================================== #
#  String helpers                                                              #
# =========================================================================== #

def to_json(report: RolloutReport, indent: int | None = 2) -> str:
    return json.dumps(report_to_dict(report), indent=indent, default=str)


def from_json(text: str) -> RolloutReport:
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("report JSON must be an object")
    return report_from_dict(data)


def to_yaml(report: RolloutReport) -> str:
    return yaml.safe_dump(report_to_dict(report), sort_keys=False)


def from_yaml(text: str) -> RolloutReport:
    data = yaml.safe_load(text)
    if not isinstance(data, dict):
        raise ValueError("report YAML must be a mapping")
    return report_from_dict(data)
