"""Rollout audit trail: a serializable history of run reports.

Runs are stateless; the trail is an optional, append-only record that a
scheduler can keep between invocations to see how a rollout progressed.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from phased_rollout.domain.enums import RolloutStatus
from phased_rollout.domain.events import DomainEvent, RolloutCompleted
from phased_rollout.domain.values import RolloutReport
from phased_rollout.infrastructure.serialization import report_from_dict, report_to_dict


class RolloutAuditTrail:
    """Append-only list of :class:`RolloutReport` instances.

    Can be subscribed to an ``EventBus`` via :meth:`on_event`, which records
    the report carried by every ``RolloutCompleted`` event.
    """

    def __init__(self) -> None:
        self._entries: list[RolloutReport] = []

    def record(self, report: RolloutReport) -> RolloutReport:
        self._entries.append(report)
        return report

    def on_event(self, event: DomainEvent) -> None:
        if isinstance(event, RolloutCompleted) and event.report is not None:
            self.record(event.report)

    def query(
        self,
        status: RolloutStatus | None = None,
        deployment_id: str | None = None,
        limit: int = 100,
    ) -> list[RolloutReport]:
        """Query entries by status and/or deployment id, oldest first."""
        results = self._entries
        if status is not None:
            results = [r for r in results if r.status is status]
        if deployment_id is not None:
            results = [r for r in results if r.deployment_id == deployment_id]
        return results[:limit]

    def included_collection_ids(self, deployment_id: str | None = None) -> list[str]:
        """Ids of every collection included across recorded runs, in order."""
        ids: list[str] = []
        for report in self.query(deployment_id=deployment_id, limit=len(self._entries)):
            ids.extend(c.collection_id for c in report.included)
        return ids

    @property
    def entries(self) -> list[RolloutReport]:
        return list(self._entries)

    @property
    def latest(self) -> RolloutReport | None:
        return self._entries[-1] if self._entries else None

    def __len__(self) -> int:
        return len(self._entries)

    def to_dict(self) -> list[dict[str, Any]]:
        return [report_to_dict(r) for r in self._entries]

    @classmethod
    def from_dict(cls, data: list[dict[str, Any]]) -> RolloutAuditTrail:
        trail = cls()
        for item in data:
            trail.record(report_from_dict(item))
        return trail

    def save(self, path: str | Path) -> None:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")

    @classmethod
    def load(cls, path: str | Path) -> RolloutAuditTrail:
        """Load a trail saved with :meth:`save`; a missing file gives an empty trail."""
        source = Path(path)
        if not source.exists():
            return cls()
        data = json.loads(source.read_text(encoding="utf-8"))
        if not isinstance(data, list):
            raise ValueError(f"Audit trail {source} must contain a list")
        return cls.from_dict(data)
