"""Value objects for the phased rollout helper.

All types here are frozen dataclasses -- immutable, compared by value.
They represent snapshots read from the management plane, the rules a run
applies to them, and the report a run produces.
"""

from __future__ import annotations

import datetime
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .enums import InclusionState, RolloutPhase, RolloutStatus, SuccessMetric

_WEEKDAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


def parse_weekday(value: int | str) -> int:
    """Parse a weekday into ``0..6`` (Monday = 0).

    Accepts integers, full English names and three-letter abbreviations,
    case-insensitively.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid weekday: {value!r}")
    if isinstance(value, int):
        if 0 <= value <= 6:
            return value
        raise ValueError(f"Weekday index must be in [0, 6], got {value}")
    text = str(value).strip().lower()
    if text.isdigit():
        return parse_weekday(int(text))
    for idx, name in enumerate(_WEEKDAY_NAMES):
        if text == name or (len(text) >= 3 and name.startswith(text)):
            return idx
    raise ValueError(f"Unknown weekday: {value!r}")


# ---------------------------------------------------------------------------
# DeploymentSnapshot
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DeploymentSnapshot:
    """Deployment counters read fresh from the management plane.

    ``metric`` records which counter supplied ``success_count`` -- never
    ``SuccessMetric.AUTO``, which is resolved before the snapshot is built.
    """

    deployment_id: str
    target_collection_id: str
    target_count: int
    success_count: int
    metric: SuccessMetric
    name: str = ""
    summarized_at: datetime.datetime | None = None

    def __post_init__(self) -> None:
        if self.metric is SuccessMetric.AUTO:
            raise ValueError("snapshot metric must be a concrete counter, not AUTO")
        if self.target_count < 0 or self.success_count < 0:
            raise ValueError(
                f"counts must be >= 0, got target={self.target_count} "
                f"success={self.success_count}"
            )

    def summary_age(self, now: datetime.datetime) -> datetime.timedelta | None:
        """Time elapsed since the last summarization, if known."""
        if self.summarized_at is None:
            return None
        summarized = self.summarized_at
        if summarized.tzinfo is None:
            summarized = summarized.replace(tzinfo=datetime.timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=datetime.timezone.utc)
        return now - summarized


# ---------------------------------------------------------------------------
# CandidateCollection
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CandidateCollection:
    """A wave collection that may be added to the target's membership."""

    collection_id: str
    name: str
    member_count: int | None = None
    state: InclusionState = InclusionState.ELIGIBLE

    def with_state(self, state: InclusionState) -> CandidateCollection:
        """Return a copy carrying a new inclusion state."""
        return replace(self, state=state)

    @property
    def sort_key(self) -> tuple[str, str, str]:
        """Name ascending (case-insensitive), then exact name, then id."""
        return (self.name.casefold(), self.name, self.collection_id)


# ---------------------------------------------------------------------------
# TimeWindow
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TimeWindow:
    """Allowed days and hours during which a rollout may expand.

    ``start_hour`` is inclusive and ``end_hour`` exclusive.  A window with
    ``start_hour > end_hour`` wraps past midnight; ``start_hour == end_hour``
    allows the whole day.  An empty ``days`` set allows every weekday.
    """

    days: frozenset[int] = frozenset()
    start_hour: int = 0
    end_hour: int = 24
    timezone: str = "UTC"

    def __post_init__(self) -> None:
        days = self.days
        if isinstance(days, (str, int)):
            days = (days,)
        object.__setattr__(
            self, "days", frozenset(parse_weekday(d) for d in days)
        )
        if not 0 <= self.start_hour <= 23:
            raise ValueError(f"start_hour must be in [0, 23], got {self.start_hour}")
        if not 0 <= self.end_hour <= 24:
            raise ValueError(f"end_hour must be in [0, 24], got {self.end_hour}")
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {self.timezone!r}") from exc

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def localize(self, moment: datetime.datetime) -> datetime.datetime:
        """Convert *moment* into the window's timezone (naive means UTC)."""
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=datetime.timezone.utc)
        return moment.astimezone(self.tzinfo)

    def contains(self, moment: datetime.datetime) -> bool:
        """True when *moment* falls inside the window."""
        local = self.localize(moment)
        if self.days and local.weekday() not in self.days:
            return False
        hour = local.hour
        if self.start_hour == self.end_hour:
            return True
        if self.start_hour < self.end_hour:
            return self.start_hour <= hour < self.end_hour
        return hour >= self.start_hour or hour < self.end_hour

    def describe(self) -> str:
        if self.days:
            day_names = ",".join(
                _WEEKDAY_NAMES[d][:3].title() for d in sorted(self.days)
            )
        else:
            day_names = "any day"
        return (
            f"{day_names} {self.start_hour:02d}:00-{self.end_hour:02d}:00 "
            f"{self.timezone}"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "days": sorted(self.days),
            "start_hour": self.start_hour,
            "end_hour": self.end_hour,
            "timezone": self.timezone,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TimeWindow:
        days = data.get("days")
        return cls(
            days=() if days is None else days,
            start_hour=int(data.get("start_hour", 0)),
            end_hour=int(data.get("end_hour", 24)),
            timezone=str(data.get("timezone", "UTC")),
        )


# ---------------------------------------------------------------------------
# ExclusionRules
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ExclusionRules:
    """Collections that must never be added, by id or by name pattern."""

    collection_ids: frozenset[str] = frozenset()
    name_patterns: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "collection_ids", frozenset(self.collection_ids))
        object.__setattr__(self, "name_patterns", tuple(self.name_patterns))

    @property
    def is_empty(self) -> bool:
        return not self.collection_ids and not self.name_patterns


# ---------------------------------------------------------------------------
# InclusionOutcome
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class InclusionOutcome:
    """Result of attempting to add one collection to the target."""

    collection: CandidateCollection
    succeeded: bool
    error: str = ""


# ---------------------------------------------------------------------------
# RolloutReport
# ---------------------------------------------------------------------------

def _ids(collections: Iterable[CandidateCollection]) -> set[str]:
    return {c.collection_id for c in collections}


@dataclass(frozen=True)
class RolloutReport:
    """Immutable record of one rollout evaluation.

    Invariant: ``included`` is a subset of ``planned``, which is a subset
    of ``eligible`` (compared by collection id).  Violations raise
    ``ValueError`` at construction.
    """

    status: RolloutStatus
    deployment_id: str
    phase: RolloutPhase = RolloutPhase.DONE
    target_collection_id: str = ""
    metric: SuccessMetric | None = None
    success_count: int | None = None
    target_count: int | None = None
    percentage: float | None = None
    threshold: float = 0.0
    eligible: tuple[CandidateCollection, ...] = ()
    planned: tuple[CandidateCollection, ...] = ()
    included: tuple[CandidateCollection, ...] = ()
    failed: tuple[InclusionOutcome, ...] = ()
    notes: tuple[str, ...] = ()
    dry_run: bool = False
    started_at: float = 0.0
    finished_at: float = 0.0
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name in ("eligible", "planned", "included", "failed", "notes"):
            object.__setattr__(self, name, tuple(getattr(self, name)))
        eligible_ids = _ids(self.eligible)
        planned_ids = _ids(self.planned)
        included_ids = _ids(self.included)
        if not planned_ids <= eligible_ids:
            raise ValueError(
                f"planned collections {sorted(planned_ids - eligible_ids)} "
                "are not eligible"
            )
        if not included_ids <= planned_ids:
            raise ValueError(
                f"included collections {sorted(included_ids - planned_ids)} "
                "were not planned"
            )
        failed_ids = {o.collection.collection_id for o in self.failed}
        if not failed_ids <= planned_ids:
            raise ValueError(
                f"failed collections {sorted(failed_ids - planned_ids)} "
                "were not planned"
            )

    @property
    def mutated(self) -> bool:
        """True when at least one collection was actually included."""
        return bool(self.included)

    @property
    def planned_names(self) -> list[str]:
        return [c.name for c in self.planned]

    @property
    def included_names(self) -> list[str]:
        return [c.name for c in self.included]

    @property
    def duration(self) -> float:
        return max(0.0, self.finished_at - self.started_at)

    def summary(self) -> str:
        """Return a one-paragraph human-readable summary."""
        pct = "n/a" if self.percentage is None else f"{self.percentage:.2f}%"
        lines = [
            f"Rollout {self.deployment_id} -> {self.target_collection_id or '?'}: "
            f"{self.status.value}",
            f"  success: {self.success_count}/{self.target_count} ({pct}) "
            f"threshold {self.threshold:g}%"
            + (f" metric={self.metric.value}" if self.metric else ""),
            f"  eligible: {len(self.eligible)}  planned: {', '.join(self.planned_names) or '-'}",
            f"  included: {', '.join(self.included_names) or '-'}",
        ]
        if self.failed:
            lines.append(
                "  failed: "
                + ", ".join(f"{o.collection.name} ({o.error})" for o in self.failed)
            )
        if self.dry_run:
            lines.append("  (dry run: no changes made)")
        for note in self.notes:
            lines.append(f"  - {note}")
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-compatible dictionary."""
        from phased_rollout.infrastructure.serialization import report_to_dict

        return report_to_dict(self)
