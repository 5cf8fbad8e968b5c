"""Success-percentage evaluation for a deployment snapshot.

The ``auto`` metric is an explicit ordered preference list evaluated once:
the first counter the deployment actually reports wins, and the metric used
is returned alongside the value.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from phased_rollout.domain.enums import SuccessMetric
from phased_rollout.domain.values import DeploymentSnapshot
from phased_rollout.infrastructure.records import DeploymentRecord

logger = logging.getLogger(__name__)

METRIC_PREFERENCE: tuple[SuccessMetric, ...] = (
    SuccessMetric.COMPLIANT,
    SuccessMetric.INSTALLED,
    SuccessMetric.SUCCESS,
)

_COUNTER_FIELDS: dict[SuccessMetric, str] = {
    SuccessMetric.COMPLIANT: "number_compliant",
    SuccessMetric.INSTALLED: "number_installed",
    SuccessMetric.SUCCESS: "number_success",
}


# ===================================================================== #
#  Pure functions                                                        #
# ===================================================================== #

def select_metric(
    record: DeploymentRecord,
    metric: SuccessMetric = SuccessMetric.AUTO,
    preference: Sequence[SuccessMetric] = METRIC_PREFERENCE,
) -> tuple[SuccessMetric, int]:
    """Return ``(metric_used, success_count)`` for *record*.

    An explicit metric reads that counter (absent counts as 0).  ``AUTO``
    returns the first counter in *preference* that the record reports;
    when none is reported the result is ``(SUCCESS, 0)``.
    """
    if metric is not SuccessMetric.AUTO:
        return metric, record.counter(_COUNTER_FIELDS[metric]) or 0
    for candidate in preference:
        if candidate is SuccessMetric.AUTO:
            raise ValueError("AUTO cannot appear in the metric preference list")
        value = record.counter(_COUNTER_FIELDS[candidate])
        if value is not None:
            return candidate, value
    return SuccessMetric.SUCCESS, 0


def build_snapshot(
    record: DeploymentRecord,
    metric: SuccessMetric = SuccessMetric.AUTO,
) -> DeploymentSnapshot:
    """Turn a raw deployment record into a :class:`DeploymentSnapshot`."""
    used, success = select_metric(record, metric)
    return DeploymentSnapshot(
        deployment_id=record.deployment_id,
        target_collection_id=record.collection_id,
        target_count=record.number_targeted or 0,
        success_count=success,
        metric=used,
        name=record.name,
        summarized_at=record.summarization_time,
    )


def compute_percentage(success: int, target: int) -> float:
    """Return ``round(success / target * 100, 2)``.

    Raises ``ValueError`` for a non-positive target or a negative success
    count; callers check the target first so this never divides by zero.
    """
    if target <= 0:
        raise ValueError(f"target must be > 0, got {target}")
    if success < 0:
        raise ValueError(f"success must be >= 0, got {success}")
    percentage = round(success / target * 100, 2)
    logger.debug("percentage: %d/%d = %.2f%%", success, target, percentage)
    return percentage


def meets_threshold(percentage: float, threshold: float) -> bool:
    return percentage >= threshold


def resolve_target_count(
    snapshot: DeploymentSnapshot,
    live_member_count: int | None,
    use_fallback: bool,
) -> tuple[int, str]:
    """Return the denominator to use and a note explaining any substitution."""
    if snapshot.target_count > 0:
        return snapshot.target_count, ""
    if not use_fallback:
        return 0, ""
    if live_member_count:
        return live_member_count, (
            f"deployment reports 0 targets; using live member count "
            f"{live_member_count} of {snapshot.target_collection_id}"
        )
    return 0, "deployment reports 0 targets and live member count is 0"
