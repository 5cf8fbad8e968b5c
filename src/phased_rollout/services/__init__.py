"""Service layer for the phased rollout helper.

Pure decision logic (percentages, windows, filtering, selection) plus the
inclusion step and the audit trail.  The graph layer wires these together.
"""

from phased_rollout.services.audit_trail import RolloutAuditTrail
from phased_rollout.services.eligibility import (
    CandidateFilter,
    CandidateFilterResult,
    candidates_from_records,
    filter_candidates,
    select_next,
)
from phased_rollout.services.evaluation import (
    METRIC_PREFERENCE,
    build_snapshot,
    compute_percentage,
    meets_threshold,
    resolve_target_count,
    select_metric,
)
from phased_rollout.services.inclusion import include_collections
from phased_rollout.services.window import as_utc, check_window, fixed_clock, utc_now

__all__ = [
    "RolloutAuditTrail",
    "CandidateFilter",
    "CandidateFilterResult",
    "candidates_from_records",
    "filter_candidates",
    "select_next",
    "METRIC_PREFERENCE",
    "build_snapshot",
    "compute_percentage",
    "meets_threshold",
    "resolve_target_count",
    "select_metric",
    "include_collections",
    "as_utc",
    "check_window",
    "fixed_clock",
    "utc_now",
]
