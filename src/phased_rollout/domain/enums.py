"""Domain enumerations for the phased rollout helper.

These enums capture the fixed vocabularies used across the domain layer:
terminal run statuses, success metrics, candidate inclusion states, and the
phases of the single-run state machine.
"""

from enum import Enum


class RolloutStatus(Enum):
    """Terminal status of one rollout evaluation."""

    OUTSIDE_WINDOW = "outside_window"
    NO_TARGETS = "no_targets"
    BELOW_THRESHOLD = "below_threshold"
    NO_CANDIDATES = "no_candidates"
    INCLUDED = "included"
    PLANNED_ONLY = "planned_only"  # dry run
    ERROR = "error"
    MISMATCH = "mismatch"

    @property
    def is_success(self) -> bool:
        """True when the run reached the selection phase."""
        return self in (RolloutStatus.INCLUDED, RolloutStatus.PLANNED_ONLY)


class SuccessMetric(Enum):
    """Deployment counter used as the numerator of the success percentage."""

    COMPLIANT = "compliant"
    INSTALLED = "installed"
    SUCCESS = "success"
    AUTO = "auto"  # first reported counter in preference order


class InclusionState(Enum):
    """Where a candidate collection stands relative to the target."""

    INCLUDED = "included"
    ELIGIBLE = "eligible"
    EXCLUDED = "excluded"


class RolloutPhase(Enum):
    """States of the single-run rollout state machine."""

    START = "start"
    WINDOW_CHECK = "window_check"
    TARGET_CHECK = "target_check"
    PERCENT_CHECK = "percent_check"
    CANDIDATE_FILTER = "candidate_filter"
    SELECTION = "selection"
    MUTATION = "mutation"
    DONE = "done"
