"""Configuration for a phased rollout run.

``RolloutConfig`` is a frozen ``dataclass`` with a ``validate()`` method that
raises ``ValueError`` on invalid combinations, plus ``to_dict`` /
``from_dict`` helpers.  Configuration is always passed explicitly to the
graph -- there is no module-level cache of the last loaded file.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from phased_rollout.domain.enums import SuccessMetric
from phased_rollout.domain.values import ExclusionRules, TimeWindow


@dataclass(frozen=True)
class RolloutConfig:
    """Parameters governing one phased rollout evaluation.

    Attributes
    ----------
    deployment:
        Deployment id or name to evaluate.
    target_collection_id:
        Expected master collection.  When set, a deployment that targets
        any other collection ends the run with status ``mismatch``.  When
        empty, the deployment's own collection is used.
    success_threshold:
        Minimum success percentage (1..100) required to expand.
    max_per_run:
        Maximum number of wave collections added per invocation.
    candidate_patterns:
        Wildcard name patterns selecting wave collections.
    exclusions:
        Collections never to add, by id or by name pattern.
    metric:
        Success counter to use; ``auto`` walks the preference order.
    use_member_count_fallback:
        Substitute the target collection's live member count when the
        deployment reports zero targets.
    window:
        Optional allowed time window.
    dry_run:
        Plan without calling ``add_include_rule``.
    max_summary_age_minutes:
        Add a note when deployment counters are older than this.  ``0``
        disables the check.
    log_path:
        Optional file receiving timestamped run log lines.
    """

    deployment: str
    target_collection_id: str = ""
    success_threshold: float = 90.0
    max_per_run: int = 1
    candidate_patterns: tuple[str, ...] = ()
    exclusions: ExclusionRules = field(default_factory=ExclusionRules)
    metric: SuccessMetric = SuccessMetric.AUTO
    use_member_count_fallback: bool = False
    window: TimeWindow | None = None
    dry_run: bool = False
    max_summary_age_minutes: int = 0
    log_path: str = ""

    def __post_init__(self) -> None:
        # frozen=True prevents normal assignment; coerce loose inputs
        # (lists, strings, dicts) with object.__setattr__.
        if isinstance(self.candidate_patterns, str):
            object.__setattr__(self, "candidate_patterns", (self.candidate_patterns,))
        else:
            object.__setattr__(self, "candidate_patterns", tuple(self.candidate_patterns))
        if isinstance(self.metric, str):
            object.__setattr__(self, "metric", SuccessMetric(self.metric.lower()))
        if isinstance(self.exclusions, dict):
            object.__setattr__(
                self,
                "exclusions",
                ExclusionRules(
                    collection_ids=frozenset(self.exclusions.get("collection_ids", ())),
                    name_patterns=tuple(self.exclusions.get("name_patterns", ())),
                ),
            )
        elif self.exclusions is None:
            object.__setattr__(self, "exclusions", ExclusionRules())
        if isinstance(self.window, dict):
            object.__setattr__(self, "window", TimeWindow.from_dict(self.window))

    def validate(self) -> None:
        """Raise ``ValueError`` if any field is out of valid range."""
        if not self.deployment.strip():
            raise ValueError("deployment must not be empty")
        if not (1 <= self.success_threshold <= 100):
            raise ValueError(
                f"success_threshold must be in [1, 100], got {self.success_threshold}"
            )
        if self.max_per_run < 1:
            raise ValueError(f"max_per_run must be >= 1, got {self.max_per_run}")
        if not self.candidate_patterns:
            raise ValueError("at least one candidate pattern is required")
        if any(not p.strip() for p in self.candidate_patterns):
            raise ValueError("candidate patterns must not be blank")
        if self.max_summary_age_minutes < 0:
            raise ValueError(
                f"max_summary_age_minutes must be >= 0, got {self.max_summary_age_minutes}"
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "deployment": self.deployment,
            "target_collection_id": self.target_collection_id,
            "success_threshold": self.success_threshold,
            "max_per_run": self.max_per_run,
            "candidate_patterns": list(self.candidate_patterns),
            "exclusions": {
                "collection_ids": sorted(self.exclusions.collection_ids),
                "name_patterns": list(self.exclusions.name_patterns),
            },
            "metric": self.metric.value,
            "use_member_count_fallback": self.use_member_count_fallback,
            "window": self.window.to_dict() if self.window is not None else None,
            "dry_run": self.dry_run,
            "max_summary_age_minutes": self.max_summary_age_minutes,
            "log_path": self.log_path,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RolloutConfig:
        valid_keys = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        cfg = cls(**filtered)
        cfg.validate()
        return cfg


# ===================================================================== #
#  Loaders                                                               #
# ===================================================================== #

def load_config_from_json(json_str: str) -> RolloutConfig:
    """Parse a JSON object into a validated :class:`RolloutConfig`.

    The object may either hold the config fields directly or nest them under
    a top-level ``rollout`` key.
    """
    raw = json.loads(json_str)
    return _config_from_raw(raw)


def load_config(path: str | Path) -> RolloutConfig:
    """Load a validated :class:`RolloutConfig` from a JSON or YAML file."""
    source = Path(path)
    text = source.read_text(encoding="utf-8")
    if source.suffix.lower() in (".yaml", ".yml"):
        return _config_from_raw(yaml.safe_load(text))
    return load_config_from_json(text)


def _config_from_raw(raw: Any) -> RolloutConfig:
    if not isinstance(raw, dict):
        raise ValueError("Top-level config must be an object")
    section = raw.get("rollout", raw)
    if not isinstance(section, dict):
        raise ValueError("'rollout' section must be an object")
    return RolloutConfig.from_dict(section)
