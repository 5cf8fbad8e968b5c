"""Candidate filtering and next-wave selection.

Filtering classifies every candidate collection as already included,
excluded, or eligible.  Selection then takes a bounded prefix of the
eligible set ordered by name, so operators control the rollout sequence
purely through collection naming (``Wave-01``, ``Wave-02``, ...).

Classes
-------
CandidateFilterResult
    Immutable partition of the candidate set plus exclusion reasons.
CandidateFilter
    Applies already-included tracking and exclusion rules.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from phased_rollout.domain.enums import InclusionState
from phased_rollout.domain.patterns import first_match
from phased_rollout.domain.values import CandidateCollection, ExclusionRules
from phased_rollout.infrastructure.records import CollectionRecord

logger = logging.getLogger(__name__)


def candidates_from_records(
    records: Iterable[CollectionRecord],
) -> list[CandidateCollection]:
    """Convert collection records to candidates, dropping duplicate ids.

    Overlapping name patterns can return the same collection more than
    once; the first occurrence wins.
    """
    seen: set[str] = set()
    result: list[CandidateCollection] = []
    for record in records:
        if record.collection_id in seen:
            continue
        seen.add(record.collection_id)
        result.append(
            CandidateCollection(
                collection_id=record.collection_id,
                name=record.name,
                member_count=record.member_count,
            )
        )
    return result


@dataclass(frozen=True)
class CandidateFilterResult:
    """Partition of a candidate set.

    ``eligible`` is sorted by :attr:`CandidateCollection.sort_key`.
    ``reasons`` maps every non-eligible collection id to a short reason.
    """

    eligible: tuple[CandidateCollection, ...] = ()
    included: tuple[CandidateCollection, ...] = ()
    excluded: tuple[CandidateCollection, ...] = ()
    reasons: Mapping[str, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.eligible


class CandidateFilter:
    """Classify candidates against a target collection.

    Parameters
    ----------
    rules:
        Exclusions by collection id and by name pattern.
    """

    def __init__(self, rules: ExclusionRules | None = None) -> None:
        self._rules = rules or ExclusionRules()

    def apply(
        self,
        candidates: Iterable[CandidateCollection],
        already_included: Iterable[str],
        target_collection_id: str = "",
    ) -> CandidateFilterResult:
        included_ids = set(already_included)
        eligible: list[CandidateCollection] = []
        included: list[CandidateCollection] = []
        excluded: list[CandidateCollection] = []
        reasons: dict[str, str] = {}
        seen: set[str] = set()

        for candidate in candidates:
            cid = candidate.collection_id
            if cid in seen:
                continue
            seen.add(cid)

            if cid == target_collection_id:
                excluded.append(candidate.with_state(InclusionState.EXCLUDED))
                reasons[cid] = "is the target collection"
                continue
            if cid in included_ids:
                included.append(candidate.with_state(InclusionState.INCLUDED))
                reasons[cid] = "already included"
                continue
            if cid in self._rules.collection_ids:
                excluded.append(candidate.with_state(InclusionState.EXCLUDED))
                reasons[cid] = "excluded by id"
                continue
            pattern = first_match(candidate.name, self._rules.name_patterns)
            if pattern is not None:
                excluded.append(candidate.with_state(InclusionState.EXCLUDED))
                reasons[cid] = f"excluded by pattern {pattern!r}"
                continue
            eligible.append(candidate.with_state(InclusionState.ELIGIBLE))

        eligible.sort(key=lambda c: c.sort_key)
        logger.debug(
            "filter: %d eligible, %d already included, %d excluded",
            len(eligible),
            len(included),
            len(excluded),
        )
        return CandidateFilterResult(
            eligible=tuple(eligible),
            included=tuple(included),
            excluded=tuple(excluded),
            reasons=reasons,
        )


def filter_candidates(
    candidates: Iterable[CandidateCollection],
    already_included: Iterable[str],
    rules: ExclusionRules | None = None,
    target_collection_id: str = "",
) -> CandidateFilterResult:
    """Functional shorthand for ``CandidateFilter(rules).apply(...)``."""
    return CandidateFilter(rules).apply(candidates, already_included, target_collection_id)


def select_next(
    eligible: Iterable[CandidateCollection],
    max_per_run: int,
) -> tuple[CandidateCollection, ...]:
    """Return the first *max_per_run* eligible collections by name."""
    if max_per_run < 1:
        raise ValueError(f"max_per_run must be >= 1, got {max_per_run}")
    ordered = sorted(eligible, key=lambda c: c.sort_key)
    return tuple(ordered[:max_per_run])
