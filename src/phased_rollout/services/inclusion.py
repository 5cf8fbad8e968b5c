"""Apply include rules for the selected wave collections.

Each collection is attempted independently: a failure is recorded as an
``InclusionOutcome`` and the remaining collections are still attempted.
Nothing is retried -- re-running the rollout picks up whatever is still
eligible, because inclusion state lives in the management plane.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from phased_rollout.domain.values import CandidateCollection, InclusionOutcome
from phased_rollout.infrastructure.client import ManagementPlaneClient

logger = logging.getLogger(__name__)

OutcomeHook = Callable[[InclusionOutcome], None]


def include_collections(
    client: ManagementPlaneClient,
    target_collection_id: str,
    selected: Iterable[CandidateCollection],
    on_outcome: OutcomeHook | None = None,
) -> list[InclusionOutcome]:
    """Add every collection in *selected* to *target_collection_id*.

    Parameters
    ----------
    client:
        Management-plane client performing the mutation.
    target_collection_id:
        Master collection receiving the include rules.
    selected:
        Collections to include, in order.
    on_outcome:
        Optional callback invoked after each attempt.

    Returns
    -------
    list[InclusionOutcome]
        One outcome per selected collection, in attempt order.
    """
    outcomes: list[InclusionOutcome] = []
    for collection in selected:
        try:
            client.add_include_rule(target_collection_id, collection.collection_id)
        except Exception as exc:
            logger.warning(
                "Failed to include %s (%s) in %s: %s",
                collection.name,
                collection.collection_id,
                target_collection_id,
                exc,
            )
            outcome = InclusionOutcome(
                collection=collection, succeeded=False, error=str(exc) or type(exc).__name__
            )
        else:
            logger.info(
                "Included %s (%s) in %s",
                collection.name,
                collection.collection_id,
                target_collection_id,
            )
            outcome = InclusionOutcome(collection=collection, succeeded=True)
        outcomes.append(outcome)
        if on_outcome is not None:
            on_outcome(outcome)
    return outcomes
