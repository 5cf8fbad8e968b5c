"""Sample inventory helpers.

``sample_inventory()`` builds an :class:`InMemoryManagementPlane` holding one
application deployment aimed at a master collection plus a handful of wave
collections, shaped like the records a ConfigMgr site returns.
"""

from __future__ import annotations

from collections.abc import Iterable

from phased_rollout.infrastructure.client import InMemoryManagementPlane

MASTER_ID = "PS100001"
DEPLOYMENT_ID = "16777220"


def sample_inventory(
    success: int | None = 92,
    targeted: int | None = 100,
    included: Iterable[str] = (),
    master_members: int | None = 100,
    failing_collections: Iterable[str] = (),
    failing_operations: Iterable[str] = (),
    summarized_at: str | None = "2026-10-19T06:00:00+00:00",
) -> InMemoryManagementPlane:
    """Build an in-memory plane with one deployment and five collections.

    Waves ``Wave-01`` .. ``Wave-03`` (ids ``PS10001x``) are the candidates,
    ``Wave-VIP`` is a wave operators usually exclude, and ``PS100001`` is the
    master collection the deployment targets.
    """
    deployment: dict[str, object] = {
        "DeploymentID": DEPLOYMENT_ID,
        "ApplicationName": "Contoso Agent 5.2",
        "CollectionID": MASTER_ID,
    }
    if targeted is not None:
        deployment["NumberTargeted"] = targeted
    if success is not None:
        deployment["NumberSuccess"] = success
    if summarized_at is not None:
        deployment["SummarizationTime"] = summarized_at

    collections = [
        {"CollectionID": MASTER_ID, "Name": "Contoso Agent - Rollout", "MemberCount": master_members},
        {"CollectionID": "PS100012", "Name": "Wave-02", "MemberCount": 250},
        {"CollectionID": "PS100011", "Name": "Wave-01", "MemberCount": 25},
        {"CollectionID": "PS100013", "Name": "Wave-03", "MemberCount": 1200},
        {"CollectionID": "PS100019", "Name": "Wave-VIP", "MemberCount": 12},
    ]
    return InMemoryManagementPlane(
        deployments=[deployment],
        collections=collections,
        include_rules={MASTER_ID: set(included)},
        failing_collections=failing_collections,
        failing_operations=failing_operations,
    )
