"""Management-plane client contract and an in-memory implementation.

The rollout graph only needs to read deployment counters, read and list
collections, list the collections already included in a target, and add an
include rule.  ``ManagementPlaneClient`` pins down that contract; how a real
client authenticates or talks to its server is outside this package.

``InMemoryManagementPlane`` implements the contract over plain dicts.  It
backs the test suite and the CLI ``simulate`` command, applies include rules
to its own state (so repeated runs observe earlier inclusions), and can be
told to fail specific operations or collections.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import yaml

from phased_rollout.domain.exceptions import (
    CollectionNotFoundError,
    InclusionError,
    ManagementPlaneError,
)
from phased_rollout.domain.patterns import name_matches
from phased_rollout.infrastructure.records import CollectionRecord, DeploymentRecord

logger = logging.getLogger(__name__)


# ===================================================================== #
#  Contract                                                              #
# ===================================================================== #

class ManagementPlaneClient(ABC):
    """What the rollout graph needs from the management plane.

    Implementations raise :class:`ManagementPlaneError` (or a subclass) on
    failure.  Any other exception is treated the same way by the graph.
    """

    @abstractmethod
    def find_deployments(self, identifier: str) -> list[DeploymentRecord]:
        """Return every deployment whose id or name matches *identifier*."""

    @abstractmethod
    def get_collection(self, collection_id: str) -> CollectionRecord | None:
        """Return the collection with *collection_id*, or ``None``."""

    @abstractmethod
    def list_collections(self, pattern: str) -> list[CollectionRecord]:
        """Return collections whose name matches the wildcard *pattern*."""

    @abstractmethod
    def list_included_collection_ids(self, target_id: str) -> set[str]:
        """Return ids of collections already included in *target_id*."""

    @abstractmethod
    def add_include_rule(self, target_id: str, collection_id: str) -> None:
        """Include *collection_id* in the membership of *target_id*."""


# ===================================================================== #
#  In-memory implementation                                              #
# ===================================================================== #

def _as_deployment(item: DeploymentRecord | Mapping[str, Any]) -> DeploymentRecord:
    if isinstance(item, DeploymentRecord):
        return item
    return DeploymentRecord.model_validate(dict(item))


def _as_collection(item: CollectionRecord | Mapping[str, Any]) -> CollectionRecord:
    if isinstance(item, CollectionRecord):
        return item
    return CollectionRecord.model_validate(dict(item))


class InMemoryManagementPlane(ManagementPlaneClient):
    """Dict-backed management plane.

    Parameters
    ----------
    deployments:
        Deployment records (models or PascalCase dicts).
    collections:
        Collection records (models or PascalCase dicts).
    include_rules:
        Mapping of target collection id to the ids already included in it.
    failing_collections:
        Collection ids whose ``add_include_rule`` call raises
        :class:`InclusionError`.
    failing_operations:
        Names of contract methods that raise :class:`ManagementPlaneError`
        on every call (e.g. ``{"list_collections"}``).
    """

    def __init__(
        self,
        deployments: Iterable[DeploymentRecord | Mapping[str, Any]] = (),
        collections: Iterable[CollectionRecord | Mapping[str, Any]] = (),
        include_rules: Mapping[str, Iterable[str]] | None = None,
        failing_collections: Iterable[str] = (),
        failing_operations: Iterable[str] = (),
    ) -> None:
        self._deployments: list[DeploymentRecord] = [_as_deployment(d) for d in deployments]
        self._collections: dict[str, CollectionRecord] = {}
        for item in collections:
            record = _as_collection(item)
            self._collections[record.collection_id] = record
        self._include_rules: dict[str, set[str]] = {
            target: set(ids) for target, ids in (include_rules or {}).items()
        }
        self.failing_collections: set[str] = set(failing_collections)
        self.failing_operations: set[str] = set(failing_operations)
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    # -- helpers ------------------------------------------------------------

    def _enter(self, operation: str, *args: Any) -> None:
        self.calls.append((operation, args))
        if operation in self.failing_operations:
            raise ManagementPlaneError(
                f"{operation} is unavailable", operation=operation
            )

    def mutation_calls(self) -> list[tuple[str, str]]:
        """Return the ``(target_id, collection_id)`` pairs passed to ``add_include_rule``."""
        return [args for op, args in self.calls if op == "add_include_rule"]  # type: ignore[misc]

    # -- contract -----------------------------------------------------------

    def find_deployments(self, identifier: str) -> list[DeploymentRecord]:
        self._enter("find_deployments", identifier)
        by_id = [
            d for d in self._deployments
            if d.deployment_id.casefold() == identifier.casefold()
        ]
        if by_id:
            return by_id
        return [d for d in self._deployments if d.name and name_matches(d.name, identifier)]

    def get_collection(self, collection_id: str) -> CollectionRecord | None:
        self._enter("get_collection", collection_id)
        return self._collections.get(collection_id)

    def list_collections(self, pattern: str) -> list[CollectionRecord]:
        self._enter("list_collections", pattern)
        return [c for c in self._collections.values() if name_matches(c.name, pattern)]

    def list_included_collection_ids(self, target_id: str) -> set[str]:
        self._enter("list_included_collection_ids", target_id)
        return set(self._include_rules.get(target_id, set()))

    def add_include_rule(self, target_id: str, collection_id: str) -> None:
        self._enter("add_include_rule", target_id, collection_id)
        if target_id not in self._collections:
            raise CollectionNotFoundError(target_id)
        if collection_id not in self._collections:
            raise CollectionNotFoundError(collection_id)
        if collection_id in self.failing_collections:
            raise InclusionError(
                f"Include rule for {collection_id} rejected by server",
                collection_id=collection_id,
            )
        self._include_rules.setdefault(target_id, set()).add(collection_id)
        logger.debug("include rule added: %s <- %s", target_id, collection_id)

    # -- inventory I/O ------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialise the inventory (PascalCase records) to a plain dict."""
        return {
            "deployments": [
                d.model_dump(by_alias=True, mode="json", exclude_none=True)
                for d in self._deployments
            ],
            "collections": [
                c.model_dump(by_alias=True, mode="json", exclude_none=True)
                for c in self._collections.values()
            ],
            "include_rules": {
                target: sorted(ids) for target, ids in self._include_rules.items()
            },
            "failing_collections": sorted(self.failing_collections),
            "failing_operations": sorted(self.failing_operations),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> InMemoryManagementPlane:
        return cls(
            deployments=data.get("deployments", ()),
            collections=data.get("collections", ()),
            include_rules=data.get("include_rules") or {},
            failing_collections=data.get("failing_collections", ()),
            failing_operations=data.get("failing_operations", ()),
        )

    @classmethod
    def load(cls, path: str | Path) -> InMemoryManagementPlane:
        """Load an inventory from a JSON or YAML file."""
        source = Path(path)
        text = source.read_text(encoding="utf-8")
        if source.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError(f"Inventory {source} must contain a mapping")
        return cls.from_dict(data)

    def save(self, path: str | Path) -> None:
        """Write the inventory back to *path* (JSON or YAML by suffix)."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        data = self.to_dict()
        if target.suffix.lower() in (".yaml", ".yml"):
            target.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        else:
            target.write_text(json.dumps(data, indent=2), encoding="utf-8")
