"""Domain exceptions for the phased rollout helper.

All domain-specific exceptions inherit from ``PhasedRolloutError`` so callers
can catch the full family with a single ``except`` clause when needed.
"""

from __future__ import annotations

from typing import Any


class PhasedRolloutError(Exception):
    """Base exception for all phased rollout errors."""

    def __init__(self, message: str = "", details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = details or {}


class ManagementPlaneError(PhasedRolloutError):
    """Raised when a management-plane lookup or mutation fails.

    Lookup failures abort the run with status ``error``; mutation failures
    are recorded per collection and never abort the batch.
    """

    def __init__(
        self,
        message: str = "Management plane call failed",
        operation: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.operation = operation


class DeploymentNotFoundError(ManagementPlaneError):
    """Raised when no deployment matches the requested identifier."""

    def __init__(
        self,
        identifier: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            f"Deployment not found: {identifier!r}",
            operation="find_deployments",
            details=details,
        )
        self.identifier = identifier


class AmbiguousMatchError(ManagementPlaneError):
    """Raised when an identifier resolves to more than one record."""

    def __init__(
        self,
        identifier: str = "",
        matches: tuple[str, ...] = (),
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            f"Identifier {identifier!r} is ambiguous: matched {len(matches)} records "
            f"({', '.join(matches)})",
            operation="find_deployments",
            details=details,
        )
        self.identifier = identifier
        self.matches = matches


class CollectionNotFoundError(ManagementPlaneError):
    """Raised when the master target collection cannot be read."""

    def __init__(
        self,
        collection_id: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            f"Collection not found: {collection_id!r}",
            operation="get_collection",
            details=details,
        )
        self.collection_id = collection_id


class TargetMismatchError(PhasedRolloutError):
    """Raised when the resolved deployment targets a different collection."""

    def __init__(
        self,
        expected: str = "",
        actual: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            f"Deployment targets collection {actual!r}, expected {expected!r}",
            details,
        )
        self.expected = expected
        self.actual = actual


class InclusionError(ManagementPlaneError):
    """Raised when adding an include rule for a collection fails."""

    def __init__(
        self,
        message: str = "Include rule could not be added",
        collection_id: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, operation="add_include_rule", details=details)
        self.collection_id = collection_id
