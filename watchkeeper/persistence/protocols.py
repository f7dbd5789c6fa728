"""
Repository protocols for the Watchkeeper persistence layer.

The session manager, catalog resolver and services depend on these
protocols rather than the concrete repositories so tests can substitute
in-memory doubles.
"""

# pylint: disable=unnecessary-ellipsis  # Reason: Protocol method bodies use ... per typing.Protocol convention

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from watchkeeper.models import Endpoint, EndpointKind, EndpointPatch, VersionCatalogEntry


class EndpointRepositoryProtocol(Protocol):
    """
    Protocol for endpoint persistence operations.

    Implemented by watchkeeper.persistence.repositories.endpoint_repository.EndpointRepository.
    """

    async def get(self, endpoint_id: str) -> Endpoint | None:
        """Get an endpoint by id."""
        ...

    async def list_all(self) -> list[Endpoint]:
        """List every endpoint."""
        ...

    async def update(self, endpoint_id: str, patch: EndpointPatch) -> Endpoint | None:
        """Apply a typed patch; None when the endpoint is gone."""
        ...

    async def update_with(
        self, endpoint_id: str, decide: Callable[[Endpoint], EndpointPatch | None]
    ) -> Endpoint | None:
        """Compute a patch from the current record (None for no change) and apply it under one lock hold."""
        ...


class VersionRepositoryProtocol(Protocol):
    """
    Protocol for version catalog persistence operations.

    Implemented by watchkeeper.persistence.repositories.version_repository.VersionRepository.
    """

    async def list_all(self, kind: EndpointKind | None = None) -> list[VersionCatalogEntry]:
        """List catalog entries, optionally for one kind."""
        ...

    async def add(self, entry: VersionCatalogEntry) -> VersionCatalogEntry:
        """Insert an entry; raises DuplicateVersionError on (kind, protocol_id) conflict."""
        ...

    async def delete(self, kind: EndpointKind, protocol_id: int) -> bool:
        """Delete an entry; False when absent."""
        ...

    async def seed_if_empty(self, entries: list[VersionCatalogEntry]) -> int:
        """Insert entries when the table is empty; returns the number inserted."""
        ...
