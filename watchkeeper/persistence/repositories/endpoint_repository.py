"""
Endpoint repository.

Endpoint rows are addressed by their ``id`` token. All updates go through
typed patches, and updates that depend on the current value (toggles) are
computed inside the store lock via update_with().
"""

from collections.abc import Callable

from ...models import Endpoint, EndpointPatch
from ...models.patches import apply_endpoint_patch
from ..record_store import Record, Table
from .base import TableRepository


def _by_id(endpoint_id: str) -> Callable[[Record], bool]:
    return lambda record: record.get("id") == endpoint_id


def _by_owner(owner_id: int) -> Callable[[Record], bool]:
    return lambda record: record.get("owner_id") == owner_id


class EndpointRepository(TableRepository[Endpoint]):
    """Repository for registered endpoints."""

    table = Table.ENDPOINTS
    model = Endpoint

    async def get(self, endpoint_id: str) -> Endpoint | None:
        record = await self._store.find_one(self.table, _by_id(endpoint_id))
        return self._parse(record) if record is not None else None

    async def list_all(self) -> list[Endpoint]:
        return self._parse_all(await self._store.find_all(self.table))

    async def list_for_owner(self, owner_id: int) -> list[Endpoint]:
        """Endpoints of one owner, ordered by id."""
        endpoints = self._parse_all(await self._store.find_all(self.table, _by_owner(owner_id)))
        return sorted(endpoints, key=lambda e: e.id)

    async def count(self, owner_id: int | None = None) -> int:
        if owner_id is None:
            return await self._store.count(self.table)
        return await self._store.count(self.table, _by_owner(owner_id))

    async def insert(self, endpoint: Endpoint) -> Endpoint:
        await self._store.insert(self.table, self._dump(endpoint))
        self._logger.info("Endpoint stored", endpoint_id=endpoint.id, owner_id=endpoint.owner_id)
        return endpoint

    async def update(self, endpoint_id: str, patch: EndpointPatch) -> Endpoint | None:
        """
        Apply a typed patch to one endpoint.

        Returns:
            The updated endpoint, or None if no such endpoint exists
        """
        return await self.update_with(endpoint_id, lambda _current: patch)

    async def update_with(
        self, endpoint_id: str, decide: Callable[[Endpoint], EndpointPatch | None]
    ) -> Endpoint | None:
        """
        Compute a patch from the current record and apply it under one lock hold.

        Args:
            endpoint_id: Endpoint to update
            decide: Receives the current endpoint and returns the patch to apply,
                or None to leave the record unchanged

        Returns:
            The updated endpoint, or None if no such endpoint exists
        """

        def _patch(record: Record) -> Record:
            current = self._parse(record)
            if current is None:
                return record
            patch = decide(current)
            if patch is None:
                return record
            return self._dump(apply_endpoint_patch(current, patch))

        updated = await self._store.update_one(self.table, _by_id(endpoint_id), _patch)
        return self._parse(updated) if updated is not None else None

    async def update_where(self, where: Callable[[Endpoint], bool], patch: EndpointPatch) -> int:
        """Apply patch to every endpoint matching where; returns the number updated."""

        def _matches(record: Record) -> bool:
            endpoint = self._parse(record)
            return endpoint is not None and where(endpoint)

        def _patch(record: Record) -> Record:
            return self._dump(apply_endpoint_patch(Endpoint.model_validate(record), patch))

        return await self._store.update_where(self.table, _matches, _patch)

    async def delete(self, endpoint_id: str, owner_id: int | None = None) -> Endpoint | None:
        """Delete one endpoint, optionally only if it belongs to owner_id."""

        def _matches(record: Record) -> bool:
            if record.get("id") != endpoint_id:
                return False
            return owner_id is None or record.get("owner_id") == owner_id

        removed = await self._store.delete_one(self.table, _matches)
        if removed is None:
            return None
        self._logger.info("Endpoint deleted", endpoint_id=endpoint_id, owner_id=removed.get("owner_id"))
        return self._parse(removed)

    async def delete_for_owner(self, owner_id: int) -> int:
        removed = await self._store.delete_where(self.table, _by_owner(owner_id))
        self._logger.info("Endpoints deleted for owner", owner_id=owner_id, removed=removed)
        return removed
