"""
Version catalog repository.

Inserts check for an existing (kind, protocol_id) pair and append under the
same lock hold, so the uniqueness constraint holds under concurrency.
"""

from ...error_types import ErrorMessages
from ...exceptions import DuplicateVersionError
from ...models import EndpointKind, VersionCatalogEntry
from ...utils.error_logging import log_and_raise
from ..record_store import Record, Table
from .base import TableRepository


class VersionRepository(TableRepository[VersionCatalogEntry]):
    """Repository for the protocol version catalog."""

    table = Table.VERSIONS
    model = VersionCatalogEntry

    async def list_all(self, kind: EndpointKind | None = None) -> list[VersionCatalogEntry]:
        entries = self._parse_all(await self._store.find_all(self.table))
        if kind is None:
            return entries
        return [e for e in entries if e.kind == kind]

    async def count(self) -> int:
        return await self._store.count(self.table)

    async def add(self, entry: VersionCatalogEntry) -> VersionCatalogEntry:
        """
        Insert a catalog entry.

        Raises:
            DuplicateVersionError: If (kind, protocol_id) is already present
        """

        def _insert_unique(records: list[Record]) -> tuple[list[Record], bool]:
            for record in records:
                existing = self._parse(record) if isinstance(record, dict) else None
                if existing is not None and existing.key == entry.key:
                    return records, False
            records.append(self._dump(entry))
            return records, True

        inserted = await self._store.mutate(self.table, _insert_unique)
        if not inserted:
            log_and_raise(
                DuplicateVersionError,
                f"Version {entry.kind.value}/{entry.protocol_id} already exists",
                details={"kind": entry.kind.value, "protocol_id": entry.protocol_id},
                user_friendly=ErrorMessages.DUPLICATE_VERSION,
            )
        self._logger.info(
            "Version added", kind=entry.kind.value, protocol_id=entry.protocol_id, version_name=entry.version_name
        )
        return entry

    async def delete(self, kind: EndpointKind, protocol_id: int) -> bool:
        removed = await self._store.delete_one(
            self.table,
            lambda r: r.get("kind", EndpointKind.BEDROCK.value) == kind.value and r.get("protocol_id") == protocol_id,
        )
        return removed is not None

    async def seed_if_empty(self, entries: list[VersionCatalogEntry]) -> int:
        """Populate the catalog from entries when it holds no rows at all."""

        def _seed(records: list[Record]) -> tuple[list[Record], int]:
            if records:
                return records, 0
            return [self._dump(e) for e in entries], len(entries)

        seeded = await self._store.mutate(self.table, _seed)
        if seeded:
            self._logger.info("Version catalog seeded", entries=seeded)
        return seeded
