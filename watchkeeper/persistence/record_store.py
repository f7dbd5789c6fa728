"""
File-backed record store for Watchkeeper.

Each table lives in its own JSON file under the data directory and is read
and rewritten whole on every operation. Access to a table is serialized by
a table-scoped anyio Lock that is held for exactly one store call and
released on every exit path. Operations on different tables interleave
freely.

Missing files read as the table's empty default. Malformed content is
logged and also read as the default so a hand-edited file can never take
the process down. Write failures raise StoreError.
"""

import json
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Any, TypeVar

import aiofiles
import aiofiles.os
from anyio import Lock

from ..error_types import ErrorType
from ..exceptions import StoreError
from ..logging_config import get_logger
from ..utils.error_logging import log_and_raise

logger = get_logger(__name__)

Record = dict[str, Any]
Predicate = Callable[[Record], bool]
RecordPatch = Callable[[Record], Record]
R = TypeVar("R")


class Table(str, Enum):
    """Tables known to the store; the value is the file stem."""

    USERS = "users"
    ENDPOINTS = "endpoints"
    VERSIONS = "versions"
    CONFIG = "config"

    @property
    def is_document(self) -> bool:
        """Document tables hold a single mapping instead of a list of records."""
        return self is Table.CONFIG

    def empty(self) -> Any:
        return {} if self.is_document else []


def _match_all(_record: Record) -> bool:
    return True


class RecordStore:
    """
    Serialized JSON table store.

    Each public coroutine acquires the table lock once, performs a single
    read or read-modify-write against the file, and releases the lock.
    ``update_where`` and ``mutate`` give callers a read-modify-write that
    cannot interleave with other writers of the same table.
    """

    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        # anyio locks hand ownership to waiters in FIFO order
        self._locks: dict[Table, Lock] = {table: Lock() for table in Table}

    def path_for(self, table: Table) -> Path:
        return self.data_dir / f"{table.value}.json"

    # --- raw file access (callers hold the table lock) ---------------------

    async def _read(self, table: Table) -> Any:
        path = self.path_for(table)
        if not await aiofiles.os.path.exists(path):
            return table.empty()

        try:
            async with aiofiles.open(path, encoding="utf-8") as f:
                raw = await f.read()
            content = json.loads(raw) if raw.strip() else table.empty()
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error(
                "Table content unreadable, using default",
                table=table.value,
                file_path=str(path),
                error=str(e),
                error_type=ErrorType.STORE_CORRUPTION.value,
            )
            return table.empty()

        expected = dict if table.is_document else list
        if not isinstance(content, expected):
            logger.error(
                "Table content has unexpected shape, using default",
                table=table.value,
                file_path=str(path),
                found=type(content).__name__,
                error_type=ErrorType.STORE_CORRUPTION.value,
            )
            return table.empty()
        return content

    async def _write(self, table: Table, content: Any, operation: str) -> None:
        path = self.path_for(table)
        tmp_path = path.with_name(f".{path.name}.tmp")
        try:
            payload = json.dumps(content, indent=2, ensure_ascii=False, default=str)
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(payload)
            await aiofiles.os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as e:
            log_and_raise(
                StoreError,
                f"Failed to write table {table.value}: {e}",
                details={"file_path": str(path), "error": str(e)},
                operation=operation,
                table=table.value,
            )

    def _require_records(self, table: Table) -> None:
        if table.is_document:
            raise ValueError(f"Table {table.value} holds a document, not records")

    # --- record tables -----------------------------------------------------

    async def find_all(self, table: Table, predicate: Predicate | None = None) -> list[Record]:
        """Return every record matching predicate (all records when None)."""
        self._require_records(table)
        predicate = predicate or _match_all
        async with self._locks[table]:
            records = await self._read(table)
        return [r for r in records if isinstance(r, dict) and predicate(r)]

    async def find_one(self, table: Table, predicate: Predicate) -> Record | None:
        """Return the first record matching predicate, or None."""
        self._require_records(table)
        async with self._locks[table]:
            records = await self._read(table)
        for record in records:
            if isinstance(record, dict) and predicate(record):
                return record
        return None

    async def count(self, table: Table, predicate: Predicate | None = None) -> int:
        self._require_records(table)
        predicate = predicate or _match_all
        async with self._locks[table]:
            records = await self._read(table)
        return sum(1 for r in records if isinstance(r, dict) and predicate(r))

    async def insert(self, table: Table, record: Record) -> Record:
        """Append record to the table and rewrite it."""
        self._require_records(table)
        async with self._locks[table]:
            records = await self._read(table)
            records.append(record)
            await self._write(table, records, "insert")
        logger.debug("Record inserted", table=table.value)
        return record

    async def update_one(self, table: Table, predicate: Predicate, patch: RecordPatch) -> Record | None:
        """
        Apply patch to the first matching record.

        Returns:
            The updated record, or None when nothing matched (no write happens)
        """
        self._require_records(table)
        async with self._locks[table]:
            records = await self._read(table)
            for index, record in enumerate(records):
                if isinstance(record, dict) and predicate(record):
                    updated = patch(dict(record))
                    records[index] = updated
                    await self._write(table, records, "update_one")
                    return updated
        return None

    async def update_where(self, table: Table, predicate: Predicate, patch: RecordPatch) -> int:
        """
        Apply patch to every matching record under a single lock hold.

        Returns:
            Number of records updated
        """
        self._require_records(table)
        updated = 0
        async with self._locks[table]:
            records = await self._read(table)
            for index, record in enumerate(records):
                if isinstance(record, dict) and predicate(record):
                    records[index] = patch(dict(record))
                    updated += 1
            if updated:
                await self._write(table, records, "update_where")
        return updated

    async def delete_one(self, table: Table, predicate: Predicate) -> Record | None:
        """Remove the first matching record and return it, or None."""
        self._require_records(table)
        async with self._locks[table]:
            records = await self._read(table)
            for index, record in enumerate(records):
                if isinstance(record, dict) and predicate(record):
                    del records[index]
                    await self._write(table, records, "delete_one")
                    return record
        return None

    async def delete_where(self, table: Table, predicate: Predicate) -> int:
        self._require_records(table)
        async with self._locks[table]:
            records = await self._read(table)
            kept = [r for r in records if not (isinstance(r, dict) and predicate(r))]
            removed = len(records) - len(kept)
            if removed:
                await self._write(table, kept, "delete_where")
        return removed

    # --- whole-table access ------------------------------------------------

    async def mutate(self, table: Table, fn: Callable[[Any], tuple[Any, R]]) -> R:
        """
        Read-modify-write the whole table under one lock hold.

        fn receives the current content (list or mapping) and returns the
        content to write back together with a result for the caller.
        """
        async with self._locks[table]:
            content = await self._read(table)
            new_content, result = fn(content)
            await self._write(table, new_content, "mutate")
        return result

    async def read_document(self, table: Table) -> dict[str, Any]:
        if not table.is_document:
            raise ValueError(f"Table {table.value} holds records, not a document")
        async with self._locks[table]:
            return await self._read(table)

    async def write_document(self, table: Table, document: dict[str, Any]) -> None:
        if not table.is_document:
            raise ValueError(f"Table {table.value} holds records, not a document")
        async with self._locks[table]:
            await self._write(table, document, "write_document")
