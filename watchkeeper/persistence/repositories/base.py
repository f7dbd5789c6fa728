"""Shared row conversion for table repositories."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ...error_types import ErrorType
from ...logging_config import get_logger
from ..record_store import Record, RecordStore, Table

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


class TableRepository(Generic[M]):
    """Base for repositories that map raw table rows to one pydantic model."""

    table: Table
    model: type[M]

    def __init__(self, store: RecordStore) -> None:
        self._store = store
        self._logger = get_logger(self.__class__.__module__)

    def _parse(self, record: Record) -> M | None:
        """Convert a raw row, skipping (and logging) rows that fail validation."""
        try:
            return self.model.model_validate(record)
        except PydanticValidationError as e:
            self._logger.warning(
                "Skipping malformed row",
                table=self.table.value,
                error_count=e.error_count(),
                error_type=ErrorType.STORE_CORRUPTION.value,
            )
            return None

    def _parse_all(self, records: list[Record]) -> list[M]:
        parsed = (self._parse(r) for r in records)
        return [m for m in parsed if m is not None]

    @staticmethod
    def _dump(model: BaseModel) -> dict[str, Any]:
        return model.model_dump(mode="json")
