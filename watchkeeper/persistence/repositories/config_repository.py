"""Repository for the single service-wide ConfigDocument."""

from typing import Any

from pydantic import ValidationError as PydanticValidationError

from ...error_types import ErrorType
from ...logging_config import get_logger
from ...models import ConfigDocument, ConfigPatch
from ...models.patches import apply_config_patch
from ..record_store import RecordStore, Table


class ConfigRepository:
    """Reads and patches config.json, keeping keys it does not know about."""

    table = Table.CONFIG

    def __init__(self, store: RecordStore) -> None:
        self._store = store
        self._logger = get_logger(__name__)

    def _parse(self, raw: dict[str, Any]) -> ConfigDocument:
        try:
            return ConfigDocument.model_validate(raw)
        except PydanticValidationError as e:
            self._logger.error(
                "Config document invalid, using defaults",
                error_count=e.error_count(),
                error_type=ErrorType.STORE_CORRUPTION.value,
            )
            return ConfigDocument()

    async def get(self) -> ConfigDocument:
        return self._parse(await self._store.read_document(self.table))

    async def apply(self, patch: ConfigPatch) -> ConfigDocument:
        """Apply a typed patch under one lock hold and return the new document."""

        def _patch(raw: dict[str, Any]) -> tuple[dict[str, Any], ConfigDocument]:
            document = apply_config_patch(self._parse(raw), patch)
            return {**raw, **document.model_dump(mode="json")}, document

        document = await self._store.mutate(self.table, _patch)
        self._logger.info("Config updated", patch=type(patch).__name__)
        return document
