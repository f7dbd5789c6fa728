"""
Catalog resolver.

Maps the protocol id reported by a probed server to a version name. The
lookup map is rebuilt from the versions table on every call, so catalog
edits take effect immediately.
"""

from ..error_types import ErrorMessages
from ..exceptions import ResourceNotFoundError, ValidationError
from ..logging_config import get_logger
from ..models import EndpointKind, VersionCatalogEntry
from ..persistence.protocols import VersionRepositoryProtocol
from ..utils.error_logging import log_and_raise
from .version_seed import seed_entries

logger = get_logger(__name__)


class CatalogResolver:
    """Resolves and administers the protocol version catalog."""

    def __init__(self, versions: VersionRepositoryProtocol) -> None:
        self._versions = versions

    async def resolve(self, kind: EndpointKind, protocol_id: int) -> str | None:
        """
        Look up the version name for a probed protocol id.

        Returns:
            The version name, or None when the catalog has no such entry
        """
        catalog = {entry.key: entry.version_name for entry in await self._versions.list_all()}
        version_name = catalog.get((kind, protocol_id))
        if version_name is None:
            logger.info("Protocol id not in catalog", kind=kind.value, protocol_id=protocol_id)
        return version_name

    async def list_versions(self, kind: EndpointKind | None = None) -> list[VersionCatalogEntry]:
        """Catalog entries, newest protocol first."""
        entries = await self._versions.list_all(kind)
        return sorted(entries, key=lambda e: e.protocol_id, reverse=True)

    async def add_version(self, kind: EndpointKind, protocol_id: int, version_name: str) -> VersionCatalogEntry:
        """
        Add a catalog entry.

        Raises:
            ValidationError: If the protocol id or name is unusable
            DuplicateVersionError: If (kind, protocol_id) already exists
        """
        version_name = version_name.strip()
        if protocol_id <= 0 or not version_name:
            log_and_raise(
                ValidationError,
                "Version requires a positive protocol id and a name",
                details={"protocol_id": protocol_id, "version_name": version_name},
                user_friendly=ErrorMessages.INVALID_INPUT,
            )
        entry = VersionCatalogEntry(kind=kind, protocol_id=protocol_id, version_name=version_name)
        return await self._versions.add(entry)

    async def delete_version(self, kind: EndpointKind, protocol_id: int) -> None:
        """
        Remove a catalog entry.

        Raises:
            ResourceNotFoundError: If the entry does not exist
        """
        if not await self._versions.delete(kind, protocol_id):
            log_and_raise(
                ResourceNotFoundError,
                f"Version {kind.value}/{protocol_id} not found",
                resource_type="version",
                resource_id=f"{kind.value}/{protocol_id}",
                user_friendly=ErrorMessages.VERSION_NOT_FOUND,
            )
        logger.info("Version deleted", kind=kind.value, protocol_id=protocol_id)

    async def seed_if_empty(self) -> int:
        return await self._versions.seed_if_empty(seed_entries())
