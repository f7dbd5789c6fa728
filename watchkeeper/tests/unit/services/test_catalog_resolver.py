"""
Tests for the catalog resolver and version administration.
"""

# pylint: disable=redefined-outer-name

import pytest

from watchkeeper.exceptions import DuplicateVersionError, ResourceNotFoundError, ValidationError
from watchkeeper.models import EndpointKind
from watchkeeper.services import CatalogResolver
from watchkeeper.services.version_seed import BEDROCK_VERSIONS, seed_entries


@pytest.fixture
def catalog(version_repo):
    return CatalogResolver(version_repo)


class TestSeed:
    """Seeding an empty catalog."""

    def test_seed_table_bounds(self):
        entries = seed_entries()
        assert len(entries) == len(BEDROCK_VERSIONS) == 30
        assert min(e.protocol_id for e in entries) == 422
        assert BEDROCK_VERSIONS[827] == "1.21.100"
        assert BEDROCK_VERSIONS[422] == "1.16.201"

    @pytest.mark.asyncio
    async def test_seed_if_empty_runs_once(self, catalog):
        assert await catalog.seed_if_empty() == 30
        assert await catalog.seed_if_empty() == 0


class TestResolve:
    """Protocol id lookups."""

    @pytest.mark.asyncio
    async def test_resolves_known_protocol(self, catalog):
        await catalog.seed_if_empty()
        assert await catalog.resolve(EndpointKind.BEDROCK, 827) == "1.21.100"

    @pytest.mark.asyncio
    async def test_unknown_protocol_is_none(self, catalog):
        await catalog.seed_if_empty()
        assert await catalog.resolve(EndpointKind.BEDROCK, 1) is None

    @pytest.mark.asyncio
    async def test_edits_are_visible_immediately(self, catalog):
        """No stale lookup map survives an add or delete."""
        assert await catalog.resolve(EndpointKind.BEDROCK, 900) is None

        await catalog.add_version(EndpointKind.BEDROCK, 900, "1.22.0")
        assert await catalog.resolve(EndpointKind.BEDROCK, 900) == "1.22.0"

        await catalog.delete_version(EndpointKind.BEDROCK, 900)
        assert await catalog.resolve(EndpointKind.BEDROCK, 900) is None


class TestAdministration:
    """Adding, listing and deleting versions."""

    @pytest.mark.asyncio
    async def test_list_versions_newest_first(self, catalog):
        await catalog.add_version(EndpointKind.BEDROCK, 700, "a")
        await catalog.add_version(EndpointKind.BEDROCK, 800, "b")
        await catalog.add_version(EndpointKind.BEDROCK, 750, "c")

        assert [e.protocol_id for e in await catalog.list_versions()] == [800, 750, 700]

    @pytest.mark.asyncio
    async def test_add_duplicate_raises(self, catalog):
        await catalog.add_version(EndpointKind.BEDROCK, 700, "a")
        with pytest.raises(DuplicateVersionError):
            await catalog.add_version(EndpointKind.BEDROCK, 700, "b")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("protocol_id", "name"), [(0, "x"), (-5, "x"), (10, "   ")])
    async def test_add_rejects_bad_input(self, catalog, protocol_id, name):
        with pytest.raises(ValidationError):
            await catalog.add_version(EndpointKind.BEDROCK, protocol_id, name)

    @pytest.mark.asyncio
    async def test_delete_missing_raises_not_found(self, catalog):
        with pytest.raises(ResourceNotFoundError):
            await catalog.delete_version(EndpointKind.BEDROCK, 12345)
