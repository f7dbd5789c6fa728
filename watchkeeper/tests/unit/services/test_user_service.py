"""
Tests for the user service.
"""

# pylint: disable=redefined-outer-name

import pytest

from watchkeeper.caching import EligibilityCacheService, SubjectStatusCacheService
from watchkeeper.exceptions import PermissionDeniedError, ResourceNotFoundError
from watchkeeper.models import Endpoint
from watchkeeper.services import UserService
from watchkeeper.tests.fakes import FakeMembershipChecker

ADMIN_ID = 1000


@pytest.fixture
def subject_status(user_repo):
    return SubjectStatusCacheService(user_repo, ttl_seconds=60)


@pytest.fixture
def service(user_repo, endpoint_repo, manager, subject_status, config_repo, cache_config, admin_config):
    eligibility = EligibilityCacheService(config_repo, FakeMembershipChecker(), cache_config)
    return UserService(user_repo, endpoint_repo, manager, subject_status, eligibility, admin_config)


class TestEnsureUser:
    @pytest.mark.asyncio
    async def test_first_interaction_creates_user(self, service, user_repo):
        user = await service.ensure_user(5, "Ada")

        assert user.display_name == "Ada"
        assert user.is_banned is False
        assert await user_repo.get(5) == user

    @pytest.mark.asyncio
    async def test_second_interaction_keeps_record(self, service):
        first = await service.ensure_user(5, "Ada")
        second = await service.ensure_user(5, "Someone Else")

        assert second == first

    @pytest.mark.asyncio
    async def test_get_unknown_user(self, service):
        with pytest.raises(ResourceNotFoundError):
            await service.get_user(404)


class TestModeration:
    """Ban, unban and admin changes."""

    @pytest.mark.asyncio
    async def test_ban_refreshes_subject_status(self, service, subject_status):
        await service.ensure_user(5)
        assert (await subject_status.get(5)).is_banned is False

        await service.ban(5)

        assert (await subject_status.get(5)).is_banned is True
        await service.unban(5)
        assert (await subject_status.get(5)).is_banned is False

    @pytest.mark.asyncio
    async def test_main_admin_cannot_be_banned(self, service):
        await service.ensure_user(ADMIN_ID)

        with pytest.raises(PermissionDeniedError):
            await service.ban(ADMIN_ID)

    @pytest.mark.asyncio
    async def test_main_admin_cannot_be_demoted(self, service):
        await service.ensure_user(ADMIN_ID)

        with pytest.raises(PermissionDeniedError):
            await service.set_admin(ADMIN_ID, False)

    @pytest.mark.asyncio
    async def test_grant_admin(self, service, subject_status):
        await service.ensure_user(5)

        user = await service.set_admin(5, True)

        assert user.is_admin is True
        assert (await subject_status.get(5)).is_admin is True

    @pytest.mark.asyncio
    async def test_ban_unknown_user(self, service):
        with pytest.raises(ResourceNotFoundError):
            await service.ban(404)

    @pytest.mark.asyncio
    async def test_set_language(self, service, subject_status):
        await service.ensure_user(5)

        user = await service.set_language(5, "uk")

        assert user.language == "uk"
        assert (await subject_status.get(5)).language == "uk"


@pytest.mark.asyncio
async def test_stats(service, endpoint_repo, manager):
    await service.ensure_user(1)
    await service.ensure_user(2)
    await service.ensure_user(3)
    await service.ban(2)
    await service.set_admin(3, True)
    await endpoint_repo.insert(Endpoint(id="e1", owner_id=1, host="h", port=1))
    await manager.start("e1")

    stats = await service.stats()

    assert stats.total_users == 3
    assert stats.banned_users == 1
    assert stats.admin_users == 1
    assert stats.total_endpoints == 1
    assert stats.active_watchers == 1
