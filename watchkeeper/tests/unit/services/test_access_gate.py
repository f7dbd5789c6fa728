"""
Tests for the access gate.
"""

# pylint: disable=redefined-outer-name

import pytest
from structlog.contextvars import bind_contextvars, get_contextvars

from watchkeeper.caching import EligibilityCacheService, SubjectStatusCacheService
from watchkeeper.exceptions import ValidationError
from watchkeeper.models import SetAdmin, SetBanned, User
from watchkeeper.services import AccessGate, AccessVerdict
from watchkeeper.tests.fakes import FakeMembershipChecker

ADMIN_ID = 1000


@pytest.fixture
def membership():
    return FakeMembershipChecker()


@pytest.fixture
def subject_status(user_repo):
    return SubjectStatusCacheService(user_repo, ttl_seconds=60)


@pytest.fixture
def gate(config_repo, subject_status, membership, cache_config, admin_config):
    eligibility = EligibilityCacheService(config_repo, membership, cache_config)
    return AccessGate(config_repo, subject_status, eligibility, admin_config)


async def add_user(user_repo, subject_status, user_id: int, *patches) -> None:
    await user_repo.insert(User(user_id=user_id))
    for patch in patches:
        subject_status.refresh(await user_repo.update(user_id, patch))


class TestEvaluate:
    """Order of the access checks."""

    @pytest.mark.asyncio
    async def test_open_service_allows_everyone(self, gate, user_repo, subject_status):
        await add_user(user_repo, subject_status, 5)

        decision = await gate.evaluate(5)

        assert decision.allowed
        assert decision.missing_groups == ()

    @pytest.mark.asyncio
    async def test_evaluate_tags_log_context_with_user(self, gate, user_repo, subject_status):
        await add_user(user_repo, subject_status, 5)
        bind_contextvars(user_id=4, endpoint_id="left over")

        await gate.evaluate(5)

        assert get_contextvars() == {"user_id": 5}

    @pytest.mark.asyncio
    async def test_maintenance_blocks_users_and_admins(self, gate, user_repo, subject_status):
        await add_user(user_repo, subject_status, 5)
        await add_user(user_repo, subject_status, 6, SetAdmin(True))
        await gate.set_online(False)

        assert (await gate.evaluate(5)).verdict is AccessVerdict.MAINTENANCE
        assert (await gate.evaluate(6)).verdict is AccessVerdict.MAINTENANCE

    @pytest.mark.asyncio
    async def test_main_admin_always_allowed(self, gate):
        await gate.set_online(False)
        await gate.add_required_group("@news")

        assert (await gate.evaluate(ADMIN_ID)).allowed

    @pytest.mark.asyncio
    async def test_banned_user(self, gate, user_repo, subject_status):
        await add_user(user_repo, subject_status, 5, SetBanned(True))

        assert (await gate.evaluate(5)).verdict is AccessVerdict.BANNED

    @pytest.mark.asyncio
    async def test_missing_membership(self, gate, user_repo, subject_status, membership):
        await add_user(user_repo, subject_status, 5)
        await gate.add_required_group("@news")
        await gate.add_required_group("@chat")
        membership.set_status("@chat", 5, "member")

        decision = await gate.evaluate(5)

        assert decision.verdict is AccessVerdict.NOT_ELIGIBLE
        assert decision.missing_groups == ("@news",)

    @pytest.mark.asyncio
    async def test_admin_skips_membership(self, gate, user_repo, subject_status, membership):
        await add_user(user_repo, subject_status, 6, SetAdmin(True))
        await gate.add_required_group("@news")

        assert (await gate.evaluate(6)).allowed
        assert membership.calls == []

    @pytest.mark.asyncio
    async def test_unknown_user_still_checked(self, gate):
        """Users not yet in the store are judged on membership alone."""
        await gate.add_required_group("@news")

        assert (await gate.evaluate(77)).verdict is AccessVerdict.NOT_ELIGIBLE


class TestAdminSwitches:
    """Maintenance mode and the required-group list."""

    @pytest.mark.asyncio
    async def test_toggle_online(self, gate):
        assert await gate.toggle_online() is False
        assert await gate.toggle_online() is True

    @pytest.mark.asyncio
    async def test_required_groups_have_set_semantics(self, gate):
        await gate.add_required_group("@news")
        groups = await gate.add_required_group(" @news ")

        assert groups == ["@news"]
        assert await gate.remove_required_group("@news") == []
        assert await gate.list_required_groups() == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("group_id", ["", "@", "news"])
    async def test_invalid_group_id(self, gate, group_id):
        with pytest.raises(ValidationError):
            await gate.add_required_group(group_id)

    @pytest.mark.asyncio
    async def test_group_change_resets_eligibility(self, gate, user_repo, subject_status, membership):
        await add_user(user_repo, subject_status, 5)
        await gate.add_required_group("@news")
        assert not (await gate.evaluate(5)).allowed

        await gate.remove_required_group("@news")

        assert (await gate.evaluate(5)).allowed
