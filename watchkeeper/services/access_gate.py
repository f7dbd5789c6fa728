"""
Access gate.

Decides whether a user may interact with the bot at all: maintenance mode,
bans and required group membership, in that order. Reads go through the
subject-status and eligibility caches.
"""

from dataclasses import dataclass, field
from enum import Enum

from ..caching import EligibilityCacheService, SubjectStatusCacheService
from ..config import AdminConfig
from ..error_types import ErrorMessages
from ..exceptions import ValidationError, create_error_context
from ..logging_config import get_logger
from ..models import AddRequiredGroup, RemoveRequiredGroup, SetOnline
from ..persistence import ConfigRepository
from ..structured_logging import bind_request_context, clear_request_context
from ..utils.error_logging import log_and_raise

logger = get_logger(__name__)


class AccessVerdict(str, Enum):
    ALLOWED = "allowed"
    MAINTENANCE = "maintenance"
    BANNED = "banned"
    NOT_ELIGIBLE = "not_eligible"


@dataclass(frozen=True)
class AccessDecision:
    verdict: AccessVerdict
    missing_groups: tuple[str, ...] = field(default_factory=tuple)

    @property
    def allowed(self) -> bool:
        return self.verdict is AccessVerdict.ALLOWED


class AccessGate:
    """Per-interaction access checks plus the admin switches behind them."""

    def __init__(
        self,
        config_repository: ConfigRepository,
        subject_status: SubjectStatusCacheService,
        eligibility: EligibilityCacheService,
        admin_config: AdminConfig,
    ):
        self._config_repository = config_repository
        self._subject_status = subject_status
        self._eligibility = eligibility
        self._admin = admin_config

    async def evaluate(self, user_id: int) -> AccessDecision:
        """
        Decide whether user_id may proceed.

        The main admin always passes. Other admins bypass the membership
        check but not maintenance mode.
        """
        # each evaluated interaction starts a fresh log context
        clear_request_context()
        bind_request_context(user_id=user_id)

        if user_id == self._admin.user_id:
            return AccessDecision(AccessVerdict.ALLOWED)

        document = await self._config_repository.get()
        if not document.online:
            return AccessDecision(AccessVerdict.MAINTENANCE)

        status = await self._subject_status.get(user_id)
        if status is not None and status.is_banned:
            return AccessDecision(AccessVerdict.BANNED)
        if status is not None and status.is_admin:
            return AccessDecision(AccessVerdict.ALLOWED)

        result = await self._eligibility.check(user_id)
        if not result.eligible:
            logger.debug("User not eligible", user_id=user_id, missing_groups=list(result.missing_groups))
            return AccessDecision(AccessVerdict.NOT_ELIGIBLE, missing_groups=result.missing_groups)
        return AccessDecision(AccessVerdict.ALLOWED)

    async def set_online(self, online: bool) -> bool:
        document = await self._config_repository.apply(SetOnline(online))
        logger.info("Service availability changed", online=document.online)
        return document.online

    async def toggle_online(self) -> bool:
        current = await self._config_repository.get()
        return await self.set_online(not current.online)

    async def add_required_group(self, group_id: str) -> list[str]:
        """
        Require membership in group_id.

        Raises:
            ValidationError: If group_id is not an @-prefixed handle
        """
        group_id = group_id.strip()
        if len(group_id) < 2 or not group_id.startswith("@"):
            log_and_raise(
                ValidationError,
                f"Invalid group id {group_id!r}",
                context=create_error_context(operation="add_required_group"),
                user_friendly=ErrorMessages.INVALID_INPUT,
                field="group_id",
            )
        document = await self._config_repository.apply(AddRequiredGroup(group_id))
        self._eligibility.invalidate_all()
        logger.info("Required group added", group_id=group_id)
        return list(document.required_groups)

    async def remove_required_group(self, group_id: str) -> list[str]:
        document = await self._config_repository.apply(RemoveRequiredGroup(group_id.strip()))
        self._eligibility.invalidate_all()
        logger.info("Required group removed", group_id=group_id)
        return list(document.required_groups)

    async def list_required_groups(self) -> list[str]:
        return list((await self._config_repository.get()).required_groups)
