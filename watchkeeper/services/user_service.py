"""
User service.

Users are created on first interaction and afterwards only change their
ban, admin and language fields. Every such change refreshes the
subject-status cache so the access gate sees it immediately.
"""

from dataclasses import dataclass

from ..caching import EligibilityCacheService, SubjectStatusCacheService
from ..config import AdminConfig
from ..error_types import ErrorMessages
from ..exceptions import PermissionDeniedError, ResourceNotFoundError, create_error_context
from ..logging_config import get_logger
from ..models import SetAdmin, SetBanned, SetLanguage, User, UserPatch
from ..persistence import EndpointRepository, UserRepository
from ..realtime import SessionManager
from ..utils.error_logging import log_and_raise

logger = get_logger(__name__)


@dataclass(frozen=True)
class SystemStats:
    """Counters shown to the admin."""

    total_users: int
    banned_users: int
    admin_users: int
    total_endpoints: int
    active_watchers: int


class UserService:
    """User lifecycle and admin-side user management."""

    def __init__(
        self,
        users: UserRepository,
        endpoints: EndpointRepository,
        session_manager: SessionManager,
        subject_status: SubjectStatusCacheService,
        eligibility: EligibilityCacheService,
        admin_config: AdminConfig,
    ):
        self._users = users
        self._endpoints = endpoints
        self._session_manager = session_manager
        self._subject_status = subject_status
        self._eligibility = eligibility
        self._admin = admin_config

    def is_main_admin(self, user_id: int) -> bool:
        return user_id == self._admin.user_id

    async def ensure_user(self, user_id: int, display_name: str = "") -> User:
        """Return the stored user, creating it on first interaction."""
        user, created = await self._users.get_or_create(User(user_id=user_id, display_name=display_name))
        if created:
            logger.info("New user joined", user_id=user_id)
        return user

    async def get_user(self, user_id: int) -> User:
        user = await self._users.get(user_id)
        if user is None:
            log_and_raise(
                ResourceNotFoundError,
                f"User {user_id} not found",
                context=create_error_context(user_id=user_id, operation="get_user"),
                resource_type="user",
                resource_id=str(user_id),
                user_friendly=ErrorMessages.USER_NOT_FOUND,
            )
        return user

    async def ban(self, user_id: int) -> User:
        """
        Ban a user.

        Raises:
            PermissionDeniedError: If user_id is the main admin
            ResourceNotFoundError: If the user does not exist
        """
        self._refuse_main_admin(user_id, "ban")
        return await self._apply(user_id, SetBanned(True))

    async def unban(self, user_id: int) -> User:
        self._refuse_main_admin(user_id, "unban")
        return await self._apply(user_id, SetBanned(False))

    async def set_admin(self, user_id: int, is_admin: bool) -> User:
        """Grant or revoke admin; the main admin cannot be demoted."""
        if not is_admin:
            self._refuse_main_admin(user_id, "revoke_admin")
        return await self._apply(user_id, SetAdmin(is_admin))

    async def set_language(self, user_id: int, language: str) -> User:
        user = await self._apply(user_id, SetLanguage(language))
        self._eligibility.invalidate(user_id)
        return user

    async def stats(self) -> SystemStats:
        users = await self._users.list_all()
        return SystemStats(
            total_users=len(users),
            banned_users=sum(1 for u in users if u.is_banned),
            admin_users=sum(1 for u in users if u.is_admin),
            total_endpoints=await self._endpoints.count(),
            active_watchers=self._session_manager.active_count(),
        )

    async def _apply(self, user_id: int, patch: UserPatch) -> User:
        updated = await self._users.update(user_id, patch)
        if updated is None:
            log_and_raise(
                ResourceNotFoundError,
                f"User {user_id} not found",
                context=create_error_context(user_id=user_id, operation=type(patch).__name__),
                resource_type="user",
                resource_id=str(user_id),
                user_friendly=ErrorMessages.USER_NOT_FOUND,
            )
        self._subject_status.refresh(updated)
        logger.info("User updated", user_id=user_id, patch=type(patch).__name__)
        return updated

    def _refuse_main_admin(self, user_id: int, operation: str) -> None:
        if self.is_main_admin(user_id):
            log_and_raise(
                PermissionDeniedError,
                f"Operation {operation} is not allowed on the main admin",
                context=create_error_context(user_id=user_id, operation=operation),
                user_friendly=ErrorMessages.PERMISSION_DENIED,
            )
