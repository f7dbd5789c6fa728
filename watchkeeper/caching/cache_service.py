"""
Cache services for the access gate.

SubjectStatusCacheService keeps a short-lived projection of each user's
ban/admin/language fields. EligibilityCacheService remembers whether a
user belongs to every required group so the membership collaborator is
not queried on every interaction.
"""

from dataclasses import dataclass, field

from ..collaborators import NON_MEMBER_STATUSES, MembershipChecker
from ..config import CacheConfig
from ..logging_config import get_logger
from ..models import SubjectStatus, User
from ..persistence.repositories import ConfigRepository, UserRepository
from .ttl_cache import TTLCache

logger = get_logger(__name__)


@dataclass(frozen=True)
class EligibilityResult:
    """Outcome of a membership check; missing_groups is empty when eligible."""

    eligible: bool
    missing_groups: tuple[str, ...] = field(default_factory=tuple)


class SubjectStatusCacheService:
    """Subject-status cache backed by the user table."""

    def __init__(self, users: UserRepository, ttl_seconds: float, cache: TTLCache[int, SubjectStatus] | None = None):
        self._users = users
        self._ttl = ttl_seconds
        self.cache: TTLCache[int, SubjectStatus] = cache or TTLCache("subject_status")

    async def get(self, user_id: int) -> SubjectStatus | None:
        """
        Return the cached status, loading it from the store on a miss.

        Returns:
            The subject status, or None for an unknown user (not cached)
        """
        cached = self.cache.get(user_id)
        if cached is not None:
            return cached

        user = await self._users.get(user_id)
        if user is None:
            return None
        status = user.status()
        self.cache.set(user_id, status, self._ttl)
        return status

    def refresh(self, user: User) -> SubjectStatus:
        """Overwrite the entry after a ban/admin/language mutation."""
        status = user.status()
        self.cache.set(user.user_id, status, self._ttl)
        logger.debug("Subject status refreshed", user_id=user.user_id)
        return status

    def invalidate(self, user_id: int) -> None:
        self.cache.delete(user_id)


class EligibilityCacheService:
    """
    Membership eligibility with TTL caching.

    On a miss every required group is checked with one collaborator call.
    A membership lookup that raises counts as "not a member" for that group.
    """

    def __init__(
        self,
        config_repository: ConfigRepository,
        membership_checker: MembershipChecker,
        cache_config: CacheConfig,
        cache: TTLCache[int, EligibilityResult] | None = None,
    ):
        self._config_repository = config_repository
        self._membership_checker = membership_checker
        self._ttls = cache_config
        self.cache: TTLCache[int, EligibilityResult] = cache or TTLCache("eligibility")

    async def check(self, user_id: int) -> EligibilityResult:
        cached = self.cache.get(user_id)
        if cached is not None:
            return cached

        document = await self._config_repository.get()
        if not document.required_groups:
            result = EligibilityResult(eligible=True)
            self.cache.set(user_id, result, self._ttls.eligibility_open_ttl_seconds)
            return result

        missing: list[str] = []
        for group_id in document.required_groups:
            if not await self._is_member(group_id, user_id):
                missing.append(group_id)

        result = EligibilityResult(eligible=not missing, missing_groups=tuple(missing))
        ttl = self._ttls.eligibility_checked_ttl_seconds if result.eligible else self._ttls.eligibility_denied_ttl_seconds
        self.cache.set(user_id, result, ttl)
        logger.debug("Eligibility checked", user_id=user_id, eligible=result.eligible, missing_groups=missing)
        return result

    async def _is_member(self, group_id: str, user_id: int) -> bool:
        try:
            status = await self._membership_checker.get_member_status(group_id, user_id)
        except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: membership collaborator failures of any kind mean "not verified"
            logger.warning("Membership check failed", group_id=group_id, user_id=user_id, error=str(e))
            return False
        return status not in NON_MEMBER_STATUSES

    def invalidate(self, user_id: int) -> None:
        self.cache.delete(user_id)

    def invalidate_all(self) -> None:
        """Bulk invalidation for when the required-group list changes."""
        self.cache.clear()
