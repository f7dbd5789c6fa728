"""TTL caches in front of the record store and the membership collaborator."""

from .cache_service import EligibilityCacheService, EligibilityResult, SubjectStatusCacheService
from .ttl_cache import CacheEntry, TTLCache

__all__ = [
    "CacheEntry",
    "EligibilityCacheService",
    "EligibilityResult",
    "SubjectStatusCacheService",
    "TTLCache",
]
