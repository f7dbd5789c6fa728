"""Typed repositories over the record store, one per table."""

from .config_repository import ConfigRepository
from .endpoint_repository import EndpointRepository
from .user_repository import UserRepository
from .version_repository import VersionRepository

__all__ = ["ConfigRepository", "EndpointRepository", "UserRepository", "VersionRepository"]
