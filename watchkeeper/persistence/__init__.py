"""Persistence layer: JSON record store and typed repositories."""

from .record_store import RecordStore, Table
from .repositories import ConfigRepository, EndpointRepository, UserRepository, VersionRepository

__all__ = [
    "ConfigRepository",
    "EndpointRepository",
    "RecordStore",
    "Table",
    "UserRepository",
    "VersionRepository",
]
