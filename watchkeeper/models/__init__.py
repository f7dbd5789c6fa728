"""Persisted data models for Watchkeeper."""

from .config_document import ConfigDocument
from .endpoint import LIVE_STATUSES, Endpoint, EndpointKind, EndpointStatus
from .patches import (
    AddRequiredGroup,
    ConfigPatch,
    EndpointPatch,
    EnsureDefaults,
    RemoveRequiredGroup,
    RenameWatcher,
    SetAdmin,
    SetAdminNotifications,
    SetAutoRestart,
    SetBanned,
    SetDisplayName,
    SetLanguage,
    SetNotifyOnError,
    SetOnline,
    SetStatus,
    StopWatcher,
    UserPatch,
)
from .user import SubjectStatus, User
from .version import VersionCatalogEntry

__all__ = [
    "AddRequiredGroup",
    "ConfigDocument",
    "ConfigPatch",
    "Endpoint",
    "EndpointKind",
    "EndpointPatch",
    "EndpointStatus",
    "EnsureDefaults",
    "LIVE_STATUSES",
    "RemoveRequiredGroup",
    "RenameWatcher",
    "SetAdmin",
    "SetAdminNotifications",
    "SetAutoRestart",
    "SetBanned",
    "SetDisplayName",
    "SetLanguage",
    "SetNotifyOnError",
    "SetOnline",
    "SetStatus",
    "StopWatcher",
    "SubjectStatus",
    "User",
    "UserPatch",
    "VersionCatalogEntry",
]
