"""
Typed patches for persisted records.

Every supported mutation of a table is one frozen dataclass. Repositories
apply them through the ``apply_*`` functions below, which match each patch
union exhaustively.
"""

from dataclasses import dataclass
from typing import assert_never

from .config_document import ConfigDocument
from .endpoint import Endpoint, EndpointStatus
from .user import User

# --- Endpoint patches -------------------------------------------------------


@dataclass(frozen=True)
class SetStatus:
    status: EndpointStatus


@dataclass(frozen=True)
class StopWatcher:
    """Explicit stop: status Stopped and auto-restart switched off."""


@dataclass(frozen=True)
class SetAutoRestart:
    enabled: bool


@dataclass(frozen=True)
class SetNotifyOnError:
    enabled: bool


@dataclass(frozen=True)
class RenameWatcher:
    watcher_name: str


@dataclass(frozen=True)
class SetDisplayName:
    display_name: str


EndpointPatch = SetStatus | StopWatcher | SetAutoRestart | SetNotifyOnError | RenameWatcher | SetDisplayName


def apply_endpoint_patch(endpoint: Endpoint, patch: EndpointPatch) -> Endpoint:
    """Return a copy of endpoint with the patch applied."""
    match patch:
        case SetStatus(status=status):
            return endpoint.model_copy(update={"status": status})
        case StopWatcher():
            return endpoint.model_copy(update={"status": EndpointStatus.STOPPED, "auto_restart": False})
        case SetAutoRestart(enabled=enabled):
            return endpoint.model_copy(update={"auto_restart": enabled})
        case SetNotifyOnError(enabled=enabled):
            return endpoint.model_copy(update={"notify_on_error": enabled})
        case RenameWatcher(watcher_name=watcher_name):
            return endpoint.model_copy(update={"watcher_name": watcher_name})
        case SetDisplayName(display_name=display_name):
            return endpoint.model_copy(update={"display_name": display_name})
        case _:
            assert_never(patch)


# --- User patches -----------------------------------------------------------


@dataclass(frozen=True)
class SetBanned:
    banned: bool


@dataclass(frozen=True)
class SetAdmin:
    admin: bool


@dataclass(frozen=True)
class SetLanguage:
    language: str | None


UserPatch = SetBanned | SetAdmin | SetLanguage


def apply_user_patch(user: User, patch: UserPatch) -> User:
    """Return a copy of user with the patch applied."""
    match patch:
        case SetBanned(banned=banned):
            return user.model_copy(update={"is_banned": banned})
        case SetAdmin(admin=admin):
            return user.model_copy(update={"is_admin": admin})
        case SetLanguage(language=language):
            return user.model_copy(update={"language": language})
        case _:
            assert_never(patch)


# --- Config patches ---------------------------------------------------------


@dataclass(frozen=True)
class SetOnline:
    online: bool


@dataclass(frozen=True)
class SetAdminNotifications:
    enabled: bool


@dataclass(frozen=True)
class AddRequiredGroup:
    group_id: str


@dataclass(frozen=True)
class RemoveRequiredGroup:
    group_id: str


@dataclass(frozen=True)
class EnsureDefaults:
    """Materialize default values for keys missing from the stored document."""


ConfigPatch = SetOnline | SetAdminNotifications | AddRequiredGroup | RemoveRequiredGroup | EnsureDefaults


def apply_config_patch(document: ConfigDocument, patch: ConfigPatch) -> ConfigDocument:
    """Return a copy of the config document with the patch applied."""
    match patch:
        case SetOnline(online=online):
            return document.model_copy(update={"online": online})
        case SetAdminNotifications(enabled=enabled):
            return document.model_copy(update={"admin_notifications": enabled})
        case AddRequiredGroup(group_id=group_id):
            if group_id in document.required_groups:
                return document
            return document.model_copy(update={"required_groups": [*document.required_groups, group_id]})
        case RemoveRequiredGroup(group_id=group_id):
            remaining = [g for g in document.required_groups if g != group_id]
            return document.model_copy(update={"required_groups": remaining})
        case EnsureDefaults():
            return document
        case _:
            assert_never(patch)
