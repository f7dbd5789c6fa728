"""Interfaces of the external collaborators the watcher core consumes."""

from .protocols import (
    NON_MEMBER_STATUSES,
    ConnectRequest,
    DisconnectCallback,
    ErrorCallback,
    LiveCallback,
    MembershipChecker,
    OwnerNotice,
    OwnerNotifier,
    ProbeResult,
    StatusProbe,
    WatcherConnection,
    WatcherConnector,
)

__all__ = [
    "NON_MEMBER_STATUSES",
    "ConnectRequest",
    "DisconnectCallback",
    "ErrorCallback",
    "LiveCallback",
    "MembershipChecker",
    "OwnerNotice",
    "OwnerNotifier",
    "ProbeResult",
    "StatusProbe",
    "WatcherConnection",
    "WatcherConnector",
]
