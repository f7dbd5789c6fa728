"""
Collaborator protocols for the watcher core.

The game-server query/connect libraries, the chat-platform membership
lookup and the owner notification channel are all external. The core only
sees them through the protocols below; concrete adapters are supplied to
the ApplicationContainer.
"""

# pylint: disable=unnecessary-ellipsis  # Reason: Protocol method bodies use ... per typing.Protocol convention

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol

LiveCallback = Callable[[], Awaitable[None]]
DisconnectCallback = Callable[[str], Awaitable[None]]
ErrorCallback = Callable[[BaseException], Awaitable[None]]

# Membership statuses that mean "not in the group"
NON_MEMBER_STATUSES = frozenset({"left", "kicked"})


@dataclass(frozen=True)
class ProbeResult:
    """Answer to a single status query against host:port."""

    protocol_id: int
    version_label: str
    players_online: int = 0
    players_max: int = 0
    motd: str = ""


@dataclass(frozen=True)
class ConnectRequest:
    """Parameters for opening a persistent watcher connection."""

    host: str
    port: int
    identity: str
    resolved_version: str


@dataclass(frozen=True)
class OwnerNotice:
    """Best-effort message to an endpoint owner about a lost watcher."""

    owner_id: int
    endpoint_id: str
    display_name: str
    host: str
    port: int
    reason: str
    auto_restart: bool
    language: str | None = None


class StatusProbe(Protocol):
    """Bounded status query against a game server."""

    async def probe(self, host: str, port: int, timeout: float) -> ProbeResult:
        """Query host:port, failing after timeout seconds."""
        ...


class WatcherConnection(Protocol):
    """
    Handle to a persistent watcher connection.

    Callbacks are coroutine functions; the connection awaits or schedules
    them from its own tasks.
    """

    def on_became_live(self, callback: LiveCallback) -> None: ...

    def on_disconnected(self, callback: DisconnectCallback) -> None: ...

    def on_error(self, callback: ErrorCallback) -> None: ...

    async def close(self) -> None:
        """Tear the connection down."""
        ...

    def is_alive(self) -> bool:
        """True while the underlying connection is up."""
        ...


class WatcherConnector(Protocol):
    """Opens persistent watcher connections."""

    async def connect(self, request: ConnectRequest) -> WatcherConnection: ...


class MembershipChecker(Protocol):
    """Chat-platform group membership lookup."""

    async def get_member_status(self, group_id: str, user_id: int) -> str:
        """Return the platform's membership status string (member, left, kicked, ...)."""
        ...


class OwnerNotifier(Protocol):
    """Delivers notices to endpoint owners through the chat platform."""

    async def notify_owner(self, notice: OwnerNotice) -> None: ...
