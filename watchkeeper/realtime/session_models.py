"""
In-memory session records for watcher connections.

Sessions are never persisted. The SessionTable holds at most one Session
per endpoint id; only the SessionManager mutates it.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from ..collaborators import WatcherConnection
from .endpoint_state_machine import EndpointLifecycle


@dataclass(eq=False)
class Session:
    """
    A watcher session for one endpoint.

    ``connection`` is None while the session is only a reservation, i.e.
    between the start request and the watcher connection being opened.
    Sessions compare by identity so a stale callback can tell whether its
    session is still the registered one.
    """

    endpoint_id: str
    lifecycle: EndpointLifecycle
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    connection: WatcherConnection | None = None
    version_name: str | None = None
    protocol_id: int | None = None

    @property
    def is_pending(self) -> bool:
        return self.connection is None

    def uptime(self, now: datetime | None = None) -> timedelta:
        return (now or datetime.now(UTC)) - self.started_at


class SessionTable:
    """Map of endpoint id to its single live Session."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}

    def get(self, endpoint_id: str) -> Session | None:
        return self._sessions.get(endpoint_id)

    def has(self, endpoint_id: str) -> bool:
        return endpoint_id in self._sessions

    def is_current(self, session: Session) -> bool:
        """True if session is the one registered for its endpoint."""
        return self._sessions.get(session.endpoint_id) is session

    def add(self, session: Session) -> None:
        """
        Register session.

        Raises:
            KeyError: If a session is already registered for the endpoint
        """
        if session.endpoint_id in self._sessions:
            raise KeyError(f"Session already registered for endpoint {session.endpoint_id}")
        self._sessions[session.endpoint_id] = session

    def remove(self, endpoint_id: str, expected: Session | None = None) -> Session | None:
        """
        Remove the session for endpoint_id.

        When expected is given, the entry is removed only if it is that exact
        session; a newer session for the same endpoint is left alone.
        """
        current = self._sessions.get(endpoint_id)
        if current is None or (expected is not None and current is not expected):
            return None
        del self._sessions[endpoint_id]
        return current

    def snapshot(self) -> list[Session]:
        return list(self._sessions.values())

    def clear(self) -> list[Session]:
        sessions = self.snapshot()
        self._sessions.clear()
        return sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[Session]:
        return iter(self.snapshot())
