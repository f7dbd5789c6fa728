"""In-memory fake collaborators for Watchkeeper tests."""

import asyncio

from watchkeeper.collaborators import (
    ConnectRequest,
    DisconnectCallback,
    ErrorCallback,
    LiveCallback,
    OwnerNotice,
    ProbeResult,
)


class FakeProbe:
    """
    Status probe answering from a table keyed by (host, port).

    Unknown addresses answer with default_result. An Exception value is
    raised instead of returned. When gate is set, every probe waits on it.
    """

    def __init__(self, default_result: ProbeResult | None = None):
        self.default_result = default_result or ProbeResult(protocol_id=827, version_label="1.21.100")
        self.results: dict[tuple[str, int], ProbeResult | Exception] = {}
        self.calls: list[tuple[str, int, float]] = []
        self.gate: asyncio.Event | None = None

    def set_result(self, host: str, port: int, result: ProbeResult | Exception) -> None:
        self.results[(host, port)] = result

    async def probe(self, host: str, port: int, timeout: float) -> ProbeResult:
        self.calls.append((host, port, timeout))
        if self.gate is not None:
            await self.gate.wait()
        result = self.results.get((host, port), self.default_result)
        if isinstance(result, Exception):
            raise result
        return result


class FakeConnection:
    """Watcher connection whose events are fired by the test."""

    def __init__(self, request: ConnectRequest):
        self.request = request
        self.alive = True
        self.closed = False
        self.close_error: Exception | None = None
        self._live: LiveCallback | None = None
        self._disconnected: DisconnectCallback | None = None
        self._error: ErrorCallback | None = None

    def on_became_live(self, callback: LiveCallback) -> None:
        self._live = callback

    def on_disconnected(self, callback: DisconnectCallback) -> None:
        self._disconnected = callback

    def on_error(self, callback: ErrorCallback) -> None:
        self._error = callback

    async def close(self) -> None:
        self.closed = True
        self.alive = False
        if self.close_error is not None:
            raise self.close_error

    def is_alive(self) -> bool:
        return self.alive

    async def fire_live(self) -> None:
        assert self._live is not None
        await self._live()

    async def fire_disconnect(self, reason: str = "connection lost") -> None:
        assert self._disconnected is not None
        self.alive = False
        await self._disconnected(reason)

    async def fire_error(self, error: BaseException) -> None:
        assert self._error is not None
        self.alive = False
        await self._error(error)


class FakeConnector:
    """Connector handing out FakeConnections; fail_with makes connect() raise."""

    def __init__(self):
        self.connections: list[FakeConnection] = []
        self.fail_with: Exception | None = None
        self.gate: asyncio.Event | None = None

    @property
    def last(self) -> FakeConnection:
        return self.connections[-1]

    async def connect(self, request: ConnectRequest) -> FakeConnection:
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with
        connection = FakeConnection(request)
        self.connections.append(connection)
        return connection


class FakeMembershipChecker:
    """Membership lookup backed by a dict of (group_id, user_id) -> status."""

    def __init__(self, default_status: str = "left"):
        self.default_status = default_status
        self.statuses: dict[tuple[str, int], str | Exception] = {}
        self.calls: list[tuple[str, int]] = []

    def set_status(self, group_id: str, user_id: int, status: str | Exception) -> None:
        self.statuses[(group_id, user_id)] = status

    async def get_member_status(self, group_id: str, user_id: int) -> str:
        self.calls.append((group_id, user_id))
        status = self.statuses.get((group_id, user_id), self.default_status)
        if isinstance(status, Exception):
            raise status
        return status


class RecordingNotifier:
    """Owner notifier that records every notice."""

    def __init__(self):
        self.notices: list[OwnerNotice] = []
        self.fail_with: Exception | None = None

    async def notify_owner(self, notice: OwnerNotice) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.notices.append(notice)
