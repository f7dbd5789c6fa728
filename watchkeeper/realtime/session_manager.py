"""
Watcher session manager.

Owns the table of live watcher sessions (at most one per endpoint) and
drives each endpoint through its lifecycle: probe, resolve the protocol
version, open the watcher connection, react to it going live or away, and
restart it when the owner asked for auto-restart.

Every public operation converts failures into a StartOutcome/StopOutcome
signal; exceptions raised by the probe or connector never leave this
module.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from functools import partial
from typing import TYPE_CHECKING

from ..caching import SubjectStatusCacheService
from ..collaborators import ConnectRequest, OwnerNotice, OwnerNotifier, StatusProbe, WatcherConnection, WatcherConnector
from ..config import WatcherConfig
from ..error_types import ErrorType
from ..logging_config import get_logger
from ..models import Endpoint, EndpointStatus, SetStatus, StopWatcher
from ..persistence.protocols import EndpointRepositoryProtocol
from .endpoint_state_machine import EndpointLifecycle, LifecycleEvent, TransitionNotAllowed
from .restart_scheduler import RestartScheduler
from .session_models import Session, SessionTable

if TYPE_CHECKING:
    from ..services.catalog_resolver import CatalogResolver

logger = get_logger(__name__)


class StartSignal(str, Enum):
    """Result kinds of SessionManager.start()."""

    STARTED = "started"
    NOT_FOUND = "not_found"
    ALREADY_ACTIVE = "already_active"
    UNSUPPORTED_PROTOCOL = "unsupported_protocol"
    CONNECT_FAILED = "connect_failed"
    SUPERSEDED = "superseded"


class StopSignal(str, Enum):
    """Result kinds of SessionManager.stop()."""

    STOPPED = "stopped"
    NOT_FOUND = "not_found"
    STORE_FAILED = "store_failed"


_START_ERROR_TYPES = {
    StartSignal.NOT_FOUND: ErrorType.RESOURCE_NOT_FOUND,
    StartSignal.ALREADY_ACTIVE: ErrorType.ALREADY_ACTIVE,
    StartSignal.UNSUPPORTED_PROTOCOL: ErrorType.UNSUPPORTED_PROTOCOL,
    StartSignal.CONNECT_FAILED: ErrorType.PROBE_OR_CONNECT_FAILED,
}


@dataclass(frozen=True)
class StartOutcome:
    signal: StartSignal
    endpoint_id: str
    version_name: str | None = None
    protocol_id: int | None = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.signal is StartSignal.STARTED

    @property
    def error_type(self) -> ErrorType | None:
        return _START_ERROR_TYPES.get(self.signal)


@dataclass(frozen=True)
class StopOutcome:
    signal: StopSignal
    endpoint_id: str
    closed_connection: bool = False

    @property
    def ok(self) -> bool:
        return self.signal is StopSignal.STOPPED


class SessionManager:
    """
    Lifecycle owner for per-endpoint watcher connections.

    The at-most-one-session invariant rests on start() checking the session
    table and registering its reservation without any await in between.
    Callbacks from a connection are honoured only while that connection's
    session is still the registered one.
    """

    def __init__(
        self,
        endpoints: EndpointRepositoryProtocol,
        catalog: CatalogResolver,
        probe: StatusProbe,
        connector: WatcherConnector,
        sessions: SessionTable,
        restart_scheduler: RestartScheduler,
        watcher_config: WatcherConfig,
        notifier: OwnerNotifier | None = None,
        subject_status: SubjectStatusCacheService | None = None,
    ):
        self._endpoints = endpoints
        self._catalog = catalog
        self._probe = probe
        self._connector = connector
        self._sessions = sessions
        self._restart_scheduler = restart_scheduler
        self._config = watcher_config
        self._notifier = notifier
        self._subject_status = subject_status

    # --- queries -------------------------------------------------------------

    def has_session(self, endpoint_id: str) -> bool:
        return self._sessions.has(endpoint_id)

    def get_session(self, endpoint_id: str) -> Session | None:
        return self._sessions.get(endpoint_id)

    def active_count(self) -> int:
        return len(self._sessions)

    def snapshot(self) -> list[Session]:
        return self._sessions.snapshot()

    def uptime(self, endpoint_id: str) -> timedelta | None:
        """Time since the watcher connection was opened, None without one."""
        session = self._sessions.get(endpoint_id)
        if session is None or session.is_pending:
            return None
        return session.uptime()

    # --- start ---------------------------------------------------------------

    async def start(self, endpoint_id: str) -> StartOutcome:
        """
        Start watching an endpoint.

        Args:
            endpoint_id: Endpoint to watch

        Returns:
            StartOutcome; STARTED means the watcher connection is open and
            waiting to become live
        """
        try:
            endpoint = await self._endpoints.get(endpoint_id)
        except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: operation boundary converts every failure into a signal
            logger.error("Could not load endpoint for start", endpoint_id=endpoint_id, error=str(e))
            return StartOutcome(StartSignal.CONNECT_FAILED, endpoint_id, reason=str(e))

        if endpoint is None:
            logger.info("Start requested for unknown endpoint", endpoint_id=endpoint_id)
            return StartOutcome(StartSignal.NOT_FOUND, endpoint_id)

        # No await between the presence check and the reservation
        if self._sessions.has(endpoint_id):
            logger.info("Watcher already running", endpoint_id=endpoint_id)
            return StartOutcome(StartSignal.ALREADY_ACTIVE, endpoint_id)
        session = Session(endpoint_id=endpoint_id, lifecycle=EndpointLifecycle(endpoint_id, endpoint.status))
        self._sessions.add(session)

        try:
            return await self._run_start(session, endpoint)
        except asyncio.CancelledError:
            self._sessions.remove(endpoint_id, expected=session)
            raise
        except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: probe and connector errors of any type must not escape the session manager
            return await self._fail_start(session, e)

    async def _run_start(self, session: Session, endpoint: Endpoint) -> StartOutcome:
        endpoint_id = endpoint.id
        await self._transition(session, LifecycleEvent.SEARCH)

        timeout = self._config.probe_timeout_seconds
        result = await asyncio.wait_for(self._probe.probe(endpoint.host, endpoint.port, timeout), timeout=timeout)
        if not self._sessions.is_current(session):
            return self._superseded(endpoint_id)

        version_name = await self._catalog.resolve(endpoint.kind, result.protocol_id)
        if not self._sessions.is_current(session):
            return self._superseded(endpoint_id)

        if version_name is None:
            await self._transition(session, LifecycleEvent.PROBE_UNSUPPORTED)
            self._sessions.remove(endpoint_id, expected=session)
            logger.warning(
                "Endpoint reports unsupported protocol",
                endpoint_id=endpoint_id,
                protocol_id=result.protocol_id,
                version_label=result.version_label,
            )
            return StartOutcome(
                StartSignal.UNSUPPORTED_PROTOCOL,
                endpoint_id,
                protocol_id=result.protocol_id,
                reason=result.version_label,
            )

        await self._transition(session, LifecycleEvent.PROBE_SUCCEEDED)
        request = ConnectRequest(
            host=endpoint.host,
            port=endpoint.port,
            identity=endpoint.watcher_name,
            resolved_version=version_name,
        )
        connection = await self._connector.connect(request)
        if not self._sessions.is_current(session):
            await self._close_quietly(endpoint_id, connection)
            return self._superseded(endpoint_id)

        session.connection = connection
        session.version_name = version_name
        session.protocol_id = result.protocol_id
        session.started_at = datetime.now(UTC)
        connection.on_became_live(partial(self._on_became_live, session))
        connection.on_disconnected(partial(self._on_disconnected, session))
        connection.on_error(partial(self._on_error, session))

        logger.info(
            "Watcher session registered",
            endpoint_id=endpoint_id,
            host=endpoint.host,
            port=endpoint.port,
            version_name=version_name,
            watcher_name=endpoint.watcher_name,
        )
        return StartOutcome(
            StartSignal.STARTED, endpoint_id, version_name=version_name, protocol_id=result.protocol_id
        )

    async def _fail_start(self, session: Session, error: Exception) -> StartOutcome:
        endpoint_id = session.endpoint_id
        reason = str(error) or type(error).__name__
        if self._sessions.remove(endpoint_id, expected=session) is None:
            # An explicit stop took the slot while the attempt was in flight
            logger.info("Failed start was already superseded", endpoint_id=endpoint_id, error=reason)
            return self._superseded(endpoint_id)

        logger.warning(
            "Watcher start failed",
            endpoint_id=endpoint_id,
            error=reason,
            error_class=type(error).__name__,
            error_type=ErrorType.PROBE_OR_CONNECT_FAILED.value,
        )
        try:
            await self._transition(session, LifecycleEvent.FAIL, require_current=False)
        except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: failure path must still return a signal
            logger.error("Could not persist failed start", endpoint_id=endpoint_id, error=str(e))
        return StartOutcome(StartSignal.CONNECT_FAILED, endpoint_id, reason=reason)

    @staticmethod
    def _superseded(endpoint_id: str) -> StartOutcome:
        logger.info("Start superseded by stop", endpoint_id=endpoint_id)
        return StartOutcome(StartSignal.SUPERSEDED, endpoint_id)

    # --- transitions ---------------------------------------------------------

    async def _transition(
        self, session: Session, event: LifecycleEvent, *, require_current: bool = True
    ) -> EndpointStatus | None:
        """
        Fire event on the session's lifecycle and persist the new status.

        The decision is made inside the store lock, so a session that was
        superseded while waiting for the lock never writes its status.

        Returns:
            The persisted status, or None if nothing was written
        """
        applied: EndpointStatus | None = None

        def decide(_current: Endpoint) -> SetStatus | None:
            nonlocal applied
            if require_current and not self._sessions.is_current(session):
                return None
            try:
                applied = session.lifecycle.fire(event)
            except TransitionNotAllowed as e:
                logger.warning("Lifecycle transition rejected", endpoint_id=session.endpoint_id, error=str(e))
                return None
            return SetStatus(applied)

        await self._endpoints.update_with(session.endpoint_id, decide)
        return applied

    # --- connection callbacks ------------------------------------------------

    async def _on_became_live(self, session: Session) -> None:
        if not self._sessions.is_current(session):
            logger.debug("Ignoring live event from stale session", endpoint_id=session.endpoint_id)
            return
        try:
            await self._transition(session, LifecycleEvent.GO_LIVE)
        except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: callback runs on the connector's task and must not raise into it
            logger.error("Could not persist live status", endpoint_id=session.endpoint_id, error=str(e))

    async def _on_error(self, session: Session, error: BaseException) -> None:
        await self._on_disconnected(session, str(error) or type(error).__name__)

    async def _on_disconnected(self, session: Session, reason: str) -> None:
        """
        Handle a lost watcher connection.

        The session is removed before anything else so a new start can
        proceed even while the status update is still pending.
        """
        endpoint_id = session.endpoint_id
        if self._sessions.remove(endpoint_id, expected=session) is None:
            logger.debug("Ignoring disconnect from stale session", endpoint_id=endpoint_id, reason=reason)
            return

        logger.info("Watcher disconnected", endpoint_id=endpoint_id, reason=reason)
        try:
            endpoint = await self._record_disconnect(session)
        except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: callback runs on the connector's task and must not raise into it
            logger.error("Could not persist disconnect", endpoint_id=endpoint_id, error=str(e))
            return

        if endpoint is None:
            logger.info("Disconnected endpoint no longer exists", endpoint_id=endpoint_id)
            return

        if endpoint.status is EndpointStatus.RECONNECTING:
            try:
                self._restart_scheduler.schedule(endpoint_id, partial(self._restart_if_still_wanted, endpoint_id))
            except RuntimeError as e:
                # task registry refuses new tasks once shutdown has begun
                logger.warning("Could not schedule restart", endpoint_id=endpoint_id, error=str(e))

        await self._notify_owner(endpoint, reason)

    async def _record_disconnect(self, session: Session) -> Endpoint | None:
        """Persist Reconnecting or Stopped depending on the current auto-restart flag."""

        def decide(current: Endpoint) -> SetStatus | None:
            lifecycle = session.lifecycle
            event = LifecycleEvent.HALT
            if current.auto_restart and lifecycle.can(LifecycleEvent.LOSE_CONNECTION):
                event = LifecycleEvent.LOSE_CONNECTION
            return SetStatus(lifecycle.fire(event))

        return await self._endpoints.update_with(session.endpoint_id, decide)

    async def _restart_if_still_wanted(self, endpoint_id: str) -> None:
        endpoint = await self._endpoints.get(endpoint_id)
        if endpoint is None or not endpoint.auto_restart or endpoint.status is not EndpointStatus.RECONNECTING:
            logger.info(
                "Skipping scheduled restart",
                endpoint_id=endpoint_id,
                status=endpoint.status.value if endpoint else None,
                auto_restart=endpoint.auto_restart if endpoint else None,
            )
            return

        outcome = await self.start(endpoint_id)
        logger.info("Scheduled restart finished", endpoint_id=endpoint_id, signal=outcome.signal.value)

    async def _notify_owner(self, endpoint: Endpoint, reason: str) -> None:
        if self._notifier is None or not endpoint.notify_on_error:
            return
        try:
            language = None
            if self._subject_status is not None:
                status = await self._subject_status.get(endpoint.owner_id)
                language = status.language if status else None
            notice = OwnerNotice(
                owner_id=endpoint.owner_id,
                endpoint_id=endpoint.id,
                display_name=endpoint.display_name,
                host=endpoint.host,
                port=endpoint.port,
                reason=reason,
                auto_restart=endpoint.auto_restart,
                language=language,
            )
            await self._notifier.notify_owner(notice)
        except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: owner notification is best-effort
            logger.warning("Owner notification failed", endpoint_id=endpoint.id, owner_id=endpoint.owner_id, error=str(e))

    # --- stop ----------------------------------------------------------------

    async def stop(self, endpoint_id: str) -> StopOutcome:
        """
        Stop watching an endpoint and switch auto-restart off.

        Safe to call repeatedly; a second call finds no session and simply
        persists Stopped again.
        """
        await self._restart_scheduler.cancel(endpoint_id)
        session = self._sessions.remove(endpoint_id)

        try:
            updated = await self._endpoints.update(endpoint_id, StopWatcher())
        except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: operation boundary converts every failure into a signal
            logger.error("Could not persist stop", endpoint_id=endpoint_id, error=str(e))
            updated = None
            signal = StopSignal.STORE_FAILED
        else:
            signal = StopSignal.STOPPED if updated is not None else StopSignal.NOT_FOUND

        closed = False
        if session is not None and session.connection is not None:
            await self._close_quietly(endpoint_id, session.connection)
            closed = True

        logger.info("Watcher stopped", endpoint_id=endpoint_id, signal=signal.value, closed_connection=closed)
        return StopOutcome(signal, endpoint_id, closed_connection=closed)

    async def _close_quietly(self, endpoint_id: str, connection: WatcherConnection) -> None:
        try:
            await connection.close()
        except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: session is dropped regardless of how teardown went
            logger.warning("Watcher connection close failed", endpoint_id=endpoint_id, error=str(e))

    async def discard_session(self, session: Session) -> bool:
        """
        Drop a session whose connection is known to be dead.

        Used by the reconciliation sweeper; returns False if the session was
        already replaced or removed.
        """
        if self._sessions.remove(session.endpoint_id, expected=session) is None:
            return False
        if session.connection is not None:
            await self._close_quietly(session.endpoint_id, session.connection)
        return True

    async def shutdown(self) -> int:
        """
        Cancel pending restarts and close every live connection.

        Persisted statuses are left untouched.

        Returns:
            Number of sessions closed
        """
        await self._restart_scheduler.cancel_all()
        sessions = self._sessions.clear()
        for session in sessions:
            if session.connection is not None:
                await self._close_quietly(session.endpoint_id, session.connection)
        logger.info("Session manager shut down", closed_sessions=len(sessions))
        return len(sessions)
