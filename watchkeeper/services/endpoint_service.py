"""
Endpoint service.

Registration, deletion and per-endpoint settings for the servers owners
watch. Starting and stopping watchers is the SessionManager's job; this
service only stops a watcher when the endpoint behind it goes away.
"""

import re
import secrets
import threading
import time
from datetime import timedelta
from typing import NoReturn

from ..collaborators import ProbeResult, StatusProbe
from ..config import WatcherConfig
from ..error_types import ErrorMessages
from ..exceptions import (
    EndpointConflictError,
    EndpointLimitError,
    ProbeFailedError,
    ResourceNotFoundError,
    ValidationError,
    create_error_context,
)
from ..logging_config import get_logger
from ..models import Endpoint, EndpointKind, EndpointStatus, RenameWatcher, SetAutoRestart, SetNotifyOnError
from ..persistence import EndpointRepository, RecordStore, Table
from ..persistence.record_store import Record
from ..realtime import SessionManager
from ..utils.error_logging import log_and_raise
from .renumbering import renumber, renumber_records

logger = get_logger(__name__)

WATCHER_NAME_PATTERN = re.compile(r"^\w{1,16}$", re.ASCII)

_id_lock = threading.Lock()
_last_id_time = 0


def generate_endpoint_id() -> str:
    """
    Create a 24-hex-character endpoint id.

    The first 16 characters encode creation time in nanoseconds and never
    go backwards within a process, so sorting ids sorts by creation order.
    """
    global _last_id_time  # pylint: disable=global-statement  # Reason: process-wide monotonic guard
    with _id_lock:
        now = max(time.time_ns(), _last_id_time + 1)
        _last_id_time = now
    return f"{now:016x}{secrets.token_hex(4)}"


class EndpointService:
    """Owner-facing endpoint operations."""

    def __init__(
        self,
        store: RecordStore,
        endpoints: EndpointRepository,
        session_manager: SessionManager,
        probe: StatusProbe,
        watcher_config: WatcherConfig,
    ):
        self._store = store
        self._endpoints = endpoints
        self._session_manager = session_manager
        self._probe = probe
        self._config = watcher_config

    async def register_endpoint(
        self, owner_id: int, host: str, port: int, kind: EndpointKind = EndpointKind.BEDROCK
    ) -> Endpoint:
        """
        Register a new endpoint for owner_id.

        Args:
            owner_id: Registering user
            host: Server host name or address
            port: Server port
            kind: Game-server kind

        Returns:
            The stored endpoint, already renumbered

        Raises:
            ValidationError: If host or port is unusable
            EndpointLimitError: If the owner is at the endpoint limit
            EndpointConflictError: If (host, port) is already registered
        """
        context = create_error_context(user_id=owner_id, operation="register_endpoint")
        host = host.strip()
        if not host or not 1 <= port <= 65535:
            log_and_raise(
                ValidationError,
                f"Invalid endpoint address {host!r}:{port}",
                context=context,
                details={"host": host, "port": port},
                user_friendly=ErrorMessages.INVALID_INPUT,
                field="host" if not host else "port",
            )

        limit = self._config.max_endpoints_per_owner
        endpoint = Endpoint(
            id=generate_endpoint_id(),
            owner_id=owner_id,
            kind=kind,
            host=host,
            port=port,
            status=EndpointStatus.STOPPED,
            notify_on_error=True,
            auto_restart=False,
            watcher_name=self._config.default_watcher_name,
        )

        # limit and conflict checks, append and renumber share one lock hold
        def _register(records: list[Record]) -> tuple[list[Record], list[Record]]:
            rows = [r for r in records if isinstance(r, dict)]
            if sum(1 for r in rows if r.get("owner_id") == owner_id) >= limit:
                log_and_raise(
                    EndpointLimitError, f"Owner {owner_id} reached {limit} endpoints", context=context, limit=limit
                )

            host_key = host.lower()
            clashing = [r for r in rows if str(r.get("host", "")).lower() == host_key and r.get("port") == port]
            if clashing:
                log_and_raise(
                    EndpointConflictError,
                    f"Endpoint {host}:{port} already registered",
                    context=context,
                    details={"host": host, "port": port},
                    claimed_by_other=all(r.get("owner_id") != owner_id for r in clashing),
                )

            return renumber_records([*records, endpoint.model_dump(mode="json")], owner_id)

        renumbered = await self._store.mutate(Table.ENDPOINTS, _register)
        logger.info("Endpoint registered", endpoint_id=endpoint.id, owner_id=owner_id, host=host, port=port)
        stored = next((r for r in renumbered if r.get("id") == endpoint.id), None)
        return Endpoint.model_validate(stored) if stored is not None else endpoint

    async def delete_endpoint(self, owner_id: int, endpoint_id: str) -> Endpoint:
        """
        Delete one of owner_id's endpoints, stopping its watcher first.

        Raises:
            ResourceNotFoundError: If the owner has no such endpoint
        """
        endpoint = await self._endpoints.get(endpoint_id)
        if endpoint is None or endpoint.owner_id != owner_id:
            self._raise_not_found(endpoint_id, owner_id)

        if self._session_manager.has_session(endpoint_id):
            await self._session_manager.stop(endpoint_id)

        removed = await self._endpoints.delete(endpoint_id, owner_id=owner_id)
        if removed is None:
            self._raise_not_found(endpoint_id, owner_id)
        await renumber(self._store, owner_id)
        return removed

    async def delete_all_for_owner(self, owner_id: int) -> int:
        """Delete every endpoint of owner_id; returns the number removed."""
        for endpoint in await self._endpoints.list_for_owner(owner_id):
            if self._session_manager.has_session(endpoint.id):
                await self._session_manager.stop(endpoint.id)
        removed = await self._endpoints.delete_for_owner(owner_id)
        logger.info("All endpoints deleted for owner", owner_id=owner_id, removed=removed)
        return removed

    async def rename_watcher(self, endpoint_id: str, watcher_name: str) -> Endpoint:
        """
        Change the identity the watcher connects with.

        Takes effect on the next start.

        Raises:
            ValidationError: If the name is not 1-16 letters, digits or underscores
            ResourceNotFoundError: If the endpoint does not exist
        """
        watcher_name = watcher_name.strip()
        if not WATCHER_NAME_PATTERN.match(watcher_name):
            log_and_raise(
                ValidationError,
                f"Invalid watcher name {watcher_name!r}",
                context=create_error_context(endpoint_id=endpoint_id, operation="rename_watcher"),
                user_friendly=ErrorMessages.INVALID_INPUT,
                field="watcher_name",
            )
        updated = await self._endpoints.update(endpoint_id, RenameWatcher(watcher_name))
        if updated is None:
            self._raise_not_found(endpoint_id)
        return updated

    async def toggle_auto_restart(self, endpoint_id: str) -> bool:
        """Flip auto-restart and return the new value."""
        updated = await self._endpoints.update_with(endpoint_id, lambda e: SetAutoRestart(not e.auto_restart))
        if updated is None:
            self._raise_not_found(endpoint_id)
        logger.info("Auto-restart toggled", endpoint_id=endpoint_id, auto_restart=updated.auto_restart)
        return updated.auto_restart

    async def toggle_notify_on_error(self, endpoint_id: str) -> bool:
        """Flip disconnect notifications and return the new value."""
        updated = await self._endpoints.update_with(endpoint_id, lambda e: SetNotifyOnError(not e.notify_on_error))
        if updated is None:
            self._raise_not_found(endpoint_id)
        logger.info("Disconnect notifications toggled", endpoint_id=endpoint_id, notify_on_error=updated.notify_on_error)
        return updated.notify_on_error

    async def list_for_owner(self, owner_id: int) -> list[Endpoint]:
        return await self._endpoints.list_for_owner(owner_id)

    async def get_endpoint(self, endpoint_id: str) -> Endpoint:
        endpoint = await self._endpoints.get(endpoint_id)
        if endpoint is None:
            self._raise_not_found(endpoint_id)
        return endpoint

    async def live_info(self, endpoint_id: str) -> ProbeResult:
        """
        Probe the endpoint now, independent of any watcher session.

        Raises:
            ResourceNotFoundError: If the endpoint does not exist
            ProbeFailedError: If the probe fails or times out
        """
        endpoint = await self.get_endpoint(endpoint_id)
        timeout = self._config.info_probe_timeout_seconds
        try:
            return await self._probe.probe(endpoint.host, endpoint.port, timeout)
        except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: probe library errors are opaque, all map to ProbeFailedError
            raise ProbeFailedError(
                f"Probe of {endpoint.host}:{endpoint.port} failed: {e}",
                create_error_context(endpoint_id=endpoint_id, operation="live_info"),
                connection_type="probe",
                details={"host": endpoint.host, "port": endpoint.port},
                user_friendly=ErrorMessages.PROBE_OR_CONNECT_FAILED,
            ) from e

    async def uptime(self, endpoint_id: str) -> timedelta | None:
        """Watcher uptime, or None when no watcher connection is open."""
        await self.get_endpoint(endpoint_id)
        return self._session_manager.uptime(endpoint_id)

    @staticmethod
    def _raise_not_found(endpoint_id: str, owner_id: int | None = None) -> NoReturn:
        log_and_raise(
            ResourceNotFoundError,
            f"Endpoint {endpoint_id} not found",
            context=create_error_context(user_id=owner_id, endpoint_id=endpoint_id),
            resource_type="endpoint",
            resource_id=endpoint_id,
        )
