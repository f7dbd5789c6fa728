"""Reconciliation sweeper.

Periodically compares the live session table with what the watcher
connections report about themselves, and repairs persisted statuses that
no longer match reality.
"""

from __future__ import annotations

import asyncio
from typing import Any

from anyio import Lock, sleep

from ..app.task_registry import TaskRegistry
from ..logging_config import get_logger
from ..models import EndpointStatus, SetStatus
from ..persistence.protocols import EndpointRepositoryProtocol
from .session_manager import SessionManager
from .session_models import Session


class ReconciliationSweeper:
    """
    Periodic pass over live sessions.

    Alive sessions are left alone. Dead ones are closed, removed and
    persisted as Stopped. A failure while handling one endpoint marks that
    endpoint Unknown and the sweep carries on with the next one.
    """

    def __init__(
        self,
        *,
        session_manager: SessionManager,
        endpoints: EndpointRepositoryProtocol,
        task_registry: TaskRegistry,
        interval_seconds: float,
    ) -> None:
        self._session_manager = session_manager
        self._endpoints = endpoints
        self._task_registry = task_registry
        self.interval_seconds = interval_seconds
        self._logger = get_logger(__name__)

        self._task: asyncio.Task[Any] | None = None
        self._running = False
        self._lock = Lock()
        self.sweep_count = 0

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Register the sweep loop with the task registry."""

        async with self._lock:
            if self._running:
                return
            self._running = True
            self._task = self._task_registry.register_task(
                self._run(),
                "lifecycle/reconciliation_sweeper",
                "lifecycle",
            )
            self._logger.info("Reconciliation sweeper started", interval_seconds=self.interval_seconds)

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for the task to exit."""

        async with self._lock:
            self._running = False
            if self._task is not None:
                await self._task_registry.cancel_task(self._task)
                self._task = None
            self._logger.info("Reconciliation sweeper stopped")

    async def _run(self) -> None:
        try:
            while self._running:
                await sleep(self.interval_seconds)
                await self.sweep_once()
        except asyncio.CancelledError:
            self._logger.debug("Reconciliation sweeper cancelled")
        except Exception as exc:  # pylint: disable=broad-exception-caught  # Reason: loop errors must be logged, not lost with the task
            self._logger.error("Reconciliation sweeper failed", error=str(exc), exc_info=True)

    async def sweep_once(self) -> dict[str, int]:
        """
        Reconcile every live session once.

        Returns:
            Counts of sessions checked, alive, stopped, skipped and marked unknown
        """
        summary = {"checked": 0, "alive": 0, "stopped": 0, "skipped": 0, "unknown": 0}
        for session in self._session_manager.snapshot():
            summary["checked"] += 1
            try:
                outcome = await self._reconcile(session)
            except Exception as exc:  # pylint: disable=broad-exception-caught  # Reason: one endpoint's failure must not abort the sweep
                self._logger.error(
                    "Reconciliation failed for endpoint",
                    endpoint_id=session.endpoint_id,
                    error=str(exc),
                    exc_info=True,
                )
                outcome = await self._mark_unknown(session.endpoint_id)
            summary[outcome] += 1

        self.sweep_count += 1
        self._logger.info("Reconciliation sweep finished", **summary)
        return summary

    async def _reconcile(self, session: Session) -> str:
        endpoint_id = session.endpoint_id
        if session.is_pending:
            return "skipped"

        endpoint = await self._endpoints.get(endpoint_id)
        if endpoint is None:
            self._logger.debug("Swept session has no endpoint record", endpoint_id=endpoint_id)
            return "skipped"

        if session.connection is not None and session.connection.is_alive():
            return "alive"

        if not await self._session_manager.discard_session(session):
            # Replaced or stopped since the snapshot was taken
            return "skipped"
        await self._endpoints.update(endpoint_id, SetStatus(EndpointStatus.STOPPED))
        self._logger.info("Dead watcher session reconciled", endpoint_id=endpoint_id)
        return "stopped"

    async def _mark_unknown(self, endpoint_id: str) -> str:
        try:
            await self._endpoints.update(endpoint_id, SetStatus(EndpointStatus.UNKNOWN))
        except Exception as exc:  # pylint: disable=broad-exception-caught  # Reason: store failure while recovering is only logged
            self._logger.error("Could not mark endpoint unknown", endpoint_id=endpoint_id, error=str(exc))
        return "unknown"
