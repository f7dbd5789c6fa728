"""
Scheduled watcher restarts.

When a watcher with auto-restart enabled loses its connection, a restart
is scheduled after a fixed delay. Pending restarts are tracked per
endpoint id so an explicit stop can cancel them.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from anyio import sleep

from ..app.task_registry import TaskRegistry
from ..logging_config import get_logger

logger = get_logger(__name__)

RestartAction = Callable[[], Awaitable[Any]]


class RestartScheduler:
    """Cancellable delayed restarts keyed by endpoint id."""

    def __init__(self, task_registry: TaskRegistry, delay_seconds: float):
        self._task_registry = task_registry
        self.delay_seconds = delay_seconds
        self._pending: dict[str, asyncio.Task[Any]] = {}

    def is_scheduled(self, endpoint_id: str) -> bool:
        return endpoint_id in self._pending

    def pending_count(self) -> int:
        return len(self._pending)

    def schedule(self, endpoint_id: str, action: RestartAction, delay: float | None = None) -> asyncio.Task[Any]:
        """
        Run action after the restart delay, replacing any pending restart.

        Args:
            endpoint_id: Endpoint whose watcher should restart
            action: Coroutine function performing the restart
            delay: Override for the configured delay

        Returns:
            The scheduled task
        """
        previous = self._pending.pop(endpoint_id, None)
        if previous is not None and not previous.done():
            previous.cancel()

        delay = self.delay_seconds if delay is None else delay
        task = self._task_registry.register_task(
            self._run(endpoint_id, action, delay), f"restart/{endpoint_id}", task_type="restart"
        )
        self._pending[endpoint_id] = task
        logger.info("Watcher restart scheduled", endpoint_id=endpoint_id, delay=delay)
        return task

    async def _run(self, endpoint_id: str, action: RestartAction, delay: float) -> None:
        try:
            await sleep(delay)

            # The restart is no longer cancellable once it starts acting; a stop
            # that arrives during it supersedes the new session instead
            current = asyncio.current_task()
            if self._pending.get(endpoint_id) is current:
                del self._pending[endpoint_id]

            logger.info("Restart delay elapsed", endpoint_id=endpoint_id)
            await action()
        except asyncio.CancelledError:
            logger.debug("Scheduled restart cancelled", endpoint_id=endpoint_id)
        except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: restart runs as a detached task, failures must be logged rather than lost
            logger.error("Scheduled restart failed", endpoint_id=endpoint_id, error=str(e), exc_info=True)
        finally:
            if self._pending.get(endpoint_id) is asyncio.current_task():
                del self._pending[endpoint_id]

    async def cancel(self, endpoint_id: str) -> bool:
        """
        Cancel the pending restart for endpoint_id and wait for it to unwind.

        Returns:
            True if a pending restart was cancelled
        """
        task = self._pending.get(endpoint_id)
        if task is None or task is asyncio.current_task():
            return False

        del self._pending[endpoint_id]
        task.cancel()
        await asyncio.wait({task})
        logger.info("Pending watcher restart cancelled", endpoint_id=endpoint_id)
        return True

    async def cancel_all(self) -> int:
        endpoint_ids = list(self._pending)
        cancelled = 0
        for endpoint_id in endpoint_ids:
            if await self.cancel(endpoint_id):
                cancelled += 1
        return cancelled
