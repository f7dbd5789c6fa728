"""
Task registry for Watchkeeper background work.

Every asyncio.Task the service creates (scheduled restarts, the
reconciliation loop) is registered here so shutdown can cancel all of them
within a bounded time.
"""

import asyncio
from collections.abc import Coroutine
from typing import Any

from ..logging_config import get_logger

logger = get_logger(__name__)

LIFECYCLE_TASK_TYPES = ("lifecycle", "system", "background")


class TaskMetadata:
    """Metadata for tracked asyncio.Tasks."""

    def __init__(self, task: asyncio.Task[Any], task_name: str, task_type: str = "unknown"):
        """
        Initialize task metadata.

        Args:
            task: The asyncio.Task instance to track
            task_name: Human-readable name for this task
            task_type: Categorization of task (e.g. 'restart', 'lifecycle')
        """
        self.task = task
        self.task_name = task_name
        self.task_type = task_type
        self.created_at = asyncio.get_running_loop().time()
        self.is_lifecycle = task_type in LIFECYCLE_TASK_TYPES

    def __repr__(self) -> str:
        status = "done" if self.task.done() else "pending"
        return f"TaskMetadata({self.task_name}, {self.task_type}, {status})"


class TaskRegistry:
    """
    Registry of tracked asyncio tasks with timeout-bounded shutdown.

    Lifecycle tasks are cancelled before ordinary tasks during shutdown.
    """

    def __init__(self) -> None:
        self._active_tasks: dict[asyncio.Task[Any], TaskMetadata] = {}
        self._task_names: dict[str, asyncio.Task[Any]] = {}
        self._shutdown_in_progress = False

    def register_task(
        self, coro: Coroutine[Any, Any, Any], task_name: str, task_type: str = "unknown"
    ) -> asyncio.Task[Any]:
        """
        Create and track an asyncio.Task.

        Args:
            coro: The coroutine to wrap as a task
            task_name: Human-readable identifier for this task
            task_type: Category for task management

        Returns:
            The created asyncio.Task

        Raises:
            RuntimeError: If the registry is shutting down
        """
        if self._shutdown_in_progress:
            coro.close()
            logger.warning("Attempting to register task during shutdown - denied", task_name=task_name)
            raise RuntimeError("Task registration denied during shutdown")

        if task_name in self._task_names:
            task_name = f"{task_name}_{asyncio.get_running_loop().time()}"

        task: asyncio.Task[Any] = asyncio.create_task(coro, name=task_name)
        self._active_tasks[task] = TaskMetadata(task, task_name, task_type)
        self._task_names[task_name] = task

        def _on_done(completed_task: asyncio.Task[Any]) -> None:
            self._active_tasks.pop(completed_task, None)
            if self._task_names.get(task_name) is completed_task:
                del self._task_names[task_name]

        task.add_done_callback(_on_done)
        logger.debug("Registered task", task_name=task_name, task_type=task_type)
        return task

    async def cancel_task(self, task: str | asyncio.Task[Any], wait_timeout: float = 2.0) -> bool:
        """
        Cancel one task and wait for it to finish.

        Args:
            task: Task reference or name
            wait_timeout: Maximum time to wait for cancellation completion

        Returns:
            True if the task is finished, False if not found or still running
        """
        target = self._task_names.get(task) if isinstance(task, str) else task
        if target is None or (not isinstance(task, str) and target not in self._active_tasks):
            logger.debug("Cancellation target not found", task=str(task))
            return False

        if target.done():
            return True

        target.cancel()
        done, _pending = await asyncio.wait({target}, timeout=wait_timeout)
        if not done:
            logger.warning("Cancellation timeout reached", task_name=target.get_name())
            return False
        return True

    async def shutdown_all(self, timeout: float = 5.0) -> bool:
        """
        Cancel every tracked task, lifecycle tasks first.

        Args:
            timeout: Time allowed for all tasks to finish after cancellation

        Returns:
            True if every task finished within the timeout
        """
        if self._shutdown_in_progress:
            logger.warning("Shutdown already in progress")
            return False

        self._shutdown_in_progress = True
        try:
            ordered = sorted(self._active_tasks.values(), key=lambda m: not m.is_lifecycle)
            for metadata in ordered:
                if not metadata.task.done():
                    metadata.task.cancel()

            tasks = [m.task for m in ordered]
            if tasks:
                _done, pending = await asyncio.wait(tasks, timeout=timeout)
            else:
                pending = set()

            if pending:
                logger.error("Shutdown timeout - tasks still active", remaining=[t.get_name() for t in pending])
            else:
                logger.info("All registered tasks terminated", cancelled_count=len(tasks))
            return not pending
        finally:
            self._shutdown_in_progress = False

    def list_active_tasks(self) -> list[TaskMetadata]:
        """Return metadata of tasks that are still running."""
        return [m for m in self._active_tasks.values() if not m.task.done()]

    def get_registry_info(self) -> dict[str, Any]:
        active = self.list_active_tasks()
        return {
            "active_tasks": len(active),
            "lifecycle_tasks": sum(1 for m in active if m.is_lifecycle),
            "registry_shutdown_in_progress": self._shutdown_in_progress,
        }
