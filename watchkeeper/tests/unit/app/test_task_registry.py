"""
TaskRegistry registration, cancellation and shutdown tests.
"""

import asyncio

import pytest

from watchkeeper.app.task_registry import TaskMetadata, TaskRegistry


async def _sleep_forever() -> None:
    await asyncio.sleep(3600)


class TestTaskRegistryCore:
    """Registration and bookkeeping."""

    def test_task_registry_initialization(self) -> None:
        task_registry = TaskRegistry()
        assert task_registry.list_active_tasks() == []
        assert task_registry.get_registry_info()["registry_shutdown_in_progress"] is False

    @pytest.mark.asyncio
    async def test_task_metadata_lifecycle_flag(self) -> None:
        task = asyncio.create_task(asyncio.sleep(0))
        assert TaskMetadata(task, "sweeper", "lifecycle").is_lifecycle is True
        assert TaskMetadata(task, "restart/e1", "restart").is_lifecycle is False
        await task

    @pytest.mark.asyncio
    async def test_completed_task_is_forgotten(self) -> None:
        task_registry = TaskRegistry()

        async def simple_coro():
            await asyncio.sleep(0.01)
            return "completed"

        task = task_registry.register_task(simple_coro(), "test/simple", "standard")
        assert task in task_registry._active_tasks

        assert await task == "completed"
        await asyncio.sleep(0)
        assert task not in task_registry._active_tasks
        assert "test/simple" not in task_registry._task_names

    @pytest.mark.asyncio
    async def test_duplicate_task_name_handling(self) -> None:
        task_registry = TaskRegistry()

        task_1 = task_registry.register_task(asyncio.sleep(0.001), "duplicate_test", "test_type")
        task_2 = task_registry.register_task(asyncio.sleep(0.001), "duplicate_test", "test_type")

        assert task_1 is not task_2
        assert task_2.get_name().startswith("duplicate_test_")
        await asyncio.gather(task_1, task_2)


class TestCancellation:
    """cancel_task and shutdown_all."""

    @pytest.mark.asyncio
    async def test_cancel_task_by_name(self) -> None:
        task_registry = TaskRegistry()
        task = task_registry.register_task(_sleep_forever(), "cancel/by_name", "test_type")

        assert await task_registry.cancel_task("cancel/by_name", wait_timeout=0.5) is True
        assert task.cancelled()

    @pytest.mark.asyncio
    async def test_cancel_unknown_task(self) -> None:
        assert await TaskRegistry().cancel_task("nope") is False

    @pytest.mark.asyncio
    async def test_shutdown_all_cancels_everything(self) -> None:
        task_registry = TaskRegistry()
        lifecycle = task_registry.register_task(_sleep_forever(), "lifecycle/loop", "lifecycle")
        restart = task_registry.register_task(_sleep_forever(), "restart/e1", "restart")

        assert await task_registry.shutdown_all(timeout=1.0) is True

        assert lifecycle.cancelled()
        assert restart.cancelled()
        assert task_registry.list_active_tasks() == []

    @pytest.mark.asyncio
    async def test_registration_refused_during_shutdown(self) -> None:
        task_registry = TaskRegistry()
        task_registry._shutdown_in_progress = True

        coro = _sleep_forever()
        with pytest.raises(RuntimeError):
            task_registry.register_task(coro, "late", "restart")
