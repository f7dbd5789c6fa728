"""
Tests for the reconciliation sweeper.
"""

# pylint: disable=redefined-outer-name,protected-access

import asyncio

import pytest
import pytest_asyncio

from watchkeeper.models import Endpoint, EndpointStatus
from watchkeeper.realtime import EndpointLifecycle, ReconciliationSweeper, Session
from watchkeeper.tests.fakes import FakeConnection


class BrokenConnection(FakeConnection):
    """Connection whose liveness check itself fails."""

    def is_alive(self) -> bool:
        raise RuntimeError("liveness check failed")


@pytest_asyncio.fixture
async def endpoints(endpoint_repo):
    for endpoint_id in ("a", "b"):
        await endpoint_repo.insert(Endpoint(id=endpoint_id, owner_id=1, host=f"{endpoint_id}.example.net", port=19132))


@pytest.fixture
def sweeper(manager, endpoint_repo, task_registry):
    return ReconciliationSweeper(
        session_manager=manager,
        endpoints=endpoint_repo,
        task_registry=task_registry,
        interval_seconds=0.01,
    )


async def status_of(endpoint_repo, endpoint_id: str) -> EndpointStatus:
    return (await endpoint_repo.get(endpoint_id)).status


class TestSweepOnce:
    """A single reconciliation pass."""

    @pytest.mark.asyncio
    async def test_alive_sessions_untouched(self, sweeper, manager, endpoints, endpoint_repo, connector):
        await manager.start("a")
        await connector.last.fire_live()

        summary = await sweeper.sweep_once()

        assert summary == {"checked": 1, "alive": 1, "stopped": 0, "skipped": 0, "unknown": 0}
        assert manager.has_session("a")
        assert await status_of(endpoint_repo, "a") is EndpointStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_dead_session_is_stopped(self, sweeper, manager, endpoints, endpoint_repo, connector):
        """A connection that died without a disconnect callback is cleaned up."""
        await manager.start("a")
        await manager.start("b")
        await connector.connections[0].fire_live()
        dead = connector.connections[1]
        dead.alive = False

        summary = await sweeper.sweep_once()

        assert summary["alive"] == 1
        assert summary["stopped"] == 1
        assert not manager.has_session("b")
        assert dead.closed is True
        assert await status_of(endpoint_repo, "b") is EndpointStatus.STOPPED
        assert sweeper.sweep_count == 1

    @pytest.mark.asyncio
    async def test_pending_session_skipped(self, sweeper, manager, endpoints):
        manager._sessions.add(Session(endpoint_id="a", lifecycle=EndpointLifecycle("a")))

        summary = await sweeper.sweep_once()

        assert summary["skipped"] == 1
        assert manager.has_session("a")

    @pytest.mark.asyncio
    async def test_failure_marks_unknown_and_continues(self, sweeper, manager, endpoints, endpoint_repo, connector):
        await manager.start("b")
        broken = Session(endpoint_id="a", lifecycle=EndpointLifecycle("a"))
        broken.connection = BrokenConnection(connector.last.request)
        manager._sessions.add(broken)

        summary = await sweeper.sweep_once()

        assert summary["unknown"] == 1
        assert summary["alive"] == 1
        assert await status_of(endpoint_repo, "a") is EndpointStatus.UNKNOWN

    @pytest.mark.asyncio
    async def test_empty_table(self, sweeper):
        assert (await sweeper.sweep_once())["checked"] == 0


class TestSweepLoop:
    """Start and stop of the periodic loop."""

    @pytest.mark.asyncio
    async def test_loop_sweeps_until_stopped(self, sweeper, task_registry):
        await sweeper.start()
        assert sweeper.is_running

        for _ in range(200):
            if sweeper.sweep_count >= 2:
                break
            await asyncio.sleep(0.01)
        await sweeper.stop()

        assert sweeper.sweep_count >= 2
        assert not sweeper.is_running
        assert task_registry.list_active_tasks() == []

    @pytest.mark.asyncio
    async def test_start_twice_registers_one_loop(self, sweeper, task_registry):
        await sweeper.start()
        await sweeper.start()

        assert len(task_registry.list_active_tasks()) == 1
        await sweeper.stop()
