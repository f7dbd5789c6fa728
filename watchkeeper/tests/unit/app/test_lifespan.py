"""
Container wiring plus startup and shutdown sequencing.
"""

# pylint: disable=redefined-outer-name

import pytest

from watchkeeper.app.container import ApplicationContainer
from watchkeeper.app.lifespan import lifespan, reset_stale_statuses, shutdown, startup
from watchkeeper.models import Endpoint, EndpointStatus
from watchkeeper.realtime import StartSignal
from watchkeeper.tests.fakes import FakeConnector, FakeMembershipChecker, FakeProbe, RecordingNotifier


@pytest.fixture
def container(app_config):
    return ApplicationContainer(
        probe=FakeProbe(),
        connector=FakeConnector(),
        membership_checker=FakeMembershipChecker(),
        notifier=RecordingNotifier(),
        config=app_config,
    )


def test_container_wires_shared_instances(container, app_config, data_dir):
    assert container.store.data_dir == data_dir
    assert container.config.watcher.restart_delay_seconds == 0.01
    assert container.restart_scheduler.delay_seconds == 0.01
    assert container.started is False


class TestStartup:
    """startup() establishes the persisted baseline."""

    @pytest.mark.asyncio
    async def test_creates_admin_seeds_catalog_and_defaults(self, container, app_config):
        await startup(container)
        try:
            admin = await container.users.get(app_config.admin.user_id)
            assert admin is not None and admin.is_admin
            assert await container.versions.count() == 30
            document = await container.config_repository.get()
            assert document.online is True
            assert container.sweeper.is_running
            assert container.started
        finally:
            await shutdown(container, timeout=1.0)

    @pytest.mark.asyncio
    async def test_stale_live_statuses_reset(self, container):
        await container.endpoints.insert(Endpoint(id="a", owner_id=1, host="h", port=1, status=EndpointStatus.ACTIVE))
        await container.endpoints.insert(Endpoint(id="b", owner_id=1, host="h", port=2, status=EndpointStatus.UNSUPPORTED))
        await container.endpoints.insert(Endpoint(id="c", owner_id=1, host="h", port=3, status=EndpointStatus.RECONNECTING))

        assert await reset_stale_statuses(container) == 2

        statuses = {e.id: e.status for e in await container.endpoints.list_all()}
        assert statuses == {"a": EndpointStatus.STOPPED, "b": EndpointStatus.UNSUPPORTED, "c": EndpointStatus.STOPPED}


@pytest.mark.asyncio
async def test_lifespan_closes_watchers(container):
    async with lifespan(container) as running:
        endpoint = await running.endpoint_service.register_endpoint(42, "play.example.net", 19132)
        assert (await running.session_manager.start(endpoint.id)).signal is StartSignal.STARTED
        connection = running.connector.last

    assert connection.closed is True
    assert container.session_manager.active_count() == 0
    assert not container.sweeper.is_running
    assert container.started is False
    assert container.task_registry.list_active_tasks() == []


@pytest.mark.asyncio
async def test_lifespan_shuts_down_on_error(container):
    with pytest.raises(RuntimeError):
        async with lifespan(container):
            raise RuntimeError("gateway crashed")

    assert container.started is False
    assert not container.sweeper.is_running
