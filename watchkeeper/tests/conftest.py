"""
Test configuration and fixtures for the Watchkeeper test suite.

Required environment variables are set before any watchkeeper module reads
configuration.
"""

import os

os.environ.setdefault("ADMIN_USER_ID", "1000")
os.environ.setdefault("LOGGING_ENVIRONMENT", "unit_test")
os.environ.setdefault("LOGGING_DISABLE_LOGGING", "true")

# pylint: disable=wrong-import-position,redefined-outer-name
import pytest
import pytest_asyncio

from watchkeeper.app.task_registry import TaskRegistry
from watchkeeper.caching import SubjectStatusCacheService
from watchkeeper.config import AdminConfig, AppConfig, CacheConfig, WatcherConfig, reset_config
from watchkeeper.persistence import (
    ConfigRepository,
    EndpointRepository,
    RecordStore,
    UserRepository,
    VersionRepository,
)
from watchkeeper.realtime import RestartScheduler, SessionManager, SessionTable
from watchkeeper.services import CatalogResolver
from watchkeeper.tests.fakes import FakeConnector, FakeProbe, RecordingNotifier

ADMIN_ID = 1000


@pytest.fixture(autouse=True)
def reset_config_between_tests():
    """Force configuration reload between tests."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"


@pytest.fixture
def store(data_dir):
    return RecordStore(data_dir)


@pytest.fixture
def endpoint_repo(store):
    return EndpointRepository(store)


@pytest.fixture
def user_repo(store):
    return UserRepository(store)


@pytest.fixture
def version_repo(store):
    return VersionRepository(store)


@pytest.fixture
def config_repo(store):
    return ConfigRepository(store)


@pytest.fixture
def watcher_config():
    """Watcher timings shrunk so restart tests finish quickly."""
    return WatcherConfig(
        probe_timeout_seconds=1.0,
        info_probe_timeout_seconds=1.0,
        restart_delay_seconds=0.01,
        sweep_interval_seconds=3600,
    )


@pytest.fixture
def cache_config():
    return CacheConfig()


@pytest.fixture
def app_config(data_dir, monkeypatch):
    monkeypatch.setenv("STORAGE_DATA_DIR", str(data_dir))
    monkeypatch.setenv("WATCHER_RESTART_DELAY_SECONDS", "0.01")
    monkeypatch.setenv("WATCHER_PROBE_TIMEOUT_SECONDS", "1")
    return AppConfig()


@pytest.fixture
def admin_config():
    return AdminConfig(user_id=ADMIN_ID)


@pytest.fixture
def task_registry():
    return TaskRegistry()


@pytest.fixture
def probe():
    return FakeProbe()


@pytest.fixture
def connector():
    return FakeConnector()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def restart_scheduler(task_registry, watcher_config):
    return RestartScheduler(task_registry, watcher_config.restart_delay_seconds)


@pytest_asyncio.fixture
async def manager(endpoint_repo, version_repo, user_repo, probe, connector, notifier, restart_scheduler, watcher_config, task_registry):
    catalog = CatalogResolver(version_repo)
    await catalog.seed_if_empty()
    session_manager = SessionManager(
        endpoints=endpoint_repo,
        catalog=catalog,
        probe=probe,
        connector=connector,
        sessions=SessionTable(),
        restart_scheduler=restart_scheduler,
        watcher_config=watcher_config,
        notifier=notifier,
        subject_status=SubjectStatusCacheService(user_repo, ttl_seconds=60),
    )
    yield session_manager
    await session_manager.shutdown()
    await task_registry.shutdown_all(timeout=1.0)


