"""
Configuration loading and validation tests.
"""

import pytest
from pydantic import ValidationError

from watchkeeper.config import AdminConfig, AppConfig, CacheConfig, LoggingConfig, WatcherConfig, get_config


class TestWatcherConfig:
    def test_defaults(self, monkeypatch):
        for name in ("WATCHER_PROBE_TIMEOUT_SECONDS", "WATCHER_RESTART_DELAY_SECONDS"):
            monkeypatch.delenv(name, raising=False)

        config = WatcherConfig()

        assert config.restart_delay_seconds == 30.0
        assert config.max_endpoints_per_owner == 3
        assert config.default_watcher_name == "MaxBlack"

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("WATCHER_MAX_ENDPOINTS_PER_OWNER", "5")
        assert WatcherConfig().max_endpoints_per_owner == 5

    @pytest.mark.parametrize("field", ["probe_timeout_seconds", "sweep_interval_seconds", "max_endpoints_per_owner"])
    def test_rejects_non_positive(self, field):
        with pytest.raises(ValidationError):
            WatcherConfig(**{field: 0})

    def test_restart_delay_may_be_zero(self):
        assert WatcherConfig(restart_delay_seconds=0).restart_delay_seconds == 0

    def test_negative_restart_delay(self):
        with pytest.raises(ValidationError):
            WatcherConfig(restart_delay_seconds=-1)


def test_cache_ttls_cannot_be_negative():
    with pytest.raises(ValidationError):
        CacheConfig(subject_status_ttl_seconds=-1)


def test_admin_id_is_required(monkeypatch):
    monkeypatch.delenv("ADMIN_USER_ID", raising=False)
    with pytest.raises(ValidationError):
        AdminConfig(_env_file=None)


class TestLoggingConfig:
    def test_invalid_environment(self):
        with pytest.raises(ValidationError):
            LoggingConfig(environment="staging")

    def test_level_is_normalized(self):
        assert LoggingConfig(environment="local", level="debug").level == "DEBUG"


def test_app_config_to_dict(app_config, data_dir):
    flattened = app_config.to_dict()

    assert flattened["data_dir"] == str(data_dir)
    assert flattened["admin_user_id"] == 1000
    assert flattened["logging"]["environment"] == "unit_test"
    assert flattened["watcher"]["restart_delay_seconds"] == 0.01


def test_get_config_is_fresh_under_pytest(monkeypatch):
    first = get_config()
    monkeypatch.setenv("WATCHER_MAX_ENDPOINTS_PER_OWNER", "7")

    assert isinstance(first, AppConfig)
    assert get_config().watcher.max_endpoints_per_owner == 7
