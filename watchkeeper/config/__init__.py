"""
Configuration module for Watchkeeper.

Usage:
    from watchkeeper.config import get_config

    config = get_config()
    logger.info("Watcher configuration", restart_delay=config.watcher.restart_delay_seconds)
"""

import sys
import threading
from os import getenv

from .models import AdminConfig, AppConfig, CacheConfig, LoggingConfig, StorageConfig, WatcherConfig

__all__ = [
    "AdminConfig",
    "AppConfig",
    "CacheConfig",
    "LoggingConfig",
    "StorageConfig",
    "WatcherConfig",
    "get_config",
    "reset_config",
]

_config_instance: AppConfig | None = None
_config_lock = threading.Lock()


def _is_test_mode() -> bool:
    """Return True when running under pytest."""
    if "pytest" in sys.modules:
        return True
    return bool(getenv("PYTEST_CURRENT_TEST"))


def get_config() -> AppConfig:
    """
    Get application configuration (singleton in production, fresh in tests).

    Configuration is loaded from environment variables and an optional .env file.

    Returns:
        AppConfig: The application configuration

    Raises:
        pydantic.ValidationError: If configuration is invalid or required fields are missing
    """
    global _config_instance  # pylint: disable=global-statement  # Reason: module-level singleton cache

    if _is_test_mode():
        return AppConfig()

    with _config_lock:
        if _config_instance is None:
            _config_instance = AppConfig()
    return _config_instance


def reset_config() -> None:
    """
    Reset the configuration cache.

    Used by tests to force configuration reload.
    """
    global _config_instance  # pylint: disable=global-statement  # Reason: module-level singleton cache
    with _config_lock:
        _config_instance = None
