"""
Pydantic-based configuration models for Watchkeeper.

Each sub-config reads its own environment prefix; AppConfig composes them
and is obtained through get_config().
"""

from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from ..logging_config import get_logger

logger = get_logger(__name__)


class StorageConfig(BaseSettings):
    """Record store location."""

    data_dir: str = Field(default="data", description="Directory holding the JSON table files")

    model_config = {"env_prefix": "STORAGE_", "case_sensitive": False, "extra": "ignore"}

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir)


class WatcherConfig(BaseSettings):
    """Watcher session timing and per-owner limits."""

    probe_timeout_seconds: float = Field(default=8.0, description="Timeout for the status probe issued by start")
    info_probe_timeout_seconds: float = Field(default=5.0, description="Timeout for on-demand live info probes")
    restart_delay_seconds: float = Field(default=30.0, description="Delay before an auto-restart re-enters Searching")
    sweep_interval_seconds: float = Field(default=5 * 3600, description="Interval between reconciliation sweeps")
    default_watcher_name: str = Field(default="MaxBlack", description="Identity used by new watchers")
    max_endpoints_per_owner: int = Field(default=3, description="Maximum endpoints a single owner may register")

    model_config = {"env_prefix": "WATCHER_", "case_sensitive": False, "extra": "ignore"}

    @field_validator(
        "probe_timeout_seconds",
        "info_probe_timeout_seconds",
        "sweep_interval_seconds",
        "max_endpoints_per_owner",
    )
    @classmethod
    def validate_positive(cls, v: float) -> float:
        """Timeouts, intervals and limits must be positive."""
        if v <= 0:
            logger.error("Invalid watcher setting", value=v)
            raise ValueError("Value must be greater than zero")
        return v

    @field_validator("restart_delay_seconds")
    @classmethod
    def validate_restart_delay(cls, v: float) -> float:
        """Restart delay may be zero (immediate) but never negative."""
        if v < 0:
            raise ValueError("Restart delay cannot be negative")
        return v


class CacheConfig(BaseSettings):
    """TTLs for the subject-status and eligibility caches."""

    subject_status_ttl_seconds: float = Field(default=60, description="TTL of cached ban/admin/language projections")
    eligibility_open_ttl_seconds: float = Field(
        default=3600, description="TTL of an eligible result when no groups are required"
    )
    eligibility_checked_ttl_seconds: float = Field(
        default=300, description="TTL of an eligible result after groups were checked"
    )
    eligibility_denied_ttl_seconds: float = Field(default=300, description="TTL of a not-yet-eligible result")

    model_config = {"env_prefix": "CACHE_", "case_sensitive": False, "extra": "ignore"}

    @field_validator("*")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("TTL cannot be negative")
        return v


class AdminConfig(BaseSettings):
    """Main admin identity."""

    user_id: int = Field(..., description="External id of the main admin (required)")
    display_name: str = Field(default="admin", description="Display name used when the admin record is created")

    model_config = {"env_prefix": "ADMIN_", "case_sensitive": False, "extra": "ignore"}


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    environment: str = Field(..., description="Logging environment (required)")
    level: str = Field(default="INFO", description="Log level")
    log_base: str = Field(default="logs", description="Base log directory")
    rotation_max_size: str = Field(default="10MB", description="Log rotation max size")
    rotation_backup_count: int = Field(default=5, description="Number of backup log files")
    disable_logging: bool = Field(default=False, description="Disable file logging")

    model_config = {"env_prefix": "LOGGING_", "case_sensitive": False, "extra": "ignore"}

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate logging environment."""
        valid_environments = ["local", "unit_test", "production"]
        if v not in valid_environments:
            logger.error("Invalid logging environment", environment=v, valid_environments=valid_environments)
            raise ValueError(f"Environment must be one of {valid_environments}, got '{v}'")
        return v

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}, got '{v}'")
        return v_upper

    def to_dict(self) -> dict[str, Any]:
        """Return the mapping consumed by setup_logging()."""
        return {
            "environment": self.environment,
            "level": self.level,
            "log_base": self.log_base,
            "rotation": {
                "max_size": self.rotation_max_size,
                "backup_count": self.rotation_backup_count,
            },
            "disable_logging": self.disable_logging,
        }


class AppConfig(BaseSettings):
    """
    Composite application configuration.

    Access via the get_config() function.
    """

    storage: StorageConfig = Field(default_factory=StorageConfig)
    watcher: WatcherConfig = Field(default_factory=WatcherConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    admin: AdminConfig = Field(default_factory=AdminConfig)  # type: ignore[arg-type]
    logging: LoggingConfig = Field(default_factory=LoggingConfig)  # type: ignore[arg-type]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "case_sensitive": False, "extra": "ignore"}

    def to_dict(self) -> dict[str, Any]:
        """Flatten to the dictionary shape used by logging setup and diagnostics."""
        return {
            "data_dir": self.storage.data_dir,
            "watcher": self.watcher.model_dump(),
            "cache": self.cache.model_dump(),
            "admin_user_id": self.admin.user_id,
            "logging": self.logging.to_dict(),
        }
