"""
Helpers for log file placement and environment detection.
"""

import os
import sys
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)

VALID_ENVIRONMENTS = ("unit_test", "local", "production")


def ensure_log_directory(directory: Path) -> bool:
    """
    Create directory (and parents) for log files.

    Returns:
        False if the directory could not be created; file logging is then
        skipped and the console handler still works
    """
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.warning("Log directory unavailable", directory=str(directory), error=str(e))
        return False
    return True


def resolve_log_base(log_base: str, data_dir: str | None = None) -> Path:
    """
    Turn the configured log base into an absolute path.

    Relative paths are anchored next to the data directory when one is
    configured, otherwise at the working directory.
    """
    path = Path(log_base)
    if path.is_absolute():
        return path
    anchor = Path(data_dir).resolve().parent if data_dir else Path.cwd()
    return anchor / path


def detect_environment() -> str:
    """Best guess at the logging environment when none is configured."""
    if "pytest" in sys.modules:
        return "unit_test"
    env = os.getenv("LOGGING_ENVIRONMENT", "")
    return env if env in VALID_ENVIRONMENTS else "local"
