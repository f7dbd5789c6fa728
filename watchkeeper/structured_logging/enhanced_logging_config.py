"""
Structlog-based logging configuration for Watchkeeper.

This module is the entry point for the logging system: it installs the
structlog processor chain, wires stdlib file handlers per environment and
exposes get_logger() for every other module.
"""

# pylint: disable=too-few-public-methods  # Reason: Logging configuration classes with focused responsibility, minimal public interface

import json
import logging
import re
import sys
from logging.handlers import RotatingFileHandler
from typing import Any

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars, merge_contextvars
from structlog.stdlib import BoundLogger, LoggerFactory

from .logging_processors import add_correlation_id, sanitize_sensitive_data
from .logging_utilities import detect_environment, ensure_log_directory, resolve_log_base

# Infrastructure code uses structlog.get_logger() directly to avoid import cycles
logger = structlog.get_logger(__name__)

_ANSI_ESCAPE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")
_FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class _LoggingState:
    """State container for logging initialization to avoid global statements."""

    initialized: bool = False
    signature: str | None = None
    handlers: list[logging.Handler] = []


_logging_state = _LoggingState()


def _convert_max_size_to_bytes(max_size: str | int) -> int:
    """Convert a size such as "10MB" to bytes."""
    if isinstance(max_size, int):
        return max_size
    text = max_size.strip().upper()
    for suffix, factor in (("GB", 1024**3), ("MB", 1024**2), ("KB", 1024)):
        if text.endswith(suffix):
            return int(float(text[: -len(suffix)]) * factor)
    return int(text)


def _remove_installed_handlers() -> None:
    root_logger = logging.getLogger()
    for handler in _logging_state.handlers:
        root_logger.removeHandler(handler)
        handler.close()
    _logging_state.handlers = []


def setup_file_logging(environment: str, log_config: dict[str, Any], log_level: str) -> None:
    """
    Install rotating file handlers and a console handler on the root logger.

    Everything goes to ``watchkeeper.log``; warnings and errors are duplicated
    into ``errors.log`` so failed probes and store problems are easy to find.

    Args:
        environment: Environment name, used as the log sub-directory
        log_config: Logging configuration dictionary
        log_level: Root log level
    """
    _remove_installed_handlers()

    env_log_dir = resolve_log_base(log_config.get("log_base", "logs"), log_config.get("data_dir")) / environment
    file_logging = ensure_log_directory(env_log_dir)

    rotation = log_config.get("rotation", {})
    max_bytes = _convert_max_size_to_bytes(rotation.get("max_size", "10MB"))
    backup_count = int(rotation.get("backup_count", 5))
    formatter = logging.Formatter(_FILE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, str(log_level).upper(), logging.INFO))

    handlers: list[logging.Handler] = []
    file_targets = (("watchkeeper.log", logging.DEBUG), ("errors.log", logging.WARNING)) if file_logging else ()
    for filename, level in file_targets:
        try:
            handler: logging.Handler = RotatingFileHandler(
                env_log_dir / filename,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
        except OSError as e:
            logger.warning("Could not open log file", filename=filename, error=str(e))
            continue
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handlers.append(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(getattr(logging, str(log_level).upper(), logging.INFO))
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    for handler in handlers:
        root_logger.addHandler(handler)
    _logging_state.handlers = handlers


def configure_structlog(
    environment: str | None = None,
    log_level: str = "INFO",
    log_config: dict[str, Any] | None = None,
) -> None:
    """
    Configure structlog with sanitization, correlation IDs and context variables.

    Args:
        environment: Environment name (auto-detected if None)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_config: Logging configuration dictionary
    """
    if environment is None:
        environment = detect_environment()

    base_processors = [
        # Security first - sanitize sensitive data
        sanitize_sensitive_data,
        add_correlation_id,
        merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if log_config and not log_config.get("disable_logging", False):
        setup_file_logging(environment, log_config, log_level)

    def strip_ansi_renderer(bound_logger: Any, name: str, event_dict: dict[str, Any]) -> str:
        """Render key=value pairs with ANSI escape sequences removed."""
        formatted = structlog.processors.KeyValueRenderer()(bound_logger, name, event_dict)
        return _ANSI_ESCAPE.sub("", formatted)

    structlog.configure(
        processors=base_processors + [strip_ansi_renderer],
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=BoundLogger,
        cache_logger_on_first_use=False,
    )


def setup_logging(config: dict[str, Any], *, force_reconfigure: bool = False) -> None:
    """
    Set up logging from the ``logging`` section of a configuration dictionary.

    Repeated calls with the logging system already initialized are no-ops
    unless force_reconfigure is set.

    Args:
        config: Configuration dictionary holding a "logging" mapping
        force_reconfigure: When True, tear down existing handlers before reconfiguring
    """
    config_signature = json.dumps(config, sort_keys=True, default=str)

    if _logging_state.initialized and not force_reconfigure:
        get_logger("watchkeeper.structured_logging.setup").debug(
            "setup_logging skipped; logging system already initialized",
            config_signature=_logging_state.signature,
        )
        return

    logging_config = config.get("logging", {})
    environment = logging_config.get("environment") or detect_environment()
    log_level = logging_config.get("level", "INFO")

    if logging_config.get("disable_logging", False):
        _remove_installed_handlers()
        configure_structlog(environment, log_level, {"disable_logging": True})
    else:
        configure_structlog(environment, log_level, logging_config)
        get_logger("watchkeeper.structured_logging.setup").info(
            "Logging system initialized",
            environment=environment,
            log_level=log_level,
            log_base=logging_config.get("log_base", "logs"),
        )

    _logging_state.initialized = True
    _logging_state.signature = config_signature


def bind_request_context(**fields: Any) -> None:
    """Bind fields (e.g. user_id) to every log entry emitted in the current context."""
    bind_contextvars(**fields)


def clear_request_context() -> None:
    """Drop all fields bound with bind_request_context()."""
    clear_contextvars()


def get_logger(name: str) -> Any:  # Returns BoundLogger but typed as Any for flexibility
    """
    Get a structlog logger with the specified name.

    This is the public API for obtaining loggers. Application code should
    use this function rather than calling structlog.get_logger() directly.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)
