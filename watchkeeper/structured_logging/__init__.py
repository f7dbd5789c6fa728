"""Structured logging package for Watchkeeper."""

from .enhanced_logging_config import (
    bind_request_context,
    clear_request_context,
    configure_structlog,
    get_logger,
    setup_logging,
)

__all__ = [
    "bind_request_context",
    "clear_request_context",
    "configure_structlog",
    "get_logger",
    "setup_logging",
]
