"""
Logging processors for structlog event processing.

This module provides processors for sanitizing sensitive data and adding
correlation IDs to every log entry.
"""

import re
import uuid
from typing import Any

# Patterns match whole words or specific suffixes/prefixes of field names
SENSITIVE_PATTERNS = [
    r"\bpassword\b",
    r"\btoken\b",
    r"\bsecret\b",
    r"_key\b",
    r"^key$",
    r"\bcredential\b",
    r"\bauth\b",
    r"\bauthorization\b",
]

# Field names that match a pattern but carry no secret material
SAFE_FIELDS = {
    "cache_key",
    "table_key",
}


def _sanitize_dict(d: dict[str, Any]) -> dict[str, Any]:
    """Recursively sanitize dictionary values."""
    sanitized: dict[str, Any] = {}
    for key, value in d.items():
        if isinstance(value, dict):
            sanitized[key] = _sanitize_dict(value)
            continue
        key_lower = key.lower()
        if key_lower in SAFE_FIELDS:
            sanitized[key] = value
        elif any(re.search(pattern, key_lower) for pattern in SENSITIVE_PATTERNS):
            sanitized[key] = "[REDACTED]"
        else:
            sanitized[key] = value
    return sanitized


def sanitize_sensitive_data(_logger: Any, _name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Remove sensitive data from log entries.

    Bot tokens and similar credentials occasionally end up in structured
    fields; this processor redacts them before anything is rendered.

    Args:
        _logger: Logger instance (unused)
        _name: Logger name (unused)
        event_dict: Event dictionary to sanitize

    Returns:
        Sanitized event dictionary
    """
    return _sanitize_dict(event_dict)


def add_correlation_id(_logger: Any, _name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Add a correlation ID to log entries that do not already carry one.

    Args:
        _logger: Logger instance (unused)
        _name: Logger name (unused)
        event_dict: Event dictionary to enhance

    Returns:
        Enhanced event dictionary with correlation ID
    """
    if "correlation_id" not in event_dict:
        event_dict["correlation_id"] = str(uuid.uuid4())

    return event_dict
