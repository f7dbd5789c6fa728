"""
Centralized error types and constants for Watchkeeper.

Every failure the core can report maps onto one ErrorType value, so the
chat-facing layer can render a short message per kind without inspecting
exception classes.
"""

from enum import Enum


class ErrorType(Enum):
    """Standardized error types for consistent categorization."""

    # Resource Errors
    RESOURCE_NOT_FOUND = "resource_not_found"
    ENDPOINT_CONFLICT = "endpoint_conflict"
    ENDPOINT_CLAIMED = "endpoint_claimed"
    ENDPOINT_LIMIT = "endpoint_limit"
    DUPLICATE_VERSION = "duplicate_version"

    # Watcher lifecycle
    ALREADY_ACTIVE = "already_active"
    UNSUPPORTED_PROTOCOL = "unsupported_protocol"
    PROBE_OR_CONNECT_FAILED = "probe_or_connect_failed"

    # Store
    STORE_ERROR = "store_error"
    STORE_CORRUPTION = "store_corruption"

    # Validation and permissions
    VALIDATION_ERROR = "validation_error"
    PERMISSION_DENIED = "permission_denied"

    # System
    INTERNAL_ERROR = "internal_error"


class ErrorSeverity(Enum):
    """Error severity levels for logging and handling."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorMessages:
    """Common error messages for consistent user experience."""

    ENDPOINT_NOT_FOUND = "Server not found"
    USER_NOT_FOUND = "User not found"
    VERSION_NOT_FOUND = "Version not found"
    ENDPOINT_ALREADY_ADDED = "You have already added this server"
    ENDPOINT_CLAIMED = "This server has already been added by another user"
    ENDPOINT_LIMIT = "You have reached the maximum number of servers"
    DUPLICATE_VERSION = "This version is already in the catalog"
    ALREADY_ACTIVE = "The watcher for this server is already running"
    UNSUPPORTED_PROTOCOL = "This server version is not supported yet"
    PROBE_OR_CONNECT_FAILED = "Could not reach the server"
    STORE_ERROR = "Could not save your changes, please try again"
    INVALID_INPUT = "Invalid input provided"
    PERMISSION_DENIED = "This action is not allowed"
    INTERNAL_ERROR = "An internal error occurred"
