"""
Exception hierarchy for Watchkeeper.

Each exception carries an ErrorType so callers get a stable, distinguishable
signal per failure kind. Exceptions log themselves with structured context
when constructed.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, ClassVar

from .error_types import ErrorMessages, ErrorType
from .logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class ErrorContext:
    """Contextual information for error reporting and debugging."""

    user_id: int | None = None
    endpoint_id: str | None = None
    operation: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert context to dictionary for logging."""
        return {
            "user_id": self.user_id,
            "endpoint_id": self.endpoint_id,
            "operation": self.operation,
            "timestamp": self.timestamp.isoformat(),
            "metadata": self.metadata,
        }


class WatchkeeperError(Exception):
    """
    Base exception for all Watchkeeper errors.

    Provides structured error handling with context and metadata
    for proper error categorization and debugging.
    """

    error_type: ClassVar[ErrorType] = ErrorType.INTERNAL_ERROR
    log_level: ClassVar[str] = "error"

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        details: dict[str, Any] | None = None,
        user_friendly: str | None = None,
    ):
        """
        Initialize Watchkeeper error.

        Args:
            message: Technical error message
            context: Error context information
            details: Additional error details
            user_friendly: User-friendly error message
        """
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()
        self.details = details or {}
        self.user_friendly = user_friendly or message
        self.timestamp = datetime.now(UTC)

        self._log_error()

    def _log_error(self) -> None:
        """Log the error with structured context."""
        getattr(logger, self.log_level)(
            "Watchkeeper error occurred",
            error_type=self.error_type.value,
            exception=self.__class__.__name__,
            message=self.message,
            context=self.context.to_dict(),
            details=self.details,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for the chat-facing layer."""
        return {
            "error_type": self.error_type.value,
            "message": self.message,
            "user_friendly": self.user_friendly,
            "context": self.context.to_dict(),
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class ResourceNotFoundError(WatchkeeperError):
    """Endpoint, user or catalog entry is absent."""

    error_type = ErrorType.RESOURCE_NOT_FOUND
    log_level = "warning"

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        resource_type: str | None = None,
        resource_id: str | None = None,
        **kwargs,
    ):
        kwargs.setdefault("user_friendly", ErrorMessages.ENDPOINT_NOT_FOUND if resource_type == "endpoint" else None)
        super().__init__(message, context, **kwargs)
        self.resource_type = resource_type
        self.resource_id = resource_id
        if resource_type:
            self.details["resource_type"] = resource_type
        if resource_id:
            self.details["resource_id"] = resource_id


class NetworkError(WatchkeeperError):
    """Network and communication errors."""

    error_type = ErrorType.PROBE_OR_CONNECT_FAILED

    def __init__(self, message: str, context: ErrorContext | None = None, connection_type: str = "unknown", **kwargs):
        super().__init__(message, context, **kwargs)
        self.connection_type = connection_type
        self.details["connection_type"] = connection_type


class ProbeFailedError(NetworkError):
    """A status probe or watcher connect timed out or failed in transport."""

    log_level = "warning"


class StoreError(WatchkeeperError):
    """Record store operation failed (e.g. the table file could not be written)."""

    error_type = ErrorType.STORE_ERROR

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        operation: str = "unknown",
        table: str | None = None,
        **kwargs,
    ):
        kwargs.setdefault("user_friendly", ErrorMessages.STORE_ERROR)
        super().__init__(message, context, **kwargs)
        self.operation = operation
        self.table = table
        self.details["operation"] = operation
        if table:
            self.details["table"] = table


class DuplicateVersionError(WatchkeeperError):
    """A catalog entry with the same (kind, protocol id) already exists."""

    error_type = ErrorType.DUPLICATE_VERSION
    log_level = "warning"


class EndpointConflictError(WatchkeeperError):
    """The (host, port) pair is already registered by this owner or another one."""

    log_level = "warning"

    def __init__(self, message: str, context: ErrorContext | None = None, claimed_by_other: bool = False, **kwargs):
        self.claimed_by_other = claimed_by_other
        kwargs.setdefault(
            "user_friendly",
            ErrorMessages.ENDPOINT_CLAIMED if claimed_by_other else ErrorMessages.ENDPOINT_ALREADY_ADDED,
        )
        super().__init__(message, context, **kwargs)
        self.details["claimed_by_other"] = claimed_by_other

    @property
    def error_type(self) -> ErrorType:  # type: ignore[override]  # Reason: conflict kind depends on who owns the endpoint
        return ErrorType.ENDPOINT_CLAIMED if self.claimed_by_other else ErrorType.ENDPOINT_CONFLICT


class EndpointLimitError(WatchkeeperError):
    """The owner already has the maximum number of endpoints."""

    error_type = ErrorType.ENDPOINT_LIMIT
    log_level = "warning"

    def __init__(self, message: str, context: ErrorContext | None = None, limit: int | None = None, **kwargs):
        kwargs.setdefault("user_friendly", ErrorMessages.ENDPOINT_LIMIT)
        super().__init__(message, context, **kwargs)
        self.limit = limit
        if limit is not None:
            self.details["limit"] = limit


class ValidationError(WatchkeeperError):
    """Input validation errors."""

    error_type = ErrorType.VALIDATION_ERROR
    log_level = "warning"

    def __init__(self, message: str, context: ErrorContext | None = None, field: str | None = None, **kwargs):
        super().__init__(message, context, **kwargs)
        self.field = field
        if field:
            self.details["field"] = field


class PermissionDeniedError(WatchkeeperError):
    """The operation is not allowed on the target subject."""

    error_type = ErrorType.PERMISSION_DENIED
    log_level = "warning"


def create_error_context(**kwargs) -> ErrorContext:
    """
    Create an error context with the given parameters.

    Args:
        **kwargs: Context parameters

    Returns:
        ErrorContext instance
    """
    return ErrorContext(**kwargs)
