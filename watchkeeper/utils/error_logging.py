"""
Raise-with-logging helper for service code.

Services call log_and_raise instead of raising directly so every domain
error leaves a debug trail with its error context attached.
"""

from typing import Any, NoReturn

from ..exceptions import ErrorContext, WatchkeeperError, create_error_context
from ..logging_config import get_logger

logger = get_logger(__name__)


def log_and_raise(
    exception_class: type[WatchkeeperError],
    message: str,
    context: ErrorContext | None = None,
    details: dict[str, Any] | None = None,
    user_friendly: str | None = None,
    logger_name: str | None = None,
    **kwargs: Any,
) -> NoReturn:
    """
    Emit a debug record for the failure, then raise exception_class.

    Extra keyword arguments go straight to the exception constructor
    (resource_id, limit, claimed_by_other and so on). logger_name lets the
    caller attribute the record to its own module.
    """
    emit = get_logger(logger_name) if logger_name else logger
    context = context or create_error_context()

    emit.debug(
        "Raising domain error",
        error_class=exception_class.__name__,
        message=message,
        details=details or {},
        operation=context.operation,
    )

    if user_friendly is not None:
        kwargs["user_friendly"] = user_friendly
    raise exception_class(message, context, details=details, **kwargs)
