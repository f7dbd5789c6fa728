"""
Logger access for Watchkeeper modules.

All modules MUST use get_logger() from here (or from
watchkeeper.structured_logging) instead of logging.getLogger(), because log
calls pass structured keyword fields that stdlib loggers reject.

    from .logging_config import get_logger
    logger = get_logger(__name__)
    logger.info("Watcher session registered", endpoint_id=endpoint_id)
"""

from .structured_logging.enhanced_logging_config import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
