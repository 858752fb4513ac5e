"""
Error logging for py2fah.

A failed command is logged once: the user-facing message at the level the
caller chooses, then the code, context and cause at DEBUG.
"""

import json
import logging
from typing import Any, Dict, Optional

from py2fah.core.errors import FAHError

ERROR_LOGGER_NAME = 'py2fah.errors'


class ErrorLogger:
    """
    Logs FAHErrors to one logger.

    No handlers are attached; where the records go is up to the
    application's logging configuration (see setup_logging()).
    """

    def __init__(self, logger_name: str = ERROR_LOGGER_NAME):
        self.logger = logging.getLogger(logger_name)

    def log_error(
        self,
        error: FAHError,
        level: int = logging.ERROR,
        include_trace: bool = True,
        extra_context: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Log an error.

        Args:
            error: The error to log
            level: Level for the user-facing message
            include_trace: Whether the DEBUG record includes the cause's trace
            extra_context: Caller details such as the command that failed
        """
        self.logger.log(level, error.format_user_message())
        self.logger.debug(error.format_log_message(include_trace))

        if extra_context:
            context = dict(error.context, **extra_context)
            self.logger.debug(f"Error context: {json.dumps(context, default=str)}")


_error_logger: Optional[ErrorLogger] = None


def get_error_logger() -> ErrorLogger:
    """Get the shared error logger, creating it on first use."""
    global _error_logger
    if _error_logger is None:
        _error_logger = ErrorLogger()
    return _error_logger


def log_error(error: FAHError, **kwargs) -> None:
    """Log an error through the shared error logger; see ErrorLogger.log_error()."""
    get_error_logger().log_error(error, **kwargs)
