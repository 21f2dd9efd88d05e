"""Python logging handler adapter for servicewatch.

This adapter bridges Python's standard library logging module to the
servicewatch Logger, so records from third-party libraries end up in the
same output stream and error reporter.
"""

import logging

from servicewatch.core.logs import Logger
from servicewatch.core.models import LogLevel

# Standard LogRecord attributes that should not be treated as extra fields
_STANDARD_LOGRECORD_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)


def _level_for(levelno: int) -> LogLevel:
    if levelno >= logging.CRITICAL:
        return LogLevel.CRITICAL
    if levelno >= logging.ERROR:
        return LogLevel.ERROR
    if levelno >= logging.WARNING:
        return LogLevel.WARN
    if levelno >= logging.INFO:
        return LogLevel.INFO
    return LogLevel.DEBUG


class ServiceWatchHandler(logging.Handler):
    """Logging handler that forwards log records to a servicewatch Logger.

    Example:
        ```python
        from servicewatch.adapters.logging import ServiceWatchHandler

        logging.getLogger().addHandler(ServiceWatchHandler(observability.logger))
        ```
    """

    def __init__(self, logger: Logger, level: int = logging.NOTSET) -> None:
        """Initialize the handler.

        Args:
            logger: The servicewatch Logger receiving the records.
            level: Minimum stdlib level handled.
        """
        super().__init__(level)
        self._logger = logger

    def emit(self, record: logging.LogRecord) -> None:
        """Forward a log record to the Logger.

        Args:
            record: The log record to emit.
        """
        try:
            context: dict[str, str | int | float | bool] = {"logger": record.name}

            # Add any extra attributes passed via logging call
            for key, value in record.__dict__.items():
                if key not in _STANDARD_LOGRECORD_ATTRS and isinstance(
                    value, (str, int, float, bool)
                ):
                    context[key] = value

            error = None
            if record.exc_info and record.exc_info[1] is not None:
                error = record.exc_info[1]

            self._logger.log(
                _level_for(record.levelno), record.getMessage(), context, error
            )
        except Exception:
            self.handleError(record)
