"""Structured logger writing one line per entry to the output stream."""

import sys
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, TextIO

from servicewatch.core.encoding import encode_entry, format_console
from servicewatch.core.models import (
    Environment,
    ErrorDetail,
    LogContext,
    LogEntry,
    LogLevel,
)
from servicewatch.core.ports import ErrorReporterPort

ContextLike = LogContext | Mapping[str, Any]


def iso_timestamp(now: datetime | None = None) -> str:
    """Return an ISO-8601 UTC timestamp like 2024-05-01T12:00:00.000Z."""
    now = now or datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def as_context(context: ContextLike | None) -> LogContext | None:
    """Normalize a mapping or LogContext into a LogContext."""
    if context is None or isinstance(context, LogContext):
        return context
    return LogContext.from_mapping(context)


def build_entry(
    level: LogLevel | str,
    message: str,
    context: ContextLike | None = None,
    error: BaseException | None = None,
) -> LogEntry:
    """Create a log entry with automatic timestamp.

    Args:
        level: Log level (e.g., "info", LogLevel.ERROR)
        message: The log message
        context: Structured context (LogContext or mapping)
        error: Exception to attach

    Returns:
        LogEntry with current timestamp
    """
    return LogEntry(
        timestamp=iso_timestamp(),
        level=LogLevel.parse(level),
        message=message,
        context=as_context(context),
        error=ErrorDetail.from_exception(error) if error is not None else None,
    )


class Logger:
    """Single funnel for diagnostic output.

    In development each entry is written as a colorized console line, in
    production as one JSON object per line. Entries at ERROR and CRITICAL
    are also forwarded to the error reporter (CRITICAL as "fatal").

    Example:
        ```python
        logger = Logger(Environment.PRODUCTION, reporter=SentryErrorReporter())
        logger.info("Points earned", {"shopId": "s1", "customerId": "c9"})
        ```
    """

    def __init__(
        self,
        environment: Environment = Environment.PRODUCTION,
        reporter: ErrorReporterPort | None = None,
        stream: TextIO | None = None,
        min_level: LogLevel = LogLevel.DEBUG,
    ) -> None:
        """Initialize the logger.

        Args:
            environment: Selects console (development) or JSON output.
            reporter: Error-reporting sink for ERROR/CRITICAL entries.
            stream: Output stream. Defaults to ``sys.stdout`` at write time.
            min_level: Entries below this level are not written.
        """
        self.environment = environment
        self.reporter = reporter
        self.min_level = min_level
        self._stream = stream

    @property
    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    def log(
        self,
        level: LogLevel | str,
        message: str,
        context: ContextLike | None = None,
        error: BaseException | None = None,
    ) -> LogEntry:
        """Build, emit and (for severe levels) report a log entry.

        Never raises for well-formed input.

        Returns:
            The emitted LogEntry.
        """
        entry = build_entry(level, message, context, error)
        if entry.level.severity >= self.min_level.severity:
            self._write(entry)
        if entry.level.reportable:
            self._report(entry, error)
        return entry

    def debug(self, message: str, context: ContextLike | None = None) -> LogEntry:
        return self.log(LogLevel.DEBUG, message, context)

    def info(self, message: str, context: ContextLike | None = None) -> LogEntry:
        return self.log(LogLevel.INFO, message, context)

    def warn(
        self,
        message: str,
        context: ContextLike | None = None,
        error: BaseException | None = None,
    ) -> LogEntry:
        return self.log(LogLevel.WARN, message, context, error)

    def error(
        self,
        message: str,
        context: ContextLike | None = None,
        error: BaseException | None = None,
    ) -> LogEntry:
        return self.log(LogLevel.ERROR, message, context, error)

    def critical(
        self,
        message: str,
        context: ContextLike | None = None,
        error: BaseException | None = None,
    ) -> LogEntry:
        return self.log(LogLevel.CRITICAL, message, context, error)

    def _write(self, entry: LogEntry) -> None:
        line = format_console(entry) if self.is_development else encode_entry(entry)
        stream = self._stream or sys.stdout
        try:
            stream.write(line + "\n")
            stream.flush()
        except (OSError, ValueError):
            # Closed or broken stream; output is best-effort
            pass

    def _report(self, entry: LogEntry, error: BaseException | None) -> None:
        if self.reporter is None:
            return
        severity = "fatal" if entry.level == LogLevel.CRITICAL else "error"
        context = entry.context.to_dict() if entry.context is not None else {}
        try:
            reported = error if error is not None else Exception(entry.message)
            self.reporter.capture(reported, severity, context)
        except Exception as exc:
            sys.stderr.write(f"servicewatch: error reporter failed: {exc!r}\n")
