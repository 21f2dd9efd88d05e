"""Human-readable log line for development.

Output format:
    \x1b[32m[INFO] 2024-05-01T12:00:00.000Z\x1b[0m Message {"shopId": "s1"}
"""

import json

from servicewatch.core.models import LogEntry, LogLevel

COLORS = {
    LogLevel.DEBUG: "\033[36m",  # Cyan
    LogLevel.INFO: "\033[32m",  # Green
    LogLevel.WARN: "\033[33m",  # Yellow
    LogLevel.ERROR: "\033[31m",  # Red
    LogLevel.CRITICAL: "\033[35m",  # Magenta
}
RESET = "\033[0m"


def format_console(entry: LogEntry) -> str:
    """Format a log entry as one colorized line."""
    color = COLORS.get(entry.level, "")
    parts = [
        f"{color}[{entry.level.value.upper()}] {entry.timestamp}{RESET}",
        entry.message,
    ]
    if entry.context is not None:
        try:
            parts.append(json.dumps(entry.context.to_dict(), default=str))
        except (TypeError, ValueError):
            parts.append(repr(entry.context.to_dict()))
    if entry.error is not None:
        parts.append(f"{entry.error.name}: {entry.error.message}")
    return " ".join(parts)
