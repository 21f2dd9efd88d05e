"""In-memory adapters implementing core ports."""

from servicewatch.adapters.storage.in_memory import (
    CapturedError,
    InMemoryCache,
    InMemoryErrorReporter,
    InMemoryMetricsSink,
)

__all__ = [
    "CapturedError",
    "InMemoryCache",
    "InMemoryErrorReporter",
    "InMemoryMetricsSink",
]
