"""In-memory adapters for the error reporter, metrics sink and cache."""

import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from servicewatch.core.models import MetricSample, MetricSummary


@dataclass(frozen=True)
class CapturedError:
    """One call received by InMemoryErrorReporter."""

    error: BaseException
    severity: str
    context: dict[str, Any] = field(default_factory=dict)


class InMemoryErrorReporter:
    """In-memory implementation of ErrorReporterPort.

    Keeps every captured error in a list. Suitable for testing and
    local development where no external service is configured.
    """

    def __init__(self) -> None:
        self.captured: list[CapturedError] = []

    def capture(
        self, error: BaseException, severity: str, context: Mapping[str, Any]
    ) -> None:
        """Record an error report."""
        self.captured.append(CapturedError(error, severity, dict(context)))


class InMemoryMetricsSink:
    """In-memory implementation of MetricsSinkPort.

    Stores every exported batch. Suitable for testing and
    low-volume applications where no metrics backend is available.
    """

    def __init__(self) -> None:
        self.batches: list[tuple[list[MetricSample], dict[str, MetricSummary]]] = []

    def export(
        self,
        samples: Sequence[MetricSample],
        summaries: Mapping[str, MetricSummary],
    ) -> None:
        """Store one flushed batch."""
        self.batches.append((list(samples), dict(summaries)))

    @property
    def samples(self) -> list[MetricSample]:
        """All exported samples across batches, in export order."""
        return [sample for batch, _ in self.batches for sample in batch]


class InMemoryCache:
    """In-memory implementation of CachePort with per-key expiry."""

    def __init__(self) -> None:
        self._values: dict[str, tuple[Any, float]] = {}

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store a value that expires after ``ttl_seconds``."""
        self._values[key] = (value, time.monotonic() + ttl_seconds)

    async def get(self, key: str) -> Any:
        """Return the value for key, or None if missing or expired."""
        item = self._values.get(key)
        if item is None:
            return None
        value, expires_at = item
        if time.monotonic() >= expires_at:
            del self._values[key]
            return None
        return value
