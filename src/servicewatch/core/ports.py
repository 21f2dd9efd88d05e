"""Port interfaces for external collaborators.

These protocols define the contracts that adapters must implement.
The core depends only on these interfaces, not concrete implementations.
"""

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from servicewatch.core.models import MetricSample, MetricSummary


@runtime_checkable
class ErrorReporterPort(Protocol):
    """Port for the external error-reporting sink.

    Receives every exception logged at ERROR or CRITICAL.
    Examples: SentryErrorReporter, InMemoryErrorReporter.
    """

    def capture(
        self, error: BaseException, severity: str, context: Mapping[str, Any]
    ) -> None:
        """Report an error.

        Args:
            error: The exception (possibly synthesized from a log message).
            severity: "error" or "fatal".
            context: Serialized log context.
        """
        ...


@runtime_checkable
class MetricsSinkPort(Protocol):
    """Port for delivering flushed metrics to an external backend.

    Examples: InMemoryMetricsSink.
    """

    def export(
        self,
        samples: Sequence[MetricSample],
        summaries: Mapping[str, MetricSummary],
    ) -> None:
        """Receive one drained batch and its per-group aggregates."""
        ...


@runtime_checkable
class CachePort(Protocol):
    """Port for the cache probed by the cache health check."""

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store a value with a time-to-live."""
        ...

    async def get(self, key: str) -> Any:
        """Return the stored value, or None if missing or expired."""
        ...


@runtime_checkable
class DatastorePort(Protocol):
    """Port for the datastore probed by the database health check."""

    async def execute(self, query: str) -> Any:
        """Run a query, raising if the datastore is unreachable."""
        ...
