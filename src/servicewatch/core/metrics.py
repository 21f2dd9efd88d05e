"""Metric sample helpers and the batching MetricsCollector."""

import asyncio
import contextlib
import dataclasses
import threading
import time
from collections.abc import Iterable

from servicewatch.core.logs import Logger
from servicewatch.core.models import MetricSample, MetricSummary
from servicewatch.core.ports import MetricsSinkPort

COUNT_UNIT = "count"
TIMING_UNIT = "ms"
GAUGE_UNIT = "gauge"

DEFAULT_BATCH_SIZE = 100
DEFAULT_FLUSH_INTERVAL = 60.0


def counter(
    name: str,
    value: float = 1.0,
    tags: dict[str, str] | None = None,
) -> MetricSample:
    """Create a counter metric sample.

    Args:
        name: Metric name (e.g., "errors.total")
        value: Increment value (default: 1.0)
        tags: Optional dimension tags

    Returns:
        MetricSample with unit "count" and current timestamp
    """
    return MetricSample(
        name=name,
        value=value,
        unit=COUNT_UNIT,
        timestamp=time.time(),
        tags=dict(tags or {}),
    )


def timing(
    name: str,
    duration_ms: float,
    tags: dict[str, str] | None = None,
) -> MetricSample:
    """Create a timing metric sample.

    Args:
        name: Metric name (e.g., "operation.db.findCustomer")
        duration_ms: Elapsed time in milliseconds
        tags: Optional dimension tags

    Returns:
        MetricSample with unit "ms" and current timestamp
    """
    return MetricSample(
        name=name,
        value=duration_ms,
        unit=TIMING_UNIT,
        timestamp=time.time(),
        tags=dict(tags or {}),
    )


def gauge(
    name: str,
    value: float,
    tags: dict[str, str] | None = None,
) -> MetricSample:
    """Create a gauge metric sample.

    Args:
        name: Metric name (e.g., "health.database")
        value: Current gauge value
        tags: Optional dimension tags

    Returns:
        MetricSample with unit "gauge" and current timestamp
    """
    return MetricSample(
        name=name,
        value=value,
        unit=GAUGE_UNIT,
        timestamp=time.time(),
        tags=dict(tags or {}),
    )


def summary_key(sample: MetricSample) -> str:
    """Group key for aggregation: "<name>:<unit>"."""
    return f"{sample.name}:{sample.unit or ''}"


def summarize(samples: Iterable[MetricSample]) -> dict[str, MetricSummary]:
    """Aggregate samples into count/sum/min/max per (name, unit).

    Args:
        samples: Samples drained from the buffer.

    Returns:
        Mapping of "<name>:<unit>" to MetricSummary, in first-seen order.
    """
    summaries: dict[str, MetricSummary] = {}
    for sample in samples:
        key = summary_key(sample)
        existing = summaries.get(key)
        if existing is None:
            summaries[key] = MetricSummary(
                count=1, sum=sample.value, min=sample.value, max=sample.value
            )
        else:
            existing.add(sample.value)
    return summaries


class MetricsCollector:
    """In-memory metric accumulator with bounded batching.

    Samples are buffered until either the batch size is reached or the
    periodic flush fires. A flush drains the buffer atomically, logs an
    aggregate summary at debug level and hands the batch to the optional
    sink.
    """

    def __init__(
        self,
        logger: Logger,
        batch_size: int = DEFAULT_BATCH_SIZE,
        flush_interval: float = DEFAULT_FLUSH_INTERVAL,
        sink: MetricsSinkPort | None = None,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._logger = logger
        self.batch_size = batch_size
        self.flush_interval = flush_interval
        self.sink = sink
        self._buffer: list[MetricSample] = []
        self._lock = threading.Lock()
        self._flush_task: asyncio.Task[None] | None = None

    @property
    def pending(self) -> int:
        """Number of samples waiting for the next flush."""
        return len(self._buffer)

    def record(self, sample: MetricSample) -> None:
        """Buffer a sample, flushing once the batch size is reached."""
        if sample.timestamp is None:
            sample = dataclasses.replace(sample, timestamp=time.time())
        with self._lock:
            self._buffer.append(sample)
            batch_full = len(self._buffer) >= self.batch_size
        if batch_full:
            self.flush()

    def counter(
        self, name: str, value: float = 1, tags: dict[str, str] | None = None
    ) -> None:
        self.record(counter(name, value, tags))

    def timing(
        self, name: str, duration_ms: float, tags: dict[str, str] | None = None
    ) -> None:
        self.record(timing(name, duration_ms, tags))

    def gauge(
        self, name: str, value: float, tags: dict[str, str] | None = None
    ) -> None:
        self.record(gauge(name, value, tags))

    def flush(self) -> dict[str, MetricSummary]:
        """Drain the buffer and emit its aggregate summary.

        Returns:
            The per-group summaries of the drained batch ({} if empty).
        """
        with self._lock:
            drained, self._buffer = self._buffer, []
        if not drained:
            return {}

        summaries = summarize(drained)
        self._logger.debug(
            "Metrics summary",
            {
                "metrics": {key: s.to_dict() for key, s in summaries.items()},
                "count": len(drained),
            },
        )
        if self.sink is not None:
            try:
                self.sink.export(drained, summaries)
            except Exception as exc:
                self._logger.warn(
                    "Metrics sink export failed", {"count": len(drained)}, exc
                )
        return summaries

    def start(self) -> None:
        """Start the periodic flush task on the running event loop."""
        if self._flush_task is None or self._flush_task.done():
            self._flush_task = asyncio.get_running_loop().create_task(
                self._flush_periodically()
            )

    async def stop(self) -> None:
        """Cancel the periodic flush and flush whatever is left."""
        task, self._flush_task = self._flush_task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self.flush()

    async def _flush_periodically(self) -> None:
        while True:
            await asyncio.sleep(self.flush_interval)
            self.flush()
