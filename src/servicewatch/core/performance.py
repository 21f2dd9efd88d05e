"""Operation timing on top of the Logger and MetricsCollector."""

import functools
import threading
import time
import uuid
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from typing import ParamSpec, TypeVar

from servicewatch.core.logs import ContextLike, Logger, as_context
from servicewatch.core.metrics import MetricsCollector
from servicewatch.core.models import TimerHandle

T = TypeVar("T")
P = ParamSpec("P")


def _context_tags(context: ContextLike | None, **fields: str | None) -> dict[str, str]:
    """Build metric tags, pulling None-valued fields from the context."""
    ctx = as_context(context)
    tags: dict[str, str] = {}
    for key, value in fields.items():
        if value is None and ctx is not None:
            value = ctx.get(key)
        if value is not None:
            tags[key] = str(value)
    return tags


class PerformanceMonitor:
    """Correlates operation starts and ends and records their durations.

    Every finished timer emits a timing metric named
    ``operation.<operation>``.
    """

    def __init__(
        self,
        logger: Logger,
        metrics: MetricsCollector,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        """Initialize the monitor.

        Args:
            logger: Logger for completion and missing-timer messages.
            metrics: Collector receiving timing samples.
            clock: Monotonic clock in seconds (injectable for tests).
        """
        self._logger = logger
        self._metrics = metrics
        self._clock = clock
        self._start_times: dict[str, float] = {}
        self._lock = threading.Lock()

    @property
    def active_timers(self) -> int:
        return len(self._start_times)

    def start_timer(self, operation: str) -> TimerHandle:
        """Start timing an operation and return its handle."""
        handle = TimerHandle(token=uuid.uuid4().hex, operation=operation)
        with self._lock:
            self._start_times[handle.token] = self._clock()
        return handle

    def end_timer(
        self, handle: TimerHandle, tags: dict[str, str] | None = None
    ) -> float:
        """Stop a timer and record its duration.

        Returns:
            Elapsed milliseconds, or 0 if the handle is unknown or was
            already stopped.
        """
        with self._lock:
            start = self._start_times.pop(handle.token, None)
        if start is None:
            self._logger.warn(
                "Timer not found",
                {"timerId": handle.token, "operation": handle.operation},
            )
            return 0

        duration = max(0.0, (self._clock() - start) * 1000)
        self._metrics.timing(f"operation.{handle.operation}", duration, tags)
        return duration

    async def measure(
        self,
        operation: str,
        fn: Callable[[], Awaitable[T]],
        tags: dict[str, str] | None = None,
    ) -> T:
        """Await ``fn()`` and record how long it took.

        On failure the timer is closed with ``status=error`` added to the tags
        and the original exception is re-raised.
        """
        handle = self.start_timer(operation)
        try:
            result = await fn()
        except BaseException:
            self.end_timer(handle, {**(tags or {}), "status": "error"})
            raise

        duration = self.end_timer(handle, tags)
        self._logger.debug(
            f"Operation {operation} completed", {"duration": duration, "tags": tags}
        )
        return result

    async def measure_query(
        self,
        query_name: str,
        query: Callable[[], Awaitable[T]],
        context: ContextLike | None = None,
    ) -> T:
        """Measure a database query as ``db.<query_name>``."""
        tags = _context_tags(context, shopId=None, customerId=None)
        return await self.measure(f"db.{query_name}", query, tags)

    async def measure_api_call(
        self,
        endpoint: str,
        api_call: Callable[[], Awaitable[T]],
        context: ContextLike | None = None,
    ) -> T:
        """Measure an outbound API call as ``api.<endpoint>``."""
        tags = _context_tags(context, shopId=None, endpoint=endpoint)
        return await self.measure(f"api.{endpoint}", api_call, tags)

    def with_timing(
        self, operation: str, fn: Callable[P, Awaitable[T]]
    ) -> Callable[P, Awaitable[T]]:
        """Wrap an async function so every call is measured.

        Example:
            ```python
            find_customer = monitor.with_timing(
                "CustomerService.find", service.find_customer
            )
            customer = await find_customer(shop_id, customer_id)
            ```
        """

        @functools.wraps(fn)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            return await self.measure(operation, lambda: fn(*args, **kwargs))

        return wrapper

    @contextmanager
    def timed(
        self, operation: str, tags: dict[str, str] | None = None
    ) -> Iterator[TimerHandle]:
        """Context manager timing a synchronous block.

        Yields:
            The TimerHandle of the running timer.
        """
        handle = self.start_timer(operation)
        try:
            yield handle
        except BaseException:
            self.end_timer(handle, {**(tags or {}), "status": "error"})
            raise
        self.end_timer(handle, tags)

