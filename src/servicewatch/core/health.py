"""Health checking over a registry of named async predicates."""

import asyncio
import threading
from collections.abc import Awaitable, Callable

from servicewatch.core.errors import (
    HealthCheckCancelledError,
    HealthCheckTimeoutError,
)
from servicewatch.core.logs import Logger
from servicewatch.core.metrics import MetricsCollector
from servicewatch.core.models import HealthReport, HealthStatus

HealthCheck = Callable[[], Awaitable[bool]]

DEFAULT_CHECK_TIMEOUT = 5.0


def _discard_result(task: "asyncio.Future[bool]") -> None:
    """Retrieve the outcome of an abandoned check so asyncio does not warn."""
    if not task.cancelled():
        task.exception()


class HealthChecker:
    """Runs registered health checks concurrently and aggregates the outcome.

    Each check is raced against its own timeout. A check that raises or
    times out counts as failed and is logged at error level; it never
    prevents the other checks from being run and reported.

    Example:
        ```python
        checker = HealthChecker(logger, metrics)
        checker.register("database", datastore_check(datastore))
        report = await checker.run_checks()
        ```
    """

    def __init__(
        self,
        logger: Logger,
        metrics: MetricsCollector,
        timeout: float = DEFAULT_CHECK_TIMEOUT,
    ) -> None:
        """Initialize the checker.

        Args:
            logger: Logger for check failures.
            metrics: Collector receiving one ``health.<name>`` gauge per check.
            timeout: Per-check timeout in seconds.
        """
        self._logger = logger
        self._metrics = metrics
        self.timeout = timeout
        self._checks: dict[str, HealthCheck] = {}
        self._lock = threading.Lock()

    @property
    def names(self) -> list[str]:
        """Registered check names in registration order."""
        with self._lock:
            return list(self._checks)

    def register(self, name: str, check: HealthCheck) -> None:
        """Install a named check, replacing any check with the same name."""
        with self._lock:
            self._checks[name] = check

    async def run_checks(self) -> HealthReport:
        """Run every registered check and build a fresh report."""
        with self._lock:
            checks = list(self._checks.items())

        outcomes = await asyncio.gather(
            *(self._run_check(name, check) for name, check in checks)
        )
        results = {name: passed for (name, _), passed in zip(checks, outcomes)}
        status = (
            HealthStatus.HEALTHY if all(results.values()) else HealthStatus.UNHEALTHY
        )
        return HealthReport(status=status, checks=results)

    async def _run_check(self, name: str, check: HealthCheck) -> bool:
        try:
            passed = await self._race(check)
        except Exception as exc:
            passed = False
            self._logger.error(f"Health check failed: {name}", {"check": name}, exc)
        self._metrics.gauge(f"health.{name}", 1 if passed else 0)
        return passed

    async def _race(self, check: HealthCheck) -> bool:
        """Await the check, giving up after the timeout.

        A check that ignores cancellation keeps running in the background;
        its eventual result is discarded. A check that ends up cancelled on
        its own raises HealthCheckCancelledError so it counts as a failure.
        """
        task = asyncio.ensure_future(check())
        done, _ = await asyncio.wait({task}, timeout=self.timeout)
        if not done:
            task.add_done_callback(_discard_result)
            task.cancel()
            raise HealthCheckTimeoutError()
        # Cancelled from inside the check, e.g. an awaited dependency was cancelled
        if task.cancelled():
            raise HealthCheckCancelledError()
        return bool(task.result())
