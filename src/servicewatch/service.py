"""Observability service wiring the logger, metrics, timing and health.

Construct one instance at process startup and pass it (or its components)
to the code that needs it:

    observability = Observability.from_env()
    async with observability:
        ...
"""

from typing import TextIO

from servicewatch.config import Settings
from servicewatch.core.health import HealthChecker
from servicewatch.core.logs import ContextLike, Logger, as_context
from servicewatch.core.metrics import MetricsCollector
from servicewatch.core.models import LogContext
from servicewatch.core.performance import PerformanceMonitor
from servicewatch.core.ports import ErrorReporterPort, MetricsSinkPort


class Observability:
    """One process-wide set of observability components.

    Attributes:
        settings: Settings the components were built from.
        logger: Structured logger.
        metrics: Batching metrics collector.
        performance: Operation timer.
        health: Health checker.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        reporter: ErrorReporterPort | None = None,
        sink: MetricsSinkPort | None = None,
        stream: TextIO | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.logger = Logger(
            environment=self.settings.environment,
            reporter=reporter,
            stream=stream,
            min_level=self.settings.log_level,
        )
        self.metrics = MetricsCollector(
            self.logger,
            batch_size=self.settings.batch_size,
            flush_interval=self.settings.flush_interval,
            sink=sink,
        )
        self.performance = PerformanceMonitor(self.logger, self.metrics)
        self.health = HealthChecker(
            self.logger, self.metrics, timeout=self.settings.health_timeout
        )

    @classmethod
    def from_env(cls, sink: MetricsSinkPort | None = None) -> "Observability":
        """Build from environment variables.

        When SENTRY_DSN is set the Sentry SDK is initialized and errors are
        reported through it.
        """
        settings = Settings.from_env()
        reporter: ErrorReporterPort | None = None
        if settings.sentry_dsn:
            from servicewatch.adapters.sentry import SentryErrorReporter, init_sentry

            init_sentry(settings.sentry_dsn, settings.environment, settings.version)
            reporter = SentryErrorReporter()
        return cls(settings, reporter=reporter, sink=sink)

    async def start(self) -> None:
        """Start background work (the periodic metrics flush)."""
        self.metrics.start()

    async def stop(self) -> None:
        """Stop background work and flush pending metrics."""
        await self.metrics.stop()

    async def __aenter__(self) -> "Observability":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    def track_error(
        self, error: BaseException, context: ContextLike | None = None
    ) -> None:
        """Log an error and count it by exception type."""
        ctx = as_context(context)
        self.logger.error(str(error), ctx, error)
        self.metrics.counter(
            "errors.total",
            1,
            {"error_type": type(error).__name__, "shopId": _shop_id(ctx)},
        )

    def track_user_action(self, action: str, context: ContextLike) -> None:
        """Log a user action and count it per shop."""
        ctx = as_context(context)
        self.logger.info(f"User action: {action}", ctx)
        self.metrics.counter(
            "user_actions.total", 1, {"action": action, "shopId": _shop_id(ctx)}
        )

    def track_business_metric(
        self, metric: str, value: float, context: ContextLike | None = None
    ) -> None:
        """Record a business gauge such as points issued or active members."""
        ctx = as_context(context)
        self.metrics.gauge(f"business.{metric}", value, {"shopId": _shop_id(ctx)})
        self.logger.info(f"Business metric: {metric} = {value}", ctx)


def _shop_id(context: LogContext | None) -> str:
    if context is None or context.shop_id is None:
        return ""
    return context.shop_id
