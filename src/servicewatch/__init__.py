"""servicewatch: structured logging, metrics, timing and health checks."""

from servicewatch.config import Settings
from servicewatch.core.errors import (
    ConfigurationError,
    HealthCheckCancelledError,
    HealthCheckTimeoutError,
    ServiceWatchError,
)
from servicewatch.core.health import HealthChecker
from servicewatch.core.logs import Logger
from servicewatch.core.metrics import MetricsCollector, counter, gauge, timing
from servicewatch.core.models import (
    Environment,
    ErrorDetail,
    HealthReport,
    HealthStatus,
    LogContext,
    LogEntry,
    LogLevel,
    MetricSample,
    MetricSummary,
    TimerHandle,
)
from servicewatch.core.performance import PerformanceMonitor
from servicewatch.service import Observability

__all__ = [
    "ConfigurationError",
    "Environment",
    "ErrorDetail",
    "HealthCheckCancelledError",
    "HealthCheckTimeoutError",
    "HealthChecker",
    "HealthReport",
    "HealthStatus",
    "LogContext",
    "LogEntry",
    "LogLevel",
    "Logger",
    "MetricSample",
    "MetricSummary",
    "MetricsCollector",
    "Observability",
    "PerformanceMonitor",
    "ServiceWatchError",
    "Settings",
    "TimerHandle",
    "counter",
    "gauge",
    "timing",
]
