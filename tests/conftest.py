"""Shared test fixtures for all test modules."""

import io
import json
from typing import Any

import pytest

from servicewatch.adapters.storage.in_memory import (
    InMemoryErrorReporter,
    InMemoryMetricsSink,
)
from servicewatch.core.health import HealthChecker
from servicewatch.core.logs import Logger
from servicewatch.core.metrics import MetricsCollector
from servicewatch.core.models import Environment
from servicewatch.core.performance import PerformanceMonitor


class FakeClock:
    """Manually advanced clock for deterministic timer tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def read_lines(stream: io.StringIO) -> list[dict[str, Any]]:
    """Parse every JSON line written to a stream."""
    return [json.loads(line) for line in stream.getvalue().splitlines() if line]


@pytest.fixture
def stream() -> io.StringIO:
    """In-memory output stream for the logger."""
    return io.StringIO()


@pytest.fixture
def reporter() -> InMemoryErrorReporter:
    """Error reporter that keeps captured errors in memory."""
    return InMemoryErrorReporter()


@pytest.fixture
def sink() -> InMemoryMetricsSink:
    """Metrics sink that keeps exported batches in memory."""
    return InMemoryMetricsSink()


@pytest.fixture
def logger(stream: io.StringIO, reporter: InMemoryErrorReporter) -> Logger:
    """Production-format logger writing to the in-memory stream."""
    return Logger(Environment.PRODUCTION, reporter=reporter, stream=stream)


@pytest.fixture
def metrics(logger: Logger, sink: InMemoryMetricsSink) -> MetricsCollector:
    """Metrics collector with default batch size and an in-memory sink."""
    return MetricsCollector(logger, sink=sink)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def performance(
    logger: Logger, metrics: MetricsCollector, clock: FakeClock
) -> PerformanceMonitor:
    """Performance monitor driven by the fake clock."""
    return PerformanceMonitor(logger, metrics, clock=clock)


@pytest.fixture
def health(logger: Logger, metrics: MetricsCollector) -> HealthChecker:
    """Health checker with a short timeout suitable for tests."""
    return HealthChecker(logger, metrics, timeout=0.2)
