"""Tests for the PerformanceMonitor."""

import io

import pytest

from servicewatch.adapters.storage.in_memory import InMemoryMetricsSink
from servicewatch.core.metrics import MetricsCollector
from servicewatch.core.models import TimerHandle
from servicewatch.core.performance import PerformanceMonitor
from tests.conftest import FakeClock, read_lines

pytestmark = pytest.mark.core


def _timings(metrics: MetricsCollector, sink: InMemoryMetricsSink) -> list[tuple]:
    metrics.flush()
    return [(s.name, s.value, s.tags) for s in sink.samples if s.unit == "ms"]


class TestTimers:
    """Tests for start_timer() and end_timer()."""

    @pytest.mark.tier(0)
    def test_end_timer_returns_elapsed_milliseconds(
        self, performance: PerformanceMonitor, clock: FakeClock
    ) -> None:
        handle = performance.start_timer("checkout")
        clock.advance(0.25)

        assert performance.end_timer(handle) == pytest.approx(250.0)

    @pytest.mark.tier(0)
    def test_immediate_stop_is_small_and_non_negative(
        self, performance: PerformanceMonitor
    ) -> None:
        handle = performance.start_timer("x")
        duration = performance.end_timer(handle)
        assert 0 <= duration <= 1

    @pytest.mark.tier(0)
    def test_end_timer_records_operation_timing(
        self,
        performance: PerformanceMonitor,
        metrics: MetricsCollector,
        sink: InMemoryMetricsSink,
        clock: FakeClock,
    ) -> None:
        handle = performance.start_timer("db.findCustomer")
        clock.advance(0.010)
        performance.end_timer(handle, {"shopId": "s1"})

        [(name, value, tags)] = _timings(metrics, sink)
        assert name == "operation.db.findCustomer"
        assert value == pytest.approx(10.0)
        assert tags == {"shopId": "s1"}

    @pytest.mark.tier(0)
    def test_handles_are_unique_per_call(
        self, performance: PerformanceMonitor
    ) -> None:
        first = performance.start_timer("same")
        second = performance.start_timer("same")

        assert first != second
        assert performance.active_timers == 2

    @pytest.mark.tier(0)
    def test_concurrent_timers_for_same_operation(
        self, performance: PerformanceMonitor, clock: FakeClock
    ) -> None:
        first = performance.start_timer("sync")
        clock.advance(1)
        second = performance.start_timer("sync")
        clock.advance(1)

        assert performance.end_timer(second) == pytest.approx(1000)
        assert performance.end_timer(first) == pytest.approx(2000)

    @pytest.mark.tier(0)
    def test_second_end_timer_returns_zero_and_warns(
        self, performance: PerformanceMonitor, stream: io.StringIO
    ) -> None:
        handle = performance.start_timer("x")
        performance.end_timer(handle)

        assert performance.end_timer(handle) == 0

        [warning] = read_lines(stream)
        assert warning["level"] == "warn"
        assert warning["message"] == "Timer not found"
        assert warning["context"]["timerId"] == handle.token

    @pytest.mark.tier(0)
    def test_unknown_handle_returns_zero(
        self, performance: PerformanceMonitor, metrics: MetricsCollector
    ) -> None:
        assert performance.end_timer(TimerHandle("nope", "ghost")) == 0
        assert metrics.pending == 0

    @pytest.mark.tier(0)
    def test_operation_name_containing_delimiters_is_kept(
        self,
        performance: PerformanceMonitor,
        metrics: MetricsCollector,
        sink: InMemoryMetricsSink,
    ) -> None:
        handle = performance.start_timer("api:customer:earn")
        performance.end_timer(handle)

        [(name, _, _)] = _timings(metrics, sink)
        assert name == "operation.api:customer:earn"


class TestMeasure:
    """Tests for measure()."""

    @pytest.mark.tier(1)
    async def test_measure_returns_result_and_records_timing(
        self,
        performance: PerformanceMonitor,
        metrics: MetricsCollector,
        sink: InMemoryMetricsSink,
        clock: FakeClock,
        stream: io.StringIO,
    ) -> None:
        async def operation() -> str:
            clock.advance(0.05)
            return "done"

        result = await performance.measure("reward", operation, {"tier": "gold"})

        assert result == "done"
        [(name, value, tags)] = _timings(metrics, sink)
        assert (name, tags) == ("operation.reward", {"tier": "gold"})
        assert value == pytest.approx(50.0)
        completed = read_lines(stream)[0]
        assert completed["level"] == "debug"
        assert completed["message"] == "Operation reward completed"
        assert completed["context"]["duration"] == pytest.approx(50.0)
        assert completed["context"]["tags"] == {"tier": "gold"}
        assert performance.active_timers == 0

    @pytest.mark.tier(1)
    async def test_measure_reraises_exact_exception(
        self, performance: PerformanceMonitor
    ) -> None:
        failure = LookupError("customer not found")

        async def operation() -> None:
            raise failure

        with pytest.raises(LookupError) as excinfo:
            await performance.measure("lookup", operation)

        assert excinfo.value is failure

    @pytest.mark.tier(1)
    async def test_failed_measure_tags_status_error(
        self,
        performance: PerformanceMonitor,
        metrics: MetricsCollector,
        sink: InMemoryMetricsSink,
    ) -> None:
        async def operation() -> None:
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await performance.measure("redeem", operation, {"shopId": "s1"})

        [(name, _, tags)] = _timings(metrics, sink)
        assert name == "operation.redeem"
        assert tags == {"shopId": "s1", "status": "error"}

    @pytest.mark.tier(1)
    @pytest.mark.parametrize("fails", [False, True])
    async def test_timer_is_closed_exactly_once(
        self,
        performance: PerformanceMonitor,
        monkeypatch: pytest.MonkeyPatch,
        fails: bool,
    ) -> None:
        calls: list[TimerHandle] = []
        original = performance.end_timer

        def spy(handle: TimerHandle, tags: dict[str, str] | None = None) -> float:
            calls.append(handle)
            return original(handle, tags)

        monkeypatch.setattr(performance, "end_timer", spy)

        async def operation() -> int:
            if fails:
                raise ValueError("nope")
            return 1

        if fails:
            with pytest.raises(ValueError):
                await performance.measure("op", operation)
        else:
            await performance.measure("op", operation)

        assert len(calls) == 1
        assert performance.active_timers == 0


class TestSpecializations:
    """Tests for measure_query(), measure_api_call() and with_timing()."""

    @pytest.mark.tier(1)
    async def test_measure_query_prefixes_and_tags(
        self,
        performance: PerformanceMonitor,
        metrics: MetricsCollector,
        sink: InMemoryMetricsSink,
    ) -> None:
        async def query() -> list[int]:
            return [1, 2]

        rows = await performance.measure_query(
            "findCustomer", query, {"shopId": "s1", "customerId": "c1", "ip": "x"}
        )

        assert rows == [1, 2]
        [(name, _, tags)] = _timings(metrics, sink)
        assert name == "operation.db.findCustomer"
        assert tags == {"shopId": "s1", "customerId": "c1"}

    @pytest.mark.tier(1)
    async def test_measure_query_drops_missing_context_values(
        self,
        performance: PerformanceMonitor,
        metrics: MetricsCollector,
        sink: InMemoryMetricsSink,
    ) -> None:
        async def query() -> None:
            return None

        await performance.measure_query("count", query)

        [(_, _, tags)] = _timings(metrics, sink)
        assert tags == {}

    @pytest.mark.tier(1)
    async def test_measure_api_call_tags_endpoint(
        self,
        performance: PerformanceMonitor,
        metrics: MetricsCollector,
        sink: InMemoryMetricsSink,
    ) -> None:
        async def call() -> dict[str, int]:
            return {"points": 10}

        await performance.measure_api_call("loyalty/earn", call, {"shopId": "s1"})

        [(name, _, tags)] = _timings(metrics, sink)
        assert name == "operation.api.loyalty/earn"
        assert tags == {"shopId": "s1", "endpoint": "loyalty/earn"}

    @pytest.mark.tier(1)
    async def test_with_timing_wraps_each_call(
        self,
        performance: PerformanceMonitor,
        metrics: MetricsCollector,
        sink: InMemoryMetricsSink,
    ) -> None:
        async def award(customer_id: str, points: int = 0) -> str:
            return f"{customer_id}:{points}"

        timed_award = performance.with_timing("LoyaltyService.award", award)

        assert await timed_award("c1", points=5) == "c1:5"
        assert await timed_award("c2") == "c2:0"
        assert timed_award.__name__ == "award"
        names = [name for name, _, _ in _timings(metrics, sink)]
        assert names == ["operation.LoyaltyService.award"] * 2

    @pytest.mark.tier(0)
    def test_timed_block_records_timing(
        self,
        performance: PerformanceMonitor,
        metrics: MetricsCollector,
        sink: InMemoryMetricsSink,
        clock: FakeClock,
    ) -> None:
        with performance.timed("render", {"view": "dashboard"}) as handle:
            clock.advance(0.002)

        assert handle.operation == "render"
        [(name, value, tags)] = _timings(metrics, sink)
        assert name == "operation.render"
        assert value == pytest.approx(2.0)
        assert tags == {"view": "dashboard"}

    @pytest.mark.tier(0)
    def test_timed_block_failure_is_reraised_and_tagged(
        self,
        performance: PerformanceMonitor,
        metrics: MetricsCollector,
        sink: InMemoryMetricsSink,
    ) -> None:
        with pytest.raises(KeyError):
            with performance.timed("parse"):
                raise KeyError("field")

        [(_, _, tags)] = _timings(metrics, sink)
        assert tags == {"status": "error"}
