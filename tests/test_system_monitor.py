from __future__ import annotations

import itertools
import platform
import sys
import threading
import time

import pytest

from conftest import FakeAdapter, FakeClock, FakeSleep, make_metrics
from procmon.core.errors import ErrorCodes, ProcessError, SystemCallError, ValidationError
from procmon.core.models import ProcessFilters, RawProcessInfo
from procmon.monitoring import SYSTEM_WIDE_PID, SystemMonitor


def make_monitor(adapter, clock=None, sleep=None, **kwargs):
    clock = clock or FakeClock()
    return SystemMonitor(
        adapter_factory=lambda: adapter,
        clock=clock,
        sleep=sleep or FakeSleep(clock),
        **kwargs,
    )


class ScriptedLister:
    """Process lister whose results are scripted per call."""

    def __init__(self, *results):
        self.results = list(results)
        self.received_filters = []

    def list_all(self, filters=None):
        self.received_filters.append(filters)
        value = self.results.pop(0)
        if isinstance(value, Exception):
            raise value
        return value


# --- get_system_info -------------------------------------------------------

def test_system_info_maps_adapter_metrics():
    monitor = make_monitor(FakeAdapter())

    info = monitor.get_system_info()

    assert info.platform == sys.platform
    assert info.arch == platform.machine()
    assert info.cpu_usage == 40
    assert info.memory_usage.total == 1000
    assert info.memory_usage.used == 400
    assert info.memory_usage.free == 600
    assert info.memory_usage.percentage == 40.0
    assert info.load_average == [0.1, 0.2, 0.3]
    assert info.uptime == 3600
    assert info.process_count == 50


@pytest.mark.parametrize("total,used", [(8_000_000_000, 1_234_567_890), (3, 1), (1000, 0), (512, 512)])
def test_memory_percentage_is_recomputed_per_snapshot(total, used):
    adapter = FakeAdapter(metrics=[make_metrics(total=total, used=used, free=total - used),
                                   make_metrics(total=1000, used=250, free=750)])
    monitor = make_monitor(adapter)

    first = monitor.get_system_info()
    second = monitor.get_system_info()

    assert first.memory_usage.percentage == pytest.approx(used / total * 100)
    assert second.memory_usage.percentage == pytest.approx(25.0)


def test_system_info_wraps_adapter_failure():
    cause = RuntimeError("boom")
    monitor = make_monitor(FakeAdapter(metrics=[cause]))

    with pytest.raises(SystemCallError) as exc_info:
        monitor.get_system_info()

    assert exc_info.value.code == ErrorCodes.SYSTEM_CALL_FAILED
    assert exc_info.value.original_error is cause
    assert exc_info.value.__cause__ is cause


def test_adapter_creation_failure_is_not_cached():
    calls = []

    def factory():
        calls.append(1)
        if len(calls) == 1:
            raise OSError("no adapter")
        return FakeAdapter()

    monitor = SystemMonitor(adapter_factory=factory, sleep=FakeSleep())

    with pytest.raises(SystemCallError) as exc_info:
        monitor.get_system_info()
    assert isinstance(exc_info.value.original_error, OSError)

    assert monitor.get_system_info().cpu_usage == 40
    assert len(calls) == 2


def test_adapter_created_once_across_operations():
    calls = []

    def factory():
        calls.append(1)
        return FakeAdapter(process_info={5: RawProcessInfo(pid=5, name="x", cpu=1.0, memory=2)})

    monitor = SystemMonitor(adapter_factory=factory, sleep=FakeSleep())
    monitor.get_system_info()
    monitor.get_process_metrics(5)
    next(monitor.start_watch_mode())

    assert len(calls) == 1


def test_concurrent_first_calls_create_a_single_adapter():
    calls = []
    calls_lock = threading.Lock()

    def slow_factory():
        with calls_lock:
            calls.append(1)
        time.sleep(0.05)
        return FakeAdapter()

    monitor = SystemMonitor(adapter_factory=slow_factory)
    barrier = threading.Barrier(8)
    results = []

    def worker():
        barrier.wait()
        results.append(monitor.get_system_info())

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(calls) == 1
    assert len(results) == 8


# --- get_process_metrics ---------------------------------------------------

def test_process_metrics_for_existing_process():
    adapter = FakeAdapter(process_info={42: RawProcessInfo(pid=42, name="python", cpu=12.5, memory=2048)})
    monitor = make_monitor(adapter)

    metrics = monitor.get_process_metrics(42)

    assert metrics.pid == 42
    assert metrics.cpu == 12.5
    assert metrics.memory == 2048
    assert metrics.timestamp is not None


def test_process_metrics_default_missing_values_to_zero():
    adapter = FakeAdapter(process_info={9: RawProcessInfo(pid=9, name="idle")})

    metrics = make_monitor(adapter).get_process_metrics(9)

    assert metrics.cpu == 0
    assert metrics.memory == 0


def test_process_metrics_unknown_pid_raises_not_found():
    monitor = make_monitor(FakeAdapter())

    with pytest.raises(ProcessError) as exc_info:
        monitor.get_process_metrics(31337)

    assert exc_info.value.code == ErrorCodes.PROCESS_NOT_FOUND
    assert exc_info.value.details["pid"] == 31337


def test_process_metrics_wraps_other_failures():
    cause = PermissionError("denied")
    monitor = make_monitor(FakeAdapter(process_info={3: cause}))

    with pytest.raises(SystemCallError) as exc_info:
        monitor.get_process_metrics(3)

    assert exc_info.value.code == ErrorCodes.SYSTEM_CALL_FAILED
    assert exc_info.value.details["pid"] == 3
    assert exc_info.value.original_error is cause


@pytest.mark.parametrize("pid", [0, -1, True, "12", 1.5, None])
def test_process_metrics_rejects_invalid_pid(pid):
    with pytest.raises(ValidationError):
        make_monitor(FakeAdapter()).get_process_metrics(pid)


# --- start_watch_mode ------------------------------------------------------

def test_watch_mode_yields_lister_results_and_waits_between_captures(fake_adapter):
    sleep = FakeSleep()
    lister = ScriptedLister(["first"], ["second"], ["third"])
    monitor = SystemMonitor(adapter_factory=lambda: fake_adapter, process_lister=lister, sleep=sleep)

    stream = monitor.start_watch_mode()
    assert next(stream) == ["first"]
    assert sleep.calls == []
    assert next(stream) == ["second"]
    assert sleep.calls == [2.0]
    assert next(stream) == ["third"]
    assert sleep.calls == [2.0, 2.0]
    stream.close()


def test_watch_mode_survives_a_failed_iteration(fake_adapter):
    sleep = FakeSleep()
    lister = ScriptedLister(RuntimeError("lister down"), ["recovered"])
    monitor = SystemMonitor(adapter_factory=lambda: fake_adapter, process_lister=lister, sleep=sleep)

    stream = monitor.start_watch_mode()

    assert next(stream) == ["recovered"]
    assert sleep.calls == [2.0]


def test_watch_mode_passes_filters_through(fake_adapter):
    filters = ProcessFilters(name="python", min_cpu=5)
    lister = ScriptedLister([], [])
    monitor = SystemMonitor(adapter_factory=lambda: fake_adapter, process_lister=lister, sleep=FakeSleep())

    list(itertools.islice(monitor.start_watch_mode(filters), 2))

    assert lister.received_filters == [filters, filters]


def test_watch_mode_uses_default_lister_over_the_adapter(fake_adapter):
    monitor = make_monitor(fake_adapter)

    processes = next(monitor.start_watch_mode(ProcessFilters(sort_by="pid")))

    assert [p.pid for p in processes] == [1, 7, 42]


def test_watch_mode_interval_is_configurable(fake_adapter):
    sleep = FakeSleep()
    monitor = SystemMonitor(adapter_factory=lambda: fake_adapter, sleep=sleep, watch_interval=0.5)

    list(itertools.islice(monitor.start_watch_mode(), 3))

    assert sleep.calls == [0.5, 0.5]


def test_watch_mode_caps_results(fake_adapter):
    monitor = make_monitor(fake_adapter)

    processes = next(monitor.watch(refresh_interval=1.0, max_results=2))

    assert len(processes) == 2


def test_watch_mode_fails_on_first_pull_when_adapter_unavailable():
    def factory():
        raise RuntimeError("unsupported")

    monitor = SystemMonitor(adapter_factory=factory, sleep=FakeSleep())
    stream = monitor.start_watch_mode()

    with pytest.raises(SystemCallError):
        next(stream)


# --- track_resource_usage --------------------------------------------------

def test_tracking_collects_one_sample_per_interval():
    adapter = FakeAdapter(metrics=[
        make_metrics(cpu=10, used=100),
        make_metrics(cpu=50, used=400),
        make_metrics(cpu=30, used=250),
    ])
    clock = FakeClock()
    sleep = FakeSleep(clock)
    monitor = make_monitor(adapter, clock=clock, sleep=sleep)

    report = monitor.track_resource_usage(3)

    assert report.duration == 3
    assert len(report.samples) == 3
    assert all(s.pid == SYSTEM_WIDE_PID for s in report.samples)
    assert [s.cpu for s in report.samples] == [10, 50, 30]
    assert [s.memory for s in report.samples] == [100, 400, 250]
    assert report.average_cpu == pytest.approx(30.0)
    assert report.average_memory == pytest.approx(250.0)
    assert report.peak_cpu == 50
    assert report.peak_memory == 400
    assert sleep.calls == [1.0, 1.0, 1.0]


def test_tracking_samples_are_chronological():
    clock = FakeClock()
    monitor = make_monitor(FakeAdapter(), clock=clock, sleep=FakeSleep(clock))

    report = monitor.track_resource_usage(4)

    timestamps = [s.timestamp for s in report.samples]
    assert timestamps == sorted(timestamps)


def test_tracking_zero_duration_raises_without_report():
    adapter = FakeAdapter()
    monitor = make_monitor(adapter)

    with pytest.raises(SystemCallError) as exc_info:
        monitor.track_resource_usage(0)

    assert exc_info.value.code == ErrorCodes.SYSTEM_CALL_FAILED
    assert exc_info.value.details["duration"] == 0
    assert adapter.metrics_calls == 0


def test_tracking_skips_failed_samples_and_keeps_going():
    adapter = FakeAdapter(metrics=[
        RuntimeError("transient"),
        make_metrics(cpu=20, used=300),
        make_metrics(cpu=60, used=500),
    ])
    clock = FakeClock()
    sleep = FakeSleep(clock)
    monitor = make_monitor(adapter, clock=clock, sleep=sleep)

    report = monitor.track_resource_usage(3)

    assert [s.cpu for s in report.samples] == [20, 60]
    assert report.average_cpu == pytest.approx(40.0)
    assert report.peak_memory == 500
    assert sleep.calls == [1.0, 1.0, 1.0]


def test_tracking_with_only_failures_raises():
    adapter = FakeAdapter(metrics=[RuntimeError("a"), RuntimeError("b")])
    clock = FakeClock()
    monitor = make_monitor(adapter, clock=clock, sleep=FakeSleep(clock))

    with pytest.raises(SystemCallError) as exc_info:
        monitor.track_resource_usage(2)

    assert exc_info.value.details == {"duration": 2}


def test_tracking_fails_when_adapter_cannot_be_created():
    def factory():
        raise RuntimeError("no platform")

    monitor = SystemMonitor(adapter_factory=factory, clock=FakeClock(), sleep=FakeSleep())

    with pytest.raises(SystemCallError) as exc_info:
        monitor.track_resource_usage(5)

    assert exc_info.value.details["duration"] == 5


@pytest.mark.parametrize("duration", [-1, "3", None, True, float("nan"), float("inf")])
def test_tracking_rejects_invalid_duration(duration):
    with pytest.raises(ValidationError):
        make_monitor(FakeAdapter()).track_resource_usage(duration)


def test_tracking_uses_configured_sample_interval():
    clock = FakeClock()
    sleep = FakeSleep(clock)
    monitor = make_monitor(FakeAdapter(), clock=clock, sleep=sleep, sample_interval=0.5)

    report = monitor.track_resource_usage(2)

    assert len(report.samples) == 4
    assert set(sleep.calls) == {0.5}


def test_report_to_dict():
    clock = FakeClock()
    report = make_monitor(FakeAdapter(), clock=clock, sleep=FakeSleep(clock)).track_resource_usage(1)

    data = report.to_dict()

    assert data["duration"] == 1
    assert data["peak_cpu"] == 40
    assert data["samples"][0]["pid"] == 0
    assert isinstance(data["samples"][0]["timestamp"], str)


@pytest.mark.parametrize("field", ["watch_interval", "sample_interval"])
@pytest.mark.parametrize("value", [0, -1, float("inf"), "2"])
def test_constructor_rejects_invalid_intervals(field, value):
    with pytest.raises(ValidationError):
        SystemMonitor(adapter_factory=FakeAdapter, **{field: value})


@pytest.mark.parametrize("refresh_interval", [0, -1, float("nan")])
def test_watch_rejects_invalid_refresh_interval_before_streaming(fake_adapter, refresh_interval):
    sleep = FakeSleep()
    monitor = SystemMonitor(adapter_factory=lambda: fake_adapter, sleep=sleep)

    with pytest.raises(ValidationError):
        monitor.watch(refresh_interval=refresh_interval)

    assert sleep.calls == []
