from __future__ import annotations

import datetime

import pytest

from procmon.core.models import RawMemoryUsage, RawProcessInfo, SystemMetrics
from procmon.platform import Platform, PlatformAdapter


def make_metrics(cpu=40.0, total=1000, used=400, free=600):
    return SystemMetrics(
        cpu_usage=cpu,
        memory_usage=RawMemoryUsage(total=total, used=used, free=free),
        load_average=[0.1, 0.2, 0.3],
        uptime=3600,
        process_count=50,
    )


class FakeAdapter(PlatformAdapter):
    """Adapter returning canned values; metrics may be a list consumed in order."""

    def __init__(self, metrics=None, processes=None, process_info=None):
        super().__init__(Platform.LINUX)
        self.metrics = metrics if metrics is not None else make_metrics()
        self.processes = processes or []
        self.process_info = process_info or {}
        self.metrics_calls = 0

    def get_system_metrics(self):
        self.metrics_calls += 1
        if isinstance(self.metrics, list):
            value = self.metrics.pop(0)
        else:
            value = self.metrics
        if isinstance(value, Exception):
            raise value
        return value

    def get_process_info(self, pid):
        value = self.process_info.get(pid)
        if isinstance(value, Exception):
            raise value
        return value

    def list_processes(self):
        return list(self.processes)


class FakeClock:
    """Monotonic clock that only moves when FakeSleep advances it."""

    def __init__(self, start=100.0):
        self.now = start

    def __call__(self):
        return self.now


class FakeSleep:
    def __init__(self, clock=None):
        self.clock = clock
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)
        if self.clock is not None:
            self.clock.now += seconds


@pytest.fixture
def fake_adapter():
    return FakeAdapter(processes=[
        RawProcessInfo(pid=1, name="init", command="/sbin/init", cpu=0.5, memory=4096, status="sleeping",
                       start_time=datetime.datetime(2024, 1, 1)),
        RawProcessInfo(pid=42, name="python", command="python app.py", cpu=25.0, memory=50_000_000,
                       status="running"),
        RawProcessInfo(pid=7, name="Nginx", command="nginx: worker", cpu=None, memory=None, status="disk-sleep"),
    ])


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fake_sleep(fake_clock):
    return FakeSleep(fake_clock)
