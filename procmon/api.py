"""
Module-level convenience functions backed by a shared SystemMonitor.
"""
import threading
from typing import Iterator, List, Optional

from procmon.core.models import (
    MonitorOptions,
    ProcessFilters,
    ProcessInfo,
    ProcessMetrics,
    ResourceUsageReport,
    SystemInfo,
)
from procmon.monitoring import SystemMonitor
from procmon.monitoring.system_monitor import DEFAULT_WATCH_INTERVAL

_monitor: Optional[SystemMonitor] = None
_monitor_lock = threading.Lock()


def get_system_monitor() -> SystemMonitor:
    """Return the shared monitor, creating it on first use."""
    global _monitor
    with _monitor_lock:
        if _monitor is None:
            _monitor = SystemMonitor()
        return _monitor


def set_system_monitor(monitor: Optional[SystemMonitor]) -> None:
    """Replace the shared monitor; None makes the next call create a fresh one."""
    global _monitor
    with _monitor_lock:
        _monitor = monitor


def get_system_info() -> SystemInfo:
    """
    Snapshot system-wide resource usage.

    :return: Current system information
    :rtype: SystemInfo
    """
    return get_system_monitor().get_system_info()


def get_process_metrics(pid: int) -> ProcessMetrics:
    """
    Current CPU and memory usage of one process.

    :return: Metrics captured now
    :rtype: ProcessMetrics
    """
    return get_system_monitor().get_process_metrics(pid)


def track_resource_usage(duration: float) -> ResourceUsageReport:
    """
    Sample system-wide usage for ``duration`` seconds and summarize it.

    :return: Collected samples with averages and peaks
    :rtype: ResourceUsageReport
    """
    return get_system_monitor().track_resource_usage(duration)


def start_watch_mode(filters: Optional[ProcessFilters] = None) -> Iterator[List[ProcessInfo]]:
    """
    Infinite stream of filtered process lists at the monitor's watch interval.

    :return: Iterator of process lists
    :rtype: Iterator[List[ProcessInfo]]
    """
    return get_system_monitor().start_watch_mode(filters)


def start_monitor(options: Optional[MonitorOptions] = None) -> Iterator[List[ProcessInfo]]:
    """
    Watch stream using ``options.refresh_interval`` (a zero or missing
    interval means the 2 second default) and truncating each capture to
    ``options.max_results`` processes.

    :return: Iterator of process lists
    :rtype: Iterator[List[ProcessInfo]]
    :raises ValidationError: If the interval is negative
    """
    options = options or MonitorOptions()
    return get_system_monitor().watch(
        options.filters,
        refresh_interval=options.refresh_interval or DEFAULT_WATCH_INTERVAL,
        max_results=options.max_results,
    )
