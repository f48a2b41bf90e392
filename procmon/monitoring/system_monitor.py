"""
System monitoring: snapshots, live process watching and timed resource tracking.
"""
import datetime
import math
import platform
import sys
import threading
import time
from typing import Callable, Iterator, List, Optional, TYPE_CHECKING

from procmon.core.errors import ErrorCodes, ProcessError, SystemCallError, ValidationError
from procmon.core.models import (
    MemoryUsage,
    ProcessFilters,
    ProcessInfo,
    ProcessMetrics,
    ResourceUsageReport,
    SystemInfo,
)
from procmon.monitoring.process_lister import ProcessLister
from procmon.platform import PlatformAdapter, PlatformAdapterFactory, PsutilAdapter, detect_platform
from procmon.utils import get_logger, is_number, mean, truncate

if TYPE_CHECKING:
    from procmon.config import ConfigManager

logger = get_logger(__name__)

DEFAULT_WATCH_INTERVAL = 2.0
DEFAULT_SAMPLE_INTERVAL = 1.0

# pid used for samples that describe the whole system rather than one process
SYSTEM_WIDE_PID = 0


def _check_interval(name: str, value: float) -> float:
    if not is_number(value) or not math.isfinite(value) or value <= 0:
        raise ValidationError(f"Invalid {name}: {value!r}. Must be a positive number of seconds.",
                              {name: value})
    return value


def _default_adapter_factory() -> PlatformAdapter:
    return PlatformAdapterFactory.get_instance().create_adapter()


class _LazyAdapter:
    """
    Memoized adapter, created at most once even when first requested from
    several threads at the same time. A failed creation is not cached.
    """

    def __init__(self, factory: Callable[[], PlatformAdapter]):
        self._factory = factory
        self._adapter: Optional[PlatformAdapter] = None
        self._lock = threading.Lock()

    def get(self) -> PlatformAdapter:
        adapter = self._adapter
        if adapter is None:
            with self._lock:
                if self._adapter is None:
                    self._adapter = self._factory()
                    logger.debug(f"Platform adapter initialized: {self._adapter.__class__.__name__}")
                adapter = self._adapter
        return adapter


class SystemMonitor:
    """
    Observes host and process resource usage through a platform adapter.

    The adapter is acquired lazily on first use and shared by every call on
    this monitor. Calls hold no other shared state, so a watch stream and a
    tracking call may run at the same time from different threads.

    :param adapter_factory: Callable creating the platform adapter. Defaults to
                            the process-wide :class:`PlatformAdapterFactory`
    :type adapter_factory: Optional[Callable[[], PlatformAdapter]]
    :param process_lister: Lister used by the watch stream. Defaults to a
                           :class:`ProcessLister` over this monitor's adapter
    :type process_lister: Optional[ProcessLister]
    :param watch_interval: Seconds between watch stream captures
    :type watch_interval: float
    :param sample_interval: Seconds between resource tracking samples
    :type sample_interval: float
    :param clock: Monotonic clock used for tracking deadlines
    :type clock: Callable[[], float]
    :param sleep: Function used to wait between iterations
    :type sleep: Callable[[float], None]
    """

    def __init__(self,
                 adapter_factory: Optional[Callable[[], PlatformAdapter]] = None,
                 process_lister: Optional[ProcessLister] = None,
                 watch_interval: float = DEFAULT_WATCH_INTERVAL,
                 sample_interval: float = DEFAULT_SAMPLE_INTERVAL,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        self._adapter = _LazyAdapter(adapter_factory or _default_adapter_factory)
        self._process_lister = process_lister or ProcessLister(self._ensure_adapter)
        self.watch_interval = _check_interval('watch_interval', watch_interval)
        self.sample_interval = _check_interval('sample_interval', sample_interval)
        self._clock = clock
        self._sleep = sleep
        logger.debug(f"SystemMonitor initialized (watch_interval={watch_interval}s, "
                     f"sample_interval={sample_interval}s)")

    @classmethod
    def from_config(cls, config: 'ConfigManager', **kwargs) -> 'SystemMonitor':
        """
        Build a monitor from the ``monitor.*`` configuration keys.

        Keyword arguments are passed to the constructor and take precedence
        over the configured values.

        :param config: Loaded configuration
        :type config: ConfigManager
        :return: Configured monitor
        :rtype: SystemMonitor
        """
        cpu_sample_interval = config.get('monitor.cpu_sample_interval')
        if cpu_sample_interval is not None and 'adapter_factory' not in kwargs:
            def adapter_factory() -> PlatformAdapter:
                return PsutilAdapter(detect_platform(), cpu_sample_interval=cpu_sample_interval)
            kwargs['adapter_factory'] = adapter_factory

        kwargs.setdefault('watch_interval', config.get('monitor.watch_interval', DEFAULT_WATCH_INTERVAL))
        kwargs.setdefault('sample_interval', config.get('monitor.sample_interval', DEFAULT_SAMPLE_INTERVAL))
        return cls(**kwargs)

    def _ensure_adapter(self) -> PlatformAdapter:
        return self._adapter.get()

    def _ensure_adapter_or_fail(self, operation: str, **context) -> PlatformAdapter:
        try:
            return self._ensure_adapter()
        except Exception as e:
            logger.error(f"Failed to initialize platform adapter for {operation}: {e}")
            raise SystemCallError(
                f"Failed to initialize platform adapter for {operation}",
                details={**context, 'original_error': e}
            ) from e

    def get_system_info(self) -> SystemInfo:
        """
        Take a snapshot of system-wide resource usage.

        :return: Current system information
        :rtype: SystemInfo
        :raises SystemCallError: If the adapter cannot be created or queried
        """
        try:
            metrics = self._ensure_adapter().get_system_metrics()
            return SystemInfo(
                platform=sys.platform,
                arch=platform.machine(),
                cpu_usage=metrics.cpu_usage,
                memory_usage=MemoryUsage.from_raw(metrics.memory_usage),
                load_average=list(metrics.load_average),
                uptime=metrics.uptime,
                process_count=metrics.process_count,
            )
        except Exception as e:
            raise SystemCallError(
                'Failed to get system information',
                details={'original_error': e}
            ) from e

    def start_watch_mode(self, filters: Optional[ProcessFilters] = None) -> Iterator[List[ProcessInfo]]:
        """
        Stream the filtered process list every ``watch_interval`` seconds.

        The stream never ends on its own: a failed capture is logged and
        retried after the same interval. Stop iterating (or ``close()`` the
        iterator) to cancel it.

        :param filters: Passed through to the process lister
        :type filters: Optional[ProcessFilters]
        :return: Infinite iterator of process lists
        :rtype: Iterator[List[ProcessInfo]]
        """
        return self.watch(filters)

    def watch(self, filters: Optional[ProcessFilters] = None,
              refresh_interval: Optional[float] = None,
              max_results: Optional[int] = None) -> Iterator[List[ProcessInfo]]:
        """
        Same as :meth:`start_watch_mode` with an explicit interval and an
        optional cap on the number of processes per capture.

        :raises ValidationError: If refresh_interval is not a positive number
        :raises SystemCallError: From the first ``next()`` if the adapter
                                 cannot be created
        """
        if refresh_interval is None:
            interval = self.watch_interval
        else:
            interval = _check_interval('refresh_interval', refresh_interval)
        return self._watch_loop(filters, interval, max_results)

    def _watch_loop(self, filters: Optional[ProcessFilters], interval: float,
                    max_results: Optional[int]) -> Iterator[List[ProcessInfo]]:
        self._ensure_adapter_or_fail('watch mode')
        logger.info(f"Watch mode started (interval={interval}s)")
        while True:
            try:
                processes = truncate(self._process_lister.list_all(filters), max_results)
            except Exception as e:
                logger.error(f"Error during watch mode iteration: {e}", exc_info=True)
            else:
                yield processes
            self._sleep(interval)

    def get_process_metrics(self, pid: int) -> ProcessMetrics:
        """
        Get the current CPU and memory usage of one process.

        :param pid: Process ID
        :type pid: int
        :return: Metrics captured now
        :rtype: ProcessMetrics
        :raises ValidationError: If pid is not a positive integer
        :raises ProcessError: PROCESS_NOT_FOUND if no such process exists
        :raises SystemCallError: For any other failure
        """
        if isinstance(pid, bool) or not isinstance(pid, int) or pid <= 0:
            raise ValidationError(f"Invalid PID: {pid!r}. Must be a positive integer.", {'pid': pid})

        try:
            process_info = self._ensure_adapter().get_process_info(pid)
        except Exception as e:
            raise SystemCallError(
                f"Failed to get metrics for process {pid}",
                details={'pid': pid, 'original_error': e}
            ) from e

        if process_info is None:
            raise ProcessError(f"Process with PID {pid} not found", ErrorCodes.PROCESS_NOT_FOUND, {'pid': pid})

        return ProcessMetrics(
            pid=pid,
            cpu=process_info.cpu or 0,
            memory=process_info.memory or 0,
            timestamp=datetime.datetime.now(),
        )

    def track_resource_usage(self, duration: float) -> ResourceUsageReport:
        """
        Sample system-wide CPU and memory every ``sample_interval`` seconds
        for ``duration`` seconds and summarize the samples.

        A failed sample is logged and skipped. Durations shorter than the
        sample interval can end with no samples, which is an error.

        :param duration: Tracking window in seconds
        :type duration: float
        :return: Collected samples with averages and peaks
        :rtype: ResourceUsageReport
        :raises ValidationError: If duration is negative, infinite or not a number
        :raises SystemCallError: If the adapter cannot be created or no
                                 sample was collected
        """
        if not is_number(duration) or not math.isfinite(duration) or duration < 0:
            raise ValidationError(f"Invalid duration: {duration!r}. Must be a non-negative number of seconds.",
                                  {'duration': duration})

        self._ensure_adapter_or_fail('resource tracking', duration=duration)

        samples: List[ProcessMetrics] = []
        end_time = self._clock() + duration
        logger.info(f"Tracking resource usage for {duration}s")

        while self._clock() < end_time:
            try:
                system_info = self.get_system_info()
            except Exception as e:
                logger.error(f"Error during resource usage tracking: {e}", exc_info=True)
            else:
                samples.append(ProcessMetrics(
                    pid=SYSTEM_WIDE_PID,
                    cpu=system_info.cpu_usage,
                    memory=system_info.memory_usage.used,
                    timestamp=datetime.datetime.now(),
                ))
            self._sleep(self.sample_interval)

        if not samples:
            raise SystemCallError(
                'No samples collected during resource usage tracking',
                details={'duration': duration}
            )

        logger.info(f"Resource tracking finished with {len(samples)} samples")
        return summarize_samples(duration, samples)


def summarize_samples(duration: float, samples: List[ProcessMetrics]) -> ResourceUsageReport:
    """Reduce a non-empty list of samples to averages and peaks."""
    cpu_values = [s.cpu for s in samples]
    memory_values = [s.memory for s in samples]
    return ResourceUsageReport(
        duration=duration,
        samples=samples,
        average_cpu=mean(cpu_values),
        average_memory=mean(memory_values),
        peak_cpu=max(cpu_values),
        peak_memory=max(memory_values),
    )
