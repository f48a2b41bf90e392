"""
psutil-backed platform adapter.
"""
import datetime
import time
from typing import List, Optional

import psutil

from procmon.core.errors import ErrorCodes, ProcessError
from procmon.core.models import RawMemoryUsage, RawProcessInfo, SystemMetrics
from procmon.platform.adapter import Platform, PlatformAdapter
from procmon.utils import get_logger, format_bytes

logger = get_logger(__name__)

DEFAULT_CPU_SAMPLE_INTERVAL = 0.1

_PROCESS_ATTRS = ['pid', 'ppid', 'name', 'cmdline', 'cpu_percent', 'memory_info', 'status', 'create_time', 'cwd']


class PsutilAdapter(PlatformAdapter):
    """
    Collects system and process metrics through psutil.

    :param platform: Platform this adapter was created for
    :type platform: Platform
    :param cpu_sample_interval: Blocking interval passed to psutil's cpu_percent
    :type cpu_sample_interval: float
    """

    def __init__(self, platform: Platform, cpu_sample_interval: float = DEFAULT_CPU_SAMPLE_INTERVAL):
        super().__init__(platform)
        self.cpu_sample_interval = cpu_sample_interval
        logger.debug(f"PsutilAdapter initialized for {platform.value}")

    def get_system_metrics(self) -> SystemMetrics:
        cpu_usage = psutil.cpu_percent(interval=self.cpu_sample_interval)

        virtual_mem = psutil.virtual_memory()
        memory = RawMemoryUsage(
            total=virtual_mem.total,
            used=virtual_mem.total - virtual_mem.available,
            free=virtual_mem.available,
        )

        try:
            load_average = [float(v) for v in psutil.getloadavg()]
        except (AttributeError, OSError) as e:
            logger.debug(f"Load average unavailable on {self.platform.value}: {e}")
            load_average = [0.0, 0.0, 0.0]

        metrics = SystemMetrics(
            cpu_usage=cpu_usage,
            memory_usage=memory,
            load_average=load_average,
            uptime=time.time() - psutil.boot_time(),
            process_count=len(psutil.pids()),
        )
        logger.debug(f"System metrics collected: cpu={cpu_usage}%, used={format_bytes(memory.used)}, "
                     f"processes={metrics.process_count}")
        return metrics

    def get_process_info(self, pid: int) -> Optional[RawProcessInfo]:
        try:
            process = psutil.Process(pid)
            cpu = process.cpu_percent(interval=self.cpu_sample_interval)
            with process.oneshot():
                memory = process.memory_info().rss
                # Descriptive fields the caller may not be allowed to read come back as None.
                pinfo = process.as_dict(attrs=['name', 'cmdline', 'ppid', 'status', 'create_time'], ad_value=None)
            create_time = pinfo.get('create_time')
            info = RawProcessInfo(
                pid=pid,
                name=pinfo.get('name') or '',
                command=' '.join(pinfo.get('cmdline') or []),
                ppid=pinfo.get('ppid'),
                cpu=cpu,
                memory=memory,
                status=pinfo.get('status'),
                start_time=datetime.datetime.fromtimestamp(create_time) if create_time else None,
            )
        except (psutil.NoSuchProcess, psutil.ZombieProcess):
            logger.debug(f"Process {pid} not found")
            return None
        except psutil.AccessDenied as e:
            raise ProcessError(
                f"Access denied to process {pid}",
                ErrorCodes.PROCESS_ACCESS_DENIED,
                {'pid': pid, 'original_error': e}
            ) from e

        logger.debug(f"Retrieved details for process {pid}: cpu={info.cpu}%, rss={format_bytes(info.memory)}")
        return info

    def list_processes(self) -> List[RawProcessInfo]:
        processes = []
        for proc in psutil.process_iter(_PROCESS_ATTRS, ad_value=None):
            try:
                pinfo = proc.info
                memory_info = pinfo.get('memory_info')
                create_time = pinfo.get('create_time')
                processes.append(RawProcessInfo(
                    pid=pinfo['pid'],
                    name=pinfo.get('name') or '',
                    command=' '.join(pinfo.get('cmdline') or []),
                    ppid=pinfo.get('ppid'),
                    cpu=pinfo.get('cpu_percent'),
                    memory=memory_info.rss if memory_info else 0,
                    status=pinfo.get('status'),
                    start_time=datetime.datetime.fromtimestamp(create_time) if create_time else None,
                    working_directory=pinfo.get('cwd'),
                ))
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                pass

        logger.debug(f"Listed {len(processes)} processes")
        return processes
