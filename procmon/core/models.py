"""
Data models shared by the platform adapters, the process lister and the monitor.
"""
import datetime
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, List, Optional


class ProcessStatus(Enum):
    RUNNING = 'running'
    SLEEPING = 'sleeping'
    STOPPED = 'stopped'
    ZOMBIE = 'zombie'
    UNKNOWN = 'unknown'

    @classmethod
    def normalize(cls, status: Optional[str]) -> 'ProcessStatus':
        """
        Map a platform-specific status string onto a ProcessStatus.

        psutil reports e.g. "running", "sleeping", "disk-sleep", "idle",
        "stopped", "zombie"; anything unrecognised becomes UNKNOWN.
        """
        if not status:
            return cls.UNKNOWN
        normalized = str(status).lower()
        if 'run' in normalized:
            return cls.RUNNING
        if 'sleep' in normalized or 'idle' in normalized or 'disk' in normalized:
            return cls.SLEEPING
        if 'stop' in normalized:
            return cls.STOPPED
        if 'zombie' in normalized:
            return cls.ZOMBIE
        return cls.UNKNOWN


@dataclass
class RawMemoryUsage:
    total: float
    used: float
    free: float


@dataclass
class SystemMetrics:
    """Raw system-wide metrics as reported by a platform adapter."""
    cpu_usage: float
    memory_usage: RawMemoryUsage
    load_average: List[float]
    uptime: float
    process_count: int


@dataclass
class RawProcessInfo:
    """Raw per-process record as reported by a platform adapter."""
    pid: int
    name: str
    command: str = ''
    ppid: Optional[int] = None
    cpu: Optional[float] = None
    memory: Optional[float] = None
    status: Optional[str] = None
    start_time: Optional[datetime.datetime] = None
    working_directory: Optional[str] = None


@dataclass
class ProcessInfo:
    """Normalised process record returned by the process lister."""
    pid: int
    name: str
    command: str
    cpu: float
    memory: float
    status: ProcessStatus
    start_time: datetime.datetime
    ppid: Optional[int] = None
    working_directory: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: RawProcessInfo) -> 'ProcessInfo':
        return cls(
            pid=raw.pid,
            name=raw.name,
            command=raw.command or '',
            cpu=raw.cpu or 0,
            memory=raw.memory or 0,
            status=ProcessStatus.normalize(raw.status),
            start_time=raw.start_time or datetime.datetime.now(),
            ppid=raw.ppid,
            working_directory=raw.working_directory,
        )


@dataclass
class ProcessFilters:
    """
    Criteria for narrowing and ordering a process listing.

    :ivar name: Case-insensitive substring matched against name or command
    :ivar min_cpu: Minimum CPU percentage
    :ivar min_memory: Minimum memory (bytes)
    :ivar status: Only processes in this state
    :ivar sort_by: One of 'cpu', 'memory', 'pid', 'name'
    :ivar sort_order: 'asc' or 'desc'
    """
    name: Optional[str] = None
    min_cpu: Optional[float] = None
    min_memory: Optional[float] = None
    status: Optional[ProcessStatus] = None
    sort_by: Optional[str] = None
    sort_order: str = 'asc'


@dataclass(frozen=True)
class MemoryUsage:
    total: float
    used: float
    free: float
    percentage: float

    @classmethod
    def from_raw(cls, raw: RawMemoryUsage) -> 'MemoryUsage':
        percentage = (raw.used / raw.total) * 100 if raw.total else 0.0
        return cls(total=raw.total, used=raw.used, free=raw.free, percentage=percentage)


@dataclass(frozen=True)
class SystemInfo:
    """Point-in-time snapshot of system-wide resource usage."""
    platform: str
    arch: str
    cpu_usage: float
    memory_usage: MemoryUsage
    load_average: List[float]
    uptime: float
    process_count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ProcessMetrics:
    """One CPU/memory sample. ``pid`` 0 marks a system-wide sample."""
    pid: int
    cpu: float
    memory: float
    timestamp: datetime.datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            'pid': self.pid,
            'cpu': self.cpu,
            'memory': self.memory,
            'timestamp': self.timestamp.isoformat(),
        }


@dataclass
class ResourceUsageReport:
    """Summary of the samples collected during one tracking window."""
    duration: float
    samples: List[ProcessMetrics]
    average_cpu: float
    average_memory: float
    peak_cpu: float
    peak_memory: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'duration': self.duration,
            'average_cpu': self.average_cpu,
            'average_memory': self.average_memory,
            'peak_cpu': self.peak_cpu,
            'peak_memory': self.peak_memory,
            'samples': [s.to_dict() for s in self.samples],
        }


@dataclass
class MonitorOptions:
    refresh_interval: float = 2.0
    filters: Optional[ProcessFilters] = None
    max_results: Optional[int] = None
