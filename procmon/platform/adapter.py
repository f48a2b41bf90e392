"""
Platform adapter interface and the factory that hands out one adapter per platform.
"""
import sys
import threading
from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, List, Optional

from procmon.core.errors import PlatformError
from procmon.core.models import RawProcessInfo, SystemMetrics
from procmon.utils import get_logger

logger = get_logger(__name__)


class Platform(Enum):
    WINDOWS = 'windows'
    MACOS = 'macos'
    LINUX = 'linux'
    FREEBSD = 'freebsd'
    OPENBSD = 'openbsd'
    SUNOS = 'sunos'
    AIX = 'aix'


_SYS_PLATFORM_PREFIXES = [
    ('win32', Platform.WINDOWS),
    ('cygwin', Platform.WINDOWS),
    ('darwin', Platform.MACOS),
    ('linux', Platform.LINUX),
    ('freebsd', Platform.FREEBSD),
    ('openbsd', Platform.OPENBSD),
    ('sunos', Platform.SUNOS),
    ('aix', Platform.AIX),
]


def detect_platform(sys_platform: Optional[str] = None) -> Platform:
    """
    Map ``sys.platform`` onto a supported :class:`Platform`.

    :param sys_platform: Value to inspect instead of ``sys.platform``
    :type sys_platform: Optional[str]
    :return: The detected platform
    :rtype: Platform
    :raises PlatformError: If the platform is not supported
    """
    value = sys_platform if sys_platform is not None else sys.platform
    for prefix, detected in _SYS_PLATFORM_PREFIXES:
        if value.startswith(prefix):
            return detected
    raise PlatformError(f"Unsupported platform: {value}", {'platform': value})


class PlatformAdapter(ABC):
    """
    Read-only source of raw OS metrics.

    Implementations are created by :class:`PlatformAdapterFactory` and are
    shared, so they must not keep per-call mutable state.
    """

    def __init__(self, platform: Platform):
        self.platform = platform

    @abstractmethod
    def get_system_metrics(self) -> SystemMetrics:
        """Return current system-wide CPU, memory, load, uptime and process count."""

    @abstractmethod
    def get_process_info(self, pid: int) -> Optional[RawProcessInfo]:
        """Return raw info for ``pid`` or None when no such process exists."""

    @abstractmethod
    def list_processes(self) -> List[RawProcessInfo]:
        """Return raw info for every visible process."""


class PlatformAdapterFactory:
    """
    Process-wide factory caching one adapter per platform.
    """
    _instance: Optional['PlatformAdapterFactory'] = None
    _instance_lock = threading.Lock()

    def __init__(self):
        self._adapters: Dict[Platform, PlatformAdapter] = {}
        self._lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> 'PlatformAdapterFactory':
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls()
            return cls._instance

    def create_adapter(self) -> PlatformAdapter:
        """
        Create (or reuse) the adapter for the running platform.

        :return: Adapter for the detected platform
        :rtype: PlatformAdapter
        :raises PlatformError: If the running platform is not supported
        """
        return self.create_adapter_for_platform(detect_platform())

    def create_adapter_for_platform(self, platform: Platform) -> PlatformAdapter:
        with self._lock:
            adapter = self._adapters.get(platform)
            if adapter is None:
                # psutil covers every supported platform.
                from procmon.platform.psutil_adapter import PsutilAdapter
                adapter = PsutilAdapter(platform)
                self._adapters[platform] = adapter
                logger.debug(f"Created {adapter.__class__.__name__} for platform {platform.value}")
            return adapter
