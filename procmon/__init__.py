"""
procmon - host and process resource monitoring.

Main components:
- SystemMonitor: System snapshots, live process watching, per-process
  metrics and timed resource tracking
- ProcessLister: Filtered and sorted process listings
- PlatformAdapterFactory: Creates the platform adapter supplying raw metrics
- ConfigManager: Loads monitor configuration
"""
from .version import __version__, __app_name__

from .core import (
    ErrorCodes,
    ProcmonError,
    ProcessError,
    SystemCallError,
    ValidationError,
    PlatformError,
    ConfigurationError,
    ProcessFilters,
    ProcessInfo,
    ProcessMetrics,
    ProcessStatus,
    ResourceUsageReport,
    SystemInfo,
    MonitorOptions,
)

from .config import ConfigManager

from .platform import PlatformAdapter, PlatformAdapterFactory

from .monitoring import SystemMonitor, ProcessLister

__all__ = [
    '__version__',
    '__app_name__',

    'ErrorCodes',
    'ProcmonError',
    'ProcessError',
    'SystemCallError',
    'ValidationError',
    'PlatformError',
    'ConfigurationError',
    'ProcessFilters',
    'ProcessInfo',
    'ProcessMetrics',
    'ProcessStatus',
    'ResourceUsageReport',
    'SystemInfo',
    'MonitorOptions',

    'ConfigManager',

    'PlatformAdapter',
    'PlatformAdapterFactory',

    'SystemMonitor',
    'ProcessLister'
]
