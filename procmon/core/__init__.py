"""
Core types for procmon: data models and the error hierarchy.
"""
from procmon.core.errors import (
    ErrorCodes,
    ErrorCategory,
    ProcmonError,
    ProcessError,
    SystemCallError,
    ValidationError,
    PlatformError,
    ConfigurationError,
)
from procmon.core.models import (
    ProcessStatus,
    RawMemoryUsage,
    SystemMetrics,
    RawProcessInfo,
    ProcessInfo,
    ProcessFilters,
    MemoryUsage,
    SystemInfo,
    ProcessMetrics,
    ResourceUsageReport,
    MonitorOptions,
)

__all__ = [
    'ErrorCodes',
    'ErrorCategory',
    'ProcmonError',
    'ProcessError',
    'SystemCallError',
    'ValidationError',
    'PlatformError',
    'ConfigurationError',
    'ProcessStatus',
    'RawMemoryUsage',
    'SystemMetrics',
    'RawProcessInfo',
    'ProcessInfo',
    'ProcessFilters',
    'MemoryUsage',
    'SystemInfo',
    'ProcessMetrics',
    'ResourceUsageReport',
    'MonitorOptions',
]
