"""
Platform adapters supplying raw OS metrics to the monitor.
"""
from procmon.platform.adapter import Platform, PlatformAdapter, PlatformAdapterFactory, detect_platform
from procmon.platform.psutil_adapter import PsutilAdapter

__all__ = [
    'Platform',
    'PlatformAdapter',
    'PlatformAdapterFactory',
    'detect_platform',
    'PsutilAdapter'
]
