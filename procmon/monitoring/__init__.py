"""
Monitoring components for procmon.
"""
from procmon.monitoring.process_lister import ProcessLister
from procmon.monitoring.system_monitor import SystemMonitor, SYSTEM_WIDE_PID, summarize_samples

__all__ = [
    'ProcessLister',
    'SystemMonitor',
    'SYSTEM_WIDE_PID',
    'summarize_samples'
]
