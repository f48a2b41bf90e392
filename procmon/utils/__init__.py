"""
Utility functions for procmon.
"""
from procmon.utils.logger import get_logger, setup_logger, configure_from_config
from procmon.utils.utils import save_json, format_bytes, mean, is_number, truncate

__all__ = [
    'get_logger',
    'setup_logger',
    'configure_from_config',
    'save_json',
    'format_bytes',
    'mean',
    'is_number',
    'truncate'
]
