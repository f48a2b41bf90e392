"""
Utility functions for procmon.
"""
import json
import os
from typing import Any, List, Sequence

from procmon.utils.logger import get_logger

logger = get_logger(__name__)


def save_json(data: Any, file_path: str) -> bool:
    """
    Save data to a JSON file.

    :param data: Data to save
    :type data: Any
    :param file_path: Path to save the JSON file
    :type file_path: str
    :return: True if save succeeded, False otherwise
    :rtype: bool
    """
    if not file_path:
        logger.error("Cannot save JSON: File path is empty")
        return False

    try:
        directory = os.path.dirname(file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(file_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)
        logger.debug(f"Successfully saved JSON data to: {file_path}")
        return True
    except (IOError, OSError, TypeError) as e:
        logger.error(f"Failed to write file {file_path}: {e}")
        return False


def format_bytes(size: float) -> str:
    """
    Format a byte count as a human readable string.

    :param size: Size in bytes
    :type size: float
    :return: Formatted size, e.g. "1.50 MB"
    :rtype: str
    """
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if abs(size) < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0
    return f"{size:.2f} PB"


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean of a non-empty sequence."""
    return sum(values) / len(values)


def is_number(value: Any) -> bool:
    """True for ints and floats, excluding bools and NaN."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return value == value


def truncate(items: List[Any], max_results: Any) -> List[Any]:
    """Return at most ``max_results`` items; falsy or non-positive limits keep everything."""
    if max_results and max_results > 0:
        return items[:max_results]
    return items
