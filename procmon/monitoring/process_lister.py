"""
Process listing with filtering and sorting.
"""
from typing import Any, Callable, List, Optional

from procmon.core.errors import ProcmonError, SystemCallError, ValidationError
from procmon.core.models import ProcessFilters, ProcessInfo, ProcessStatus
from procmon.platform import PlatformAdapter
from procmon.utils import get_logger, is_number

logger = get_logger(__name__)

SORT_FIELDS = ('cpu', 'memory', 'pid', 'name')
SORT_ORDERS = ('asc', 'desc')


def validate_filters(filters: ProcessFilters) -> List[str]:
    """
    Check filter values.

    :param filters: Filters to check
    :type filters: ProcessFilters
    :return: Warnings for values that are valid but unlikely to match anything
    :rtype: List[str]
    :raises ValidationError: If any value is invalid
    """
    errors = []
    warnings = []

    if filters.min_cpu is not None:
        if not is_number(filters.min_cpu):
            errors.append('min_cpu must be a valid number')
        elif filters.min_cpu < 0:
            errors.append('min_cpu cannot be negative')
        elif filters.min_cpu > 100:
            warnings.append('min_cpu > 100% may not match any processes')

    if filters.min_memory is not None:
        if not is_number(filters.min_memory):
            errors.append('min_memory must be a valid number')
        elif filters.min_memory < 0:
            errors.append('min_memory cannot be negative')

    if filters.name is not None:
        if not isinstance(filters.name, str):
            errors.append('name filter must be a string')
        elif not filters.name.strip():
            warnings.append('Empty name filter will match all processes')

    if filters.status is not None and not isinstance(filters.status, ProcessStatus):
        errors.append(f"status must be one of {', '.join(s.value for s in ProcessStatus)}")

    if filters.sort_by is not None and filters.sort_by not in SORT_FIELDS:
        errors.append(f"sort_by must be one of {', '.join(SORT_FIELDS)}")

    if filters.sort_order not in SORT_ORDERS:
        errors.append(f"sort_order must be one of {', '.join(SORT_ORDERS)}")

    if errors:
        raise ValidationError(f"Invalid process filters: {', '.join(errors)}",
                              {'filters': filters, 'errors': errors})
    return warnings


def apply_filters(processes: List[ProcessInfo], filters: ProcessFilters) -> List[ProcessInfo]:
    result = processes

    pattern = filters.name.strip().lower() if filters.name else ''
    if pattern:
        result = [p for p in result if pattern in p.name.lower() or pattern in p.command.lower()]
    if filters.min_cpu is not None:
        result = [p for p in result if p.cpu >= filters.min_cpu]
    if filters.min_memory is not None:
        result = [p for p in result if p.memory >= filters.min_memory]
    if filters.status is not None:
        result = [p for p in result if p.status == filters.status]
    return result


def sort_processes(processes: List[ProcessInfo], field: str, order: str = 'asc') -> List[ProcessInfo]:
    """
    Sort by ``field``; strings compare case-insensitively and missing values go last.
    """
    def sort_value(process: ProcessInfo) -> Any:
        value = getattr(process, field)
        return value.lower() if isinstance(value, str) else value

    present = [p for p in processes if getattr(p, field) is not None]
    missing = [p for p in processes if getattr(p, field) is None]
    return sorted(present, key=sort_value, reverse=(order == 'desc')) + missing


class ProcessLister:
    """
    Lists processes through a platform adapter.

    :param adapter_provider: Callable returning the adapter to query; called
                             once per listing
    :type adapter_provider: Callable[[], PlatformAdapter]
    """

    def __init__(self, adapter_provider: Callable[[], PlatformAdapter]):
        self._adapter_provider = adapter_provider

    def list_all(self, filters: Optional[ProcessFilters] = None) -> List[ProcessInfo]:
        """
        List every visible process, optionally filtered and sorted.

        :param filters: Criteria to apply
        :type filters: Optional[ProcessFilters]
        :return: Matching processes
        :rtype: List[ProcessInfo]
        :raises ValidationError: If the filters are invalid
        :raises SystemCallError: If the adapter fails
        """
        if filters is not None:
            for warning in validate_filters(filters):
                logger.warning(warning)

        try:
            raw_processes = self._adapter_provider().list_processes()
        except ProcmonError:
            raise
        except Exception as e:
            raise SystemCallError('Failed to list processes', details={'original_error': e}) from e

        processes = [ProcessInfo.from_raw(raw) for raw in raw_processes]
        if filters is None:
            return processes

        processes = apply_filters(processes, filters)
        if filters.sort_by:
            processes = sort_processes(processes, filters.sort_by, filters.sort_order)
        return processes
