"""
Error types for procmon.

Every error raised by the monitor carries a machine-readable ``code`` from
:class:`ErrorCodes`, a broad :class:`ErrorCategory` and a ``details`` dict
with context such as the pid, the requested duration or the wrapped
``original_error``.
"""
import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCodes(Enum):
    """Machine-readable error codes."""
    PROCESS_NOT_FOUND = 'PROC_001'
    PROCESS_ACCESS_DENIED = 'PROC_002'
    PERMISSION_DENIED = 'SYS_001'
    PLATFORM_UNSUPPORTED = 'SYS_002'
    SYSTEM_CALL_FAILED = 'SYS_003'
    TIMEOUT = 'GEN_001'
    INVALID_INPUT = 'GEN_002'
    CONFIGURATION_ERROR = 'GEN_003'
    UNKNOWN_ERROR = 'GEN_999'


class ErrorCategory(Enum):
    """Broad grouping of error codes."""
    PROCESS = 'process'
    SYSTEM = 'system'
    VALIDATION = 'validation'
    PERMISSION = 'permission'
    PLATFORM = 'platform'
    CONFIGURATION = 'configuration'


_USER_MESSAGES = {
    ErrorCodes.PROCESS_NOT_FOUND: "Process not found. {hint}",
    ErrorCodes.PROCESS_ACCESS_DENIED: "Access denied to process. {hint}",
    ErrorCodes.PERMISSION_DENIED: "Permission denied. {hint}",
    ErrorCodes.PLATFORM_UNSUPPORTED: "Platform not supported. {hint}",
    ErrorCodes.SYSTEM_CALL_FAILED: "System call failed. {hint}",
    ErrorCodes.TIMEOUT: "Operation timed out. {hint}",
    ErrorCodes.INVALID_INPUT: "Invalid input provided. {hint}",
    ErrorCodes.CONFIGURATION_ERROR: "Configuration error. {hint}",
}

_DEFAULT_HINTS = {
    ErrorCodes.PROCESS_NOT_FOUND: "Please check the PID.",
    ErrorCodes.PROCESS_ACCESS_DENIED: "Try running with elevated privileges or check process permissions.",
    ErrorCodes.PERMISSION_DENIED: "Try running with elevated privileges.",
    ErrorCodes.PLATFORM_UNSUPPORTED: "This feature is not available on your operating system.",
    ErrorCodes.SYSTEM_CALL_FAILED: "Check system resources and permissions.",
    ErrorCodes.TIMEOUT: "The operation took too long to complete.",
    ErrorCodes.INVALID_INPUT: "Please check the input parameters.",
    ErrorCodes.CONFIGURATION_ERROR: "Please check the monitor configuration.",
}

_RECOVERY_SUGGESTIONS = {
    ErrorCodes.PERMISSION_DENIED: [
        "Run with elevated privileges (sudo on Unix, Run as Administrator on Windows)",
        "Check if you have the necessary permissions",
    ],
    ErrorCodes.PROCESS_NOT_FOUND: [
        "Verify the process ID is correct",
        "Check if the process is still running",
    ],
    ErrorCodes.PLATFORM_UNSUPPORTED: [
        "Check for an updated version with platform support",
    ],
    ErrorCodes.SYSTEM_CALL_FAILED: [
        "Check system resources and try again",
        "Verify the system is not under heavy load",
    ],
    ErrorCodes.TIMEOUT: [
        "Increase the timeout value",
        "Check system load and try again later",
    ],
}
_RECOVERY_SUGGESTIONS[ErrorCodes.PROCESS_ACCESS_DENIED] = _RECOVERY_SUGGESTIONS[ErrorCodes.PERMISSION_DENIED]


class ProcmonError(Exception):
    """
    Base class for all procmon errors.

    :param message: Human readable description
    :type message: str
    :param code: Machine-readable error code
    :type code: ErrorCodes
    :param category: Error category
    :type category: ErrorCategory
    :param details: Context for the failure (pid, duration, original_error, ...)
    :type details: Optional[Dict[str, Any]]
    :param recoverable: Whether the caller can reasonably continue
    :type recoverable: bool
    :param retryable: Whether retrying the same call may succeed
    :type retryable: bool
    """

    def __init__(self, message: str, code: ErrorCodes, category: ErrorCategory,
                 details: Optional[Dict[str, Any]] = None,
                 recoverable: bool = True, retryable: bool = True):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.details = details or {}
        self.timestamp = datetime.datetime.now()
        self.recoverable = recoverable
        self.retryable = retryable

    @property
    def original_error(self) -> Optional[BaseException]:
        return self.details.get('original_error')

    def to_dict(self) -> Dict[str, Any]:
        details = {
            key: (repr(value) if isinstance(value, BaseException) else value)
            for key, value in self.details.items()
        }
        return {
            'name': self.__class__.__name__,
            'message': self.message,
            'code': self.code.value,
            'category': self.category.value,
            'details': details,
            'timestamp': self.timestamp.isoformat(),
        }

    def get_user_message(self) -> str:
        template = _USER_MESSAGES.get(self.code)
        if template is None:
            return self.message
        hint = self.details.get('hint') or _DEFAULT_HINTS[self.code]
        return template.format(hint=hint)

    def get_recovery_suggestions(self) -> List[str]:
        return list(_RECOVERY_SUGGESTIONS.get(self.code, []))

    def is_recoverable(self) -> bool:
        return self.recoverable

    def is_retryable(self) -> bool:
        return self.retryable

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"


class ProcessError(ProcmonError):
    """Errors about a specific process. Access-denied errors are never retryable."""

    def __init__(self, message: str, code: ErrorCodes, details: Optional[Dict[str, Any]] = None,
                 recoverable: bool = True, retryable: bool = True):
        if code == ErrorCodes.PROCESS_ACCESS_DENIED:
            retryable = False
        super().__init__(message, code, ErrorCategory.PROCESS, details, recoverable, retryable)


class SystemCallError(ProcmonError):
    """Failures talking to the OS. SYSTEM_CALL_FAILED is never recoverable."""

    def __init__(self, message: str, code: ErrorCodes = ErrorCodes.SYSTEM_CALL_FAILED,
                 details: Optional[Dict[str, Any]] = None,
                 recoverable: bool = True, retryable: bool = True):
        if code == ErrorCodes.SYSTEM_CALL_FAILED:
            recoverable = False
        super().__init__(message, code, ErrorCategory.SYSTEM, details, recoverable, retryable)


class ValidationError(ProcmonError):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCodes.INVALID_INPUT, ErrorCategory.VALIDATION,
                         details, recoverable=True, retryable=False)


class PlatformError(ProcmonError):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCodes.PLATFORM_UNSUPPORTED, ErrorCategory.PLATFORM,
                         details, recoverable=False, retryable=False)


class ConfigurationError(ProcmonError):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCodes.CONFIGURATION_ERROR, ErrorCategory.CONFIGURATION,
                         details, recoverable=False, retryable=False)
