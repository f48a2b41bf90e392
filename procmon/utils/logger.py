"""
Logger setup module for procmon.
Provides functions to configure logging from the monitor configuration.
"""
import os
import sys
import logging
import logging.handlers
import tempfile
from typing import Optional, Dict, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from procmon.config import ConfigManager

DEFAULT_LOGGER_NAME = 'procmon'
DEFAULT_CONSOLE_LEVEL_NAME = 'INFO'
DEFAULT_FILE_LEVEL_NAME = 'DEBUG'
DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

_loggers: Dict[str, logging.Logger] = {}


def _get_log_level(level_name: str, default_level: int = logging.INFO) -> int:
    """
    Convert log level string to logging level constant.

    :param level_name: Name of the log level (e.g., 'DEBUG')
    :type level_name: str
    :param default_level: Default level to use if level_name is invalid
    :type default_level: int
    :return: The corresponding logging level constant
    :rtype: int
    """
    level = logging.getLevelName(str(level_name).upper())
    if isinstance(level, int):
        return level
    logging.warning(f"Invalid log level name '{level_name}'. Using default level {logging.getLevelName(default_level)}.")
    return default_level


def _check_directory_writable(directory_path: str) -> Tuple[bool, str]:
    """
    Check if a directory exists (creating it if needed) and is writable.

    :param directory_path: Path to the directory to check
    :type directory_path: str
    :return: Tuple (is_writable, message)
    :rtype: Tuple[bool, str]
    """
    if not directory_path:
        return False, "Directory path is empty"

    try:
        os.makedirs(directory_path, exist_ok=True)
    except OSError as e:
        return False, f"Error creating directory {directory_path}: {e}"

    if not os.path.isdir(directory_path):
        return False, f"{directory_path} exists but is not a directory"

    if not os.access(directory_path, os.W_OK):
        return False, f"Permission denied writing to directory {directory_path}"
    return True, f"Directory {directory_path} is writable"


def _get_fallback_log_directory() -> str:
    """
    Get a fallback directory for logs, under the system temp directory.

    :return: Path to a fallback directory for logging
    :rtype: str
    """
    fallback_dir = os.path.join(tempfile.gettempdir(), "procmon", "logs")
    try:
        os.makedirs(fallback_dir, exist_ok=True)
    except OSError:
        fallback_dir = os.getcwd()
    return fallback_dir


def setup_logger(
    name: str = DEFAULT_LOGGER_NAME,
    log_format: str = DEFAULT_LOG_FORMAT,
    console_level_name: str = DEFAULT_CONSOLE_LEVEL_NAME,
    file_level_name: str = DEFAULT_FILE_LEVEL_NAME,
    log_file_path: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5
) -> logging.Logger:
    """
    Sets up and configures a logger instance.

    If a logger with the same name already exists, it returns the existing one
    to avoid adding duplicate handlers.

    :param name: The name for the logger
    :type name: str
    :param log_format: The format string for log messages
    :type log_format: str
    :param console_level_name: Logging level for console output
    :type console_level_name: str
    :param file_level_name: Logging level for file output
    :type file_level_name: str
    :param log_file_path: Path to the log file. If None, file logging is disabled
    :type log_file_path: Optional[str]
    :param max_bytes: Maximum size of the log file before rotation
    :type max_bytes: int
    :param backup_count: Number of backup log files to keep
    :type backup_count: int
    :return: The configured logger instance
    :rtype: logging.Logger
    """
    if name in _loggers:
        return _loggers[name]

    logger = logging.getLogger(name)

    # Module loggers ("procmon.x.y") hand records to the package logger.
    if name.startswith(DEFAULT_LOGGER_NAME + '.'):
        get_logger(DEFAULT_LOGGER_NAME)
        logger.setLevel(logging.NOTSET)
        logger.propagate = True
        _loggers[name] = logger
        return logger

    console_level = _get_log_level(console_level_name, logging.INFO)
    file_level = _get_log_level(file_level_name, logging.DEBUG)
    logger.setLevel(min(console_level, file_level) if log_file_path else console_level)
    logger.propagate = False
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(log_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file_path:
        log_dir = os.path.dirname(log_file_path) or os.getcwd()
        is_writable, msg = _check_directory_writable(log_dir)
        if not is_writable:
            log_file_path = os.path.join(_get_fallback_log_directory(), os.path.basename(log_file_path))
            logger.warning(f"Cannot use specified log directory: {msg}. Falling back to {log_file_path}")

        try:
            file_handler = logging.handlers.RotatingFileHandler(
                log_file_path,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding='utf-8'
            )
            file_handler.setLevel(file_level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
            logger.info(f"File logging enabled to: {log_file_path}")
        except OSError as e:
            logger.error(f"Failed to set up file logging to {log_file_path}: {e}. Logging to console only.")

    _loggers[name] = logger
    return logger


def configure_from_config(config: 'ConfigManager') -> logging.Logger:
    """
    (Re)configure the package logger from the ``logging.*`` config keys.

    :param config: Loaded configuration
    :type config: ConfigManager
    :return: The package logger
    :rtype: logging.Logger
    """
    _loggers.pop(DEFAULT_LOGGER_NAME, None)
    return setup_logger(
        DEFAULT_LOGGER_NAME,
        console_level_name=config.get('logging.console_level', DEFAULT_CONSOLE_LEVEL_NAME),
        file_level_name=config.get('logging.file_level', DEFAULT_FILE_LEVEL_NAME),
        log_file_path=config.get('logging.file_path'),
    )


def get_logger(name: str = DEFAULT_LOGGER_NAME) -> logging.Logger:
    """
    Get a configured logger instance by name.

    If a logger with this name has not been set up yet, this will
    automatically set it up with default settings.

    :param name: The name of the logger to retrieve
    :type name: str
    :return: The configured logger instance
    :rtype: logging.Logger
    """
    if name not in _loggers:
        return setup_logger(name)
    return _loggers[name]
