"""
Configuration Manager module for procmon.
"""
import copy
import datetime
import json
import os
import shutil
from typing import Any, Optional, Dict

from procmon.core.errors import ConfigurationError
from procmon.utils import get_logger, save_json, is_number

logger = get_logger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    'config_version': 1,
    'monitor': {
        'watch_interval': 2.0,
        'sample_interval': 1.0,
        'cpu_sample_interval': 0.1,
    },
    'logging': {
        'console_level': 'INFO',
        'file_level': 'DEBUG',
        'file_path': None,
    },
}

_POSITIVE_INTERVAL_KEYS = [
    'monitor.watch_interval',
    'monitor.sample_interval',
]


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class ConfigManager:
    """
    Loads monitor configuration from an optional JSON file layered over defaults.
    """
    CURRENT_CONFIG_VERSION = 1

    def __init__(self, config_path: Optional[str] = None):
        """
        Initializes the ConfigManager, loading the configuration file if one is given.

        :param config_path: The path to the configuration JSON file
        :type config_path: Optional[str]
        :raises ConfigurationError: If the file is missing, is not valid JSON,
                                    or holds invalid values
        """
        self._config_path = config_path
        self._migration_performed = False

        if self._config_path is None:
            logger.debug("ConfigManager initialized without a config path, using defaults.")
            self._config_data = copy.deepcopy(DEFAULT_CONFIG)
        else:
            self._config_data = self._load_config()
            self._check_and_migrate_config()
            self._config_data = _merge(DEFAULT_CONFIG, self._config_data)
            logger.info(f"Configuration loaded successfully from: {self._config_path}")
        self._validate_config()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ConfigManager':
        """
        Build a manager from an in-memory mapping layered over the defaults.

        :raises ConfigurationError: If the values are invalid
        """
        manager = cls.__new__(cls)
        manager._config_path = None
        manager._migration_performed = False
        manager._config_data = _merge(DEFAULT_CONFIG, data)
        manager._validate_config()
        return manager

    def _load_config(self) -> Dict[str, Any]:
        """
        Loads the configuration data from the JSON file.

        :raises ConfigurationError: If the file does not exist or cannot be parsed
        """
        if not os.path.exists(self._config_path):
            logger.critical(f"Configuration file not found: {self._config_path}")
            raise ConfigurationError(f"Configuration file not found: {self._config_path}",
                                     {'path': self._config_path})

        try:
            with open(self._config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.critical(f"Error decoding JSON from config file {self._config_path}: {e}")
            raise ConfigurationError(f"Invalid JSON in configuration file: {e}",
                                     {'path': self._config_path, 'original_error': e}) from e
        except OSError as e:
            logger.critical(f"Error reading config file {self._config_path}: {e}")
            raise ConfigurationError(f"Could not read configuration file: {e}",
                                     {'path': self._config_path, 'original_error': e}) from e

        if not isinstance(data, dict):
            raise ConfigurationError("Configuration file content is not a valid JSON object.",
                                     {'path': self._config_path})
        return data

    def _validate_config(self):
        """
        Checks that monitor intervals are positive numbers and log levels are strings.

        :raises ConfigurationError: If a value is invalid
        """
        for key in _POSITIVE_INTERVAL_KEYS:
            value = self.get(key)
            if not is_number(value) or value <= 0:
                msg = f"Invalid '{key}' configuration: Must be a positive number, got {value!r}."
                logger.critical(msg)
                raise ConfigurationError(msg, {'key': key, 'value': value})

        cpu_interval = self.get('monitor.cpu_sample_interval')
        if cpu_interval is not None and (not is_number(cpu_interval) or cpu_interval < 0):
            msg = f"Invalid 'monitor.cpu_sample_interval' configuration: Must be a non-negative number, got {cpu_interval!r}."
            logger.critical(msg)
            raise ConfigurationError(msg, {'key': 'monitor.cpu_sample_interval', 'value': cpu_interval})

        for key in ('logging.console_level', 'logging.file_level'):
            if not isinstance(self.get(key), str):
                msg = f"Invalid '{key}' configuration: Must be a level name string."
                logger.critical(msg)
                raise ConfigurationError(msg, {'key': key, 'value': self.get(key)})

        logger.debug("Configuration validation passed.")

    def _backup_config(self) -> Optional[str]:
        """
        Creates a timestamped backup of the current config file.

        :return: Path to the backup file or None if backup failed
        :rtype: Optional[str]
        """
        timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
        backup_path = f"{self._config_path}.backup_{timestamp}"
        try:
            shutil.copy2(self._config_path, backup_path)
            logger.info(f"Configuration backed up successfully to: {backup_path}")
            return backup_path
        except OSError as e:
            logger.error(f"Failed to create configuration backup at {backup_path}: {e}", exc_info=True)
            return None

    def _check_and_migrate_config(self):
        """
        Brings an older config file up to CURRENT_CONFIG_VERSION, backing it up first.

        Version 0 files predate the ``monitor`` section and stored intervals in
        milliseconds under ``refresh_interval_ms``/``sample_interval_ms``.

        :raises ConfigurationError: If the backup or the save fails
        """
        loaded_version = self._config_data.get('config_version', 0)
        if not isinstance(loaded_version, int) or loaded_version < 0:
            logger.warning(f"Invalid 'config_version' ({loaded_version}) found. Migrating from version 0.")
            loaded_version = 0

        if loaded_version > self.CURRENT_CONFIG_VERSION:
            logger.warning(f"Configuration file version (v{loaded_version}) is newer than the supported "
                           f"version (v{self.CURRENT_CONFIG_VERSION}). Monitor may not behave correctly.")
            return
        if loaded_version == self.CURRENT_CONFIG_VERSION:
            logger.debug(f"Configuration version (v{loaded_version}) is current. No migration needed.")
            return

        logger.info(f"Configuration version mismatch: Found v{loaded_version}, "
                    f"expected v{self.CURRENT_CONFIG_VERSION}. Starting migration...")
        backup_path = self._backup_config()
        if not backup_path:
            raise ConfigurationError("Configuration backup failed. Cannot proceed with migration.",
                                     {'path': self._config_path})

        data = self._config_data
        monitor = data.setdefault('monitor', {})
        for old_key, new_key in (('refresh_interval_ms', 'watch_interval'), ('sample_interval_ms', 'sample_interval')):
            if old_key in data:
                value = data.pop(old_key)
                # Non-numeric values are carried over for validation to reject.
                monitor[new_key] = value / 1000.0 if is_number(value) else value
        data['config_version'] = self.CURRENT_CONFIG_VERSION

        if not save_json(data, self._config_path):
            raise ConfigurationError("Failed to save migrated configuration.",
                                     {'path': self._config_path, 'backup_path': backup_path})
        self._migration_performed = True
        logger.info("Configuration successfully migrated and saved.")

    @property
    def migration_performed(self) -> bool:
        return self._migration_performed

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Retrieves a configuration value using a dot-separated key path.

        :param key_path: The dot-separated path to the configuration key
        :type key_path: str
        :param default: The default value to return if the key is not found
        :type default: Any
        :return: The configuration value or the default value
        :rtype: Any
        """
        value: Any = self._config_data
        for key in key_path.split('.'):
            if not isinstance(value, dict) or key not in value:
                logger.debug(f"Configuration key not found: '{key_path}'. Returning default: {default}")
                return default
            value = value[key]
        return value

    @property
    def all_config(self) -> Dict[str, Any]:
        """
        Returns a copy of the entire configuration dictionary.

        :return: Copy of configuration dictionary
        :rtype: Dict[str, Any]
        """
        return copy.deepcopy(self._config_data)
