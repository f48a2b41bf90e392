from __future__ import annotations

import logging
import logging.handlers

import pytest

from procmon.config import ConfigManager
from procmon.utils import configure_from_config, get_logger, setup_logger


@pytest.fixture
def restore_package_logger():
    yield
    package_logger = logging.getLogger("procmon")
    for handler in list(package_logger.handlers):
        handler.close()
    configure_from_config(ConfigManager())


def test_module_loggers_propagate_to_package_logger():
    module_logger = get_logger("procmon.tests.example")

    assert module_logger.propagate
    assert module_logger.level == logging.NOTSET
    assert not logging.getLogger("procmon").propagate
    assert get_logger("procmon.tests.example") is module_logger


def test_setup_logger_returns_existing_instance():
    first = setup_logger("procmon-standalone")

    assert setup_logger("procmon-standalone", console_level_name="DEBUG") is first


def test_configure_from_config_enables_file_logging(tmp_path, restore_package_logger):
    log_path = tmp_path / "logs" / "procmon.log"
    cm = ConfigManager.from_dict({"logging": {"console_level": "WARNING", "file_path": str(log_path)}})

    package_logger = configure_from_config(cm)
    get_logger("procmon.tests.file").debug("written to file")
    for handler in package_logger.handlers:
        handler.flush()

    file_handlers = [h for h in package_logger.handlers if isinstance(h, logging.handlers.RotatingFileHandler)]
    assert len(file_handlers) == 1
    assert "written to file" in log_path.read_text(encoding="utf-8")


def test_invalid_level_name_falls_back(restore_package_logger):
    cm = ConfigManager.from_dict({"logging": {"console_level": "LOUD"}})

    package_logger = configure_from_config(cm)

    assert package_logger.level == logging.INFO
