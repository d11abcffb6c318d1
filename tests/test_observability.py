"""
Tests for logging setup.
"""

import logging
from pathlib import Path

import pytest

from geonode_devenv.core.observability.logging_config import _parse_level, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestParseLevel:
    def test_names(self):
        assert _parse_level("debug") == logging.DEBUG
        assert _parse_level("ERROR") == logging.ERROR

    def test_unknown_falls_back_to_warning(self):
        assert _parse_level("chatty") == logging.WARNING
        assert _parse_level(None) == logging.WARNING


class TestSetupLogging:
    def test_console_level(self):
        setup_logging("INFO")
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1

    def test_file_handler_with_own_level(self, tmp_path: Path):
        log_file = tmp_path / "devenv.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 2

        logging.getLogger("geonode_devenv.test").debug("captured in file")
        for handler in root.handlers:
            handler.flush()
        assert "captured in file" in log_file.read_text()
