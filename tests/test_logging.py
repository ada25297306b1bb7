"""Unit tests for the logging configuration."""

from __future__ import annotations

import logging

import pytest
from rich.logging import RichHandler

import pytargetdist.logging as tdlogging


@pytest.fixture
def restore_logger():
    """Undo the configuration so that caplog keeps working for other tests."""
    logger = logging.getLogger("pytargetdist")
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


class TestSetup:
    """Tests for pytargetdist.logging.setup."""

    def test_rich_handler_installed(self, restore_logger):
        config = tdlogging.setup()
        assert config["loggers"]["pytargetdist"]["level"] == "INFO"
        assert any(isinstance(handler, RichHandler) for handler in restore_logger.handlers)
        assert not restore_logger.propagate
        assert restore_logger.level == logging.INFO

    def test_level(self, restore_logger):
        tdlogging.setup("debug")
        assert restore_logger.level == logging.DEBUG
        tdlogging.setup(logging.WARNING)
        assert restore_logger.level == logging.WARNING

    def test_default_config_unchanged(self, restore_logger):  # noqa: ARG002
        tdlogging.setup("debug")
        assert tdlogging.LOGGING_CONFIG["loggers"]["pytargetdist"]["level"] == "INFO"

    def test_record_has_file_stem(self):
        record = logging.LogRecord(
            "pytargetdist.distributions.core",
            logging.WARNING,
            "/path/to/core.py",
            1,
            "message",
            None,
            None,
        )
        assert tdlogging.AppFilter().filter(record)
        assert record.filenameStem == "core"
