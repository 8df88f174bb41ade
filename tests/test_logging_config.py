"""
Tests for logging setup.
"""

import json
import logging
from logging.handlers import RotatingFileHandler
from unittest.mock import patch

import pytest

from sdlc_backoffice import logging_config
from sdlc_backoffice.logging_config import JsonFormatter, setup_logging


@pytest.fixture
def clean_root_logger():
    """Restore root handlers and configured contexts after each test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    contexts = set(logging_config._configured_contexts)
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)
    logging_config._configured_contexts.clear()
    logging_config._configured_contexts.update(contexts)


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_console_handlers_split_by_level(self, clean_root_logger):
        before = len(clean_root_logger.handlers)

        setup_logging(context="test-console")

        added = clean_root_logger.handlers[before:]
        assert [h.level for h in added] == [logging.DEBUG, logging.WARNING]

    def test_repeated_calls_are_ignored(self, clean_root_logger):
        setup_logging(context="test-repeat")
        count = len(clean_root_logger.handlers)

        setup_logging(context="test-repeat")

        assert len(clean_root_logger.handlers) == count

    def test_rotating_file_per_context(self, clean_root_logger, tmp_path):
        with patch.multiple(
            logging_config.settings,
            log_file_enabled=True,
            log_console_enabled=False,
            log_dir=str(tmp_path),
        ):
            setup_logging(context="test-file")

        file_handlers = [
            h for h in clean_root_logger.handlers if isinstance(h, RotatingFileHandler)
        ]
        assert len(file_handlers) == 1
        assert file_handlers[0].baseFilename == str(tmp_path / "test-file.log")


class TestJsonFormatter:
    """Tests for the JSON log format."""

    def test_single_line_json(self):
        record = logging.LogRecord(
            "sdlc_backoffice.test", logging.INFO, __file__, 1, "hello %s", ("world",), None
        )

        payload = json.loads(JsonFormatter().format(record))

        assert payload["message"] == "hello world"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "sdlc_backoffice.test"
