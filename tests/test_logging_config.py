"""
Unit tests for logging configuration.

Tests structured JSON logging, the text format and model-call logging.
"""

import json
import sys
import logging
from unittest.mock import MagicMock

import pytest

from taskflow_ai.core.config import Config
from taskflow_ai.core.logging_config import (
    StructuredFormatter,
    TextFormatter,
    get_logger,
    log_model_call,
    setup_logging,
)


def make_record(msg="Test message", level=logging.INFO, **attrs):
    record = logging.LogRecord(
        name="test.component",
        level=level,
        pathname="",
        lineno=0,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in attrs.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestStructuredFormatter:
    """Test cases for StructuredFormatter."""

    def test_format_basic_log_record(self):
        formatter = StructuredFormatter("session-123")

        log_data = json.loads(formatter.format(make_record()))

        assert log_data["level"] == "INFO"
        assert log_data["component"] == "test.component"
        assert log_data["session_id"] == "session-123"
        assert log_data["message"] == "Test message"
        assert "timestamp" in log_data

    def test_format_with_metadata_and_model_fields(self):
        formatter = StructuredFormatter("session-123")
        record = make_record(
            metadata={"cost": 0.00075},
            operation="prioritize",
            model_name="gpt-4o-mini",
            ai_powered=True,
        )

        log_data = json.loads(formatter.format(record))

        assert log_data["metadata"] == {"cost": 0.00075}
        assert log_data["operation"] == "prioritize"
        assert log_data["model_name"] == "gpt-4o-mini"
        assert log_data["ai_powered"] is True

    def test_format_with_exception(self):
        formatter = StructuredFormatter("session-123")
        try:
            raise ValueError("boom")
        except ValueError:
            record = make_record(level=logging.ERROR)
            record.exc_info = sys.exc_info()

        log_data = json.loads(formatter.format(record))

        assert "ValueError: boom" in log_data["exception"]


class TestTextFormatter:
    def test_format_includes_metadata(self):
        formatter = TextFormatter("abcdef123456")

        text = formatter.format(make_record(metadata={"model": "gpt-4o-mini"}))

        assert "Test message" in text
        assert "session: abcdef12" in text
        assert "model=gpt-4o-mini" in text


class TestSetupLogging:
    def test_json_format_in_ci(self, restore_root_logger):
        config = Config(ci_mode=True)

        root = setup_logging(config, "session-1")

        assert root.level == logging.INFO
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, StructuredFormatter)

    def test_text_format_and_quiet_client_loggers(self, restore_root_logger):
        config = Config(log_level="WARNING")

        root = setup_logging(config, "session-1")

        assert root.level == logging.WARNING
        assert isinstance(root.handlers[0].formatter, TextFormatter)
        assert logging.getLogger("openai").level == logging.WARNING
        assert logging.getLogger("httpx").level == logging.WARNING


class TestGetLogger:
    def test_plain_logger_without_context(self):
        logger = get_logger("taskflow_ai.test")

        assert isinstance(logger, logging.Logger)

    def test_context_is_added_to_records(self):
        adapter = get_logger("taskflow_ai.test", operation="suggest")

        msg, kwargs = adapter.process("hello", {})

        assert kwargs["extra"]["operation"] == "suggest"


class TestLogModelCall:
    def test_success_logs_at_debug(self):
        logger = MagicMock()

        log_model_call(logger, "gpt-4o-mini", "optimize", 0.5, True)

        level, message = logger.log.call_args[0]
        assert level == logging.DEBUG
        assert "gpt-4o-mini optimize success" in message
        assert "error" not in logger.log.call_args[1]["extra"]["metadata"]

    def test_failure_logs_warning_with_error(self):
        logger = MagicMock()

        log_model_call(logger, "gpt-3.5-turbo", "insights", 1.25, False, error="quota")

        level, message = logger.log.call_args[0]
        metadata = logger.log.call_args[1]["extra"]["metadata"]
        assert level == logging.WARNING
        assert "failed" in message
        assert metadata["error"] == "quota"
        assert metadata["success"] is False
