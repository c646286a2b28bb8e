"""Tests for structured logging configuration."""

import json
import logging
import sys
from unittest.mock import patch

from ratekeeper.app.core.logging import (
    ContextFilter,
    JSONFormatter,
    get_log_context,
    get_logger,
    get_logging_config,
    setup_logging,
)


def make_record(msg="Test message", level=logging.INFO, exc_info=None):
    return logging.LogRecord(
        name="test",
        level=level,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


class TestJSONFormatter:
    """Test JSON formatter for structured logging."""

    def test_basic_json_format(self):
        """Test basic JSON formatting."""
        data = json.loads(JSONFormatter().format(make_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "test"
        assert data["message"] == "Test message"
        assert "timestamp" in data
        assert data["source"]["file"] == "test.py"
        assert data["source"]["line"] == 1

    def test_json_format_with_context(self):
        """Test JSON formatting with limiter context fields."""
        record = make_record("Request denied")
        record.algorithm = "token-bucket"
        record.limiter_key = "ratelimit:token-bucket:abc"
        record.request_id = "req-1"

        data = json.loads(JSONFormatter().format(record))

        assert data["algorithm"] == "token-bucket"
        assert data["limiter_key"] == "ratelimit:token-bucket:abc"
        assert data["request_id"] == "req-1"
        assert "extra" not in data

    def test_none_context_omitted(self):
        """Test that defaults added by the filter do not show up as nulls."""
        record = make_record()
        ContextFilter().filter(record)

        data = json.loads(JSONFormatter().format(record))

        assert "algorithm" not in data
        assert "request_id" not in data

    def test_json_format_with_extra_fields(self):
        """Test that unknown fields are grouped under extra."""
        record = make_record("Rate limit state reset")
        record.prefix = "ratelimit"
        record.deleted = 42

        data = json.loads(JSONFormatter().format(record))

        assert data["extra"] == {"prefix": "ratelimit", "deleted": 42}

    def test_json_format_with_exception(self):
        """Test JSON formatting with exception info."""
        try:
            raise ValueError("Test error")
        except ValueError:
            record = make_record("Error occurred", logging.ERROR, sys.exc_info())

        data = json.loads(JSONFormatter().format(record))

        exception_text = "".join(data["exception"])
        assert "ValueError" in exception_text
        assert "Test error" in exception_text


class TestContextFilter:
    """Test context filter for adding default fields."""

    def test_adds_default_fields(self):
        record = make_record()

        assert ContextFilter().filter(record) is True
        for field in ("request_id", "algorithm", "limiter_key", "path", "method", "status_code", "duration_ms"):
            assert hasattr(record, field)

    def test_preserves_existing_values(self):
        record = make_record()
        record.algorithm = "fixed-window"

        ContextFilter().filter(record)

        assert record.algorithm == "fixed-window"


class TestGetLoggingConfig:
    """Test logging configuration generation."""

    def test_default_text_format(self):
        with patch("ratekeeper.app.core.logging.settings") as mock_settings:
            mock_settings.log_format = "text"
            mock_settings.log_level = "INFO"

            config = get_logging_config()

        assert "json" not in config["formatters"]
        assert config["handlers"]["console"]["formatter"] == "standard"

    def test_structured_format(self):
        with patch("ratekeeper.app.core.logging.settings") as mock_settings:
            mock_settings.log_format = "structured"
            mock_settings.log_level = "debug"

            config = get_logging_config()

        assert config["handlers"]["console"]["formatter"] == "structured"
        assert config["handlers"]["console"]["level"] == "DEBUG"

    def test_json_format(self):
        with patch("ratekeeper.app.core.logging.settings") as mock_settings:
            mock_settings.log_format = "json"
            mock_settings.log_level = "WARNING"

            config = get_logging_config()

        assert config["handlers"]["console"]["formatter"] == "json"
        assert config["loggers"]["ratekeeper"]["level"] == "WARNING"

    def test_context_filter_added(self):
        config = get_logging_config()

        assert "context" in config["filters"]
        assert "context" in config["handlers"]["console"]["filters"]


class TestGetLogContext:
    """Test get_log_context helper function."""

    def test_basic_context(self):
        context = get_log_context(algorithm="sliding-window-log", limiter_key="ratelimit:sliding-window-log:u1")
        assert context == {"algorithm": "sliding-window-log", "limiter_key": "ratelimit:sliding-window-log:u1"}

    def test_context_with_extra(self):
        context = get_log_context(request_id="req-1", remaining=0, retry_after=None)
        assert context == {"request_id": "req-1", "remaining": 0}


def test_get_logger_default_name():
    assert get_logger().name == "ratekeeper"


def test_json_logging_output(capsys):
    """Test actual JSON logging output."""
    with patch("ratekeeper.app.core.logging.settings") as mock_settings:
        mock_settings.log_format = "json"
        mock_settings.log_level = "INFO"

        setup_logging()
        get_logger("ratekeeper.test").info(
            "Integration test",
            extra=get_log_context(algorithm="leaky-bucket", limiter_key="ratelimit:leaky-bucket:k"),
        )

    data = json.loads(capsys.readouterr().out.strip())
    assert data["level"] == "INFO"
    assert data["logger"] == "ratekeeper.test"
    assert data["algorithm"] == "leaky-bucket"
    assert data["limiter_key"] == "ratelimit:leaky-bucket:k"
