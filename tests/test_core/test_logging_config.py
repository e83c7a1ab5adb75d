"""
Unit tests for logging configuration
"""
import json
import logging
import os
import uuid

import pytest

from signedurl.core.logging_config import (
    CustomJsonFormatter,
    RequestIdFilter,
    SanitizingFilter,
    clear_request_id,
    get_logger,
    get_request_id,
    sanitize_log_value,
    set_request_id,
    setup_logging,
)


def _record(msg="Test message", args=(), name="test"):
    return logging.LogRecord(
        name=name,
        level=logging.INFO,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=args,
        exc_info=None
    )


@pytest.fixture
def restore_root_logger():
    """Keep setup_logging from leaking handlers into other tests."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestRequestIdContext:
    """Test request ID context variable functionality"""

    def test_set_and_get_request_id(self):
        test_id = str(uuid.uuid4())
        token = set_request_id(test_id)

        assert get_request_id() == test_id

        clear_request_id(token)

    def test_clear_request_id_resets_context(self):
        """clear_request_id should reset to previous value"""
        original_id = str(uuid.uuid4())
        token1 = set_request_id(original_id)

        token2 = set_request_id(str(uuid.uuid4()))
        clear_request_id(token2)
        assert get_request_id() == original_id

        clear_request_id(token1)


class TestRequestIdFilter:
    """Test request ID logging filter"""

    def test_filter_adds_request_id_to_record(self):
        record = _record()
        test_id = str(uuid.uuid4())
        token = set_request_id(test_id)

        assert RequestIdFilter().filter(record) is True
        assert record.request_id == test_id

        clear_request_id(token)

    def test_filter_uses_dash_when_no_request_id(self):
        record = _record()
        token = set_request_id(None)

        RequestIdFilter().filter(record)
        assert record.request_id == "-"

        clear_request_id(token)


class TestSanitizingFilter:
    """Test log sanitization filter"""

    def test_filter_removes_newlines(self):
        record = _record(msg="Line 1\nLine 2\r\nLine 3")

        SanitizingFilter().filter(record)

        assert record.msg == "Line 1 Line 2 Line 3"

    def test_filter_sanitizes_args(self):
        record = _record(msg="Path: %s", args=("/files\nforged entry", 3))

        SanitizingFilter().filter(record)

        assert record.args == ("/files forged entry", 3)


class TestSanitizeLogValue:
    def test_sanitize_removes_newlines(self):
        assert sanitize_log_value("hello\r\nworld\ntest\r") == "hello world test "

    def test_sanitize_truncates_long_strings(self):
        result = sanitize_log_value("a" * 5000)
        assert result.endswith("...[truncated]")
        assert len(result) < 5000

    def test_sanitize_handles_non_strings(self):
        assert sanitize_log_value(12345) == "12345"


class TestCustomJsonFormatter:
    """Test custom JSON log formatter"""

    def test_formatter_produces_valid_json(self):
        formatter = CustomJsonFormatter()
        record = _record(msg="Signed URL rejected", name="signedurl.middleware.signed")
        record.request_id = "test-uuid"

        parsed = json.loads(formatter.format(record))

        assert "timestamp" in parsed
        assert parsed["level"] == "INFO"
        assert parsed["message"] == "Signed URL rejected"
        assert parsed["logger"] == "signedurl.middleware.signed"
        assert parsed["request_id"] == "test-uuid"

    def test_formatter_includes_extra_fields(self):
        formatter = CustomJsonFormatter()
        record = _record()
        record.error_kind = "expired"
        record.status_code = 410

        parsed = json.loads(formatter.format(record))

        assert parsed["error_kind"] == "expired"
        assert parsed["status_code"] == 410


class TestSetupLogging:
    def test_console_only_without_log_dir(self, restore_root_logger):
        root = setup_logging(log_level="WARNING", log_dir=None)

        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, CustomJsonFormatter)

    def test_file_handler_with_log_dir(self, restore_root_logger, tmp_path):
        root = setup_logging(log_level="DEBUG", log_dir=str(tmp_path))

        get_logger("signedurl.test").info("written to file")
        for handler in root.handlers:
            handler.flush()

        assert len(root.handlers) == 2
        log_file = os.path.join(str(tmp_path), "signedurl.log")
        assert os.path.exists(log_file)
        with open(log_file, encoding="utf-8") as f:
            assert "written to file" in f.read()
