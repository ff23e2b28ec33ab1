"""
Unit tests for structured logging helpers.
"""

import json
import logging

import pytest

from uploader.common.logging_config import (
    PerformanceTracker,
    StructuredFormatter,
    clear_request_id,
    get_request_id,
    set_request_id,
    setup_logging,
)


@pytest.fixture(autouse=True)
def reset_request_id():
    yield
    clear_request_id()


def make_record(message="hello", **attrs):
    record = logging.LogRecord("uploader.test", logging.INFO, __file__, 10, message, None, None)
    for key, value in attrs.items():
        setattr(record, key, value)
    return record


class TestStructuredFormatter:
    def test_basic_fields(self):
        data = json.loads(StructuredFormatter().format(make_record()))

        assert data["message"] == "hello"
        assert data["level"] == "INFO"
        assert data["logger"] == "uploader.test"
        assert "timestamp" in data
        assert "request_id" not in data

    def test_request_id_included(self):
        set_request_id("req-1")
        data = json.loads(StructuredFormatter().format(make_record()))
        assert data["request_id"] == "req-1"

    def test_extra_fields_merged(self):
        record = make_record(extra_fields={"field": "photo", "upload_id": 3})
        data = json.loads(StructuredFormatter().format(record))

        assert data["field"] == "photo"
        assert data["upload_id"] == 3


class TestRequestId:
    def test_generated_when_missing(self):
        request_id = set_request_id()
        assert request_id
        assert get_request_id() == request_id

    def test_clear(self):
        set_request_id("abc")
        clear_request_id()
        assert get_request_id() is None


class TestPerformanceTracker:
    """Test operation timing."""

    def test_logs_completion(self, caplog):
        logger = logging.getLogger("uploader.test")
        with caplog.at_level(logging.INFO, logger="uploader.test"):
            with PerformanceTracker("resize", logger, field="photo") as tracker:
                pass

        assert tracker.duration_ms is not None
        record = caplog.records[-1]
        assert record.getMessage() == "Operation completed: resize"
        assert record.extra_fields["field"] == "photo"
        assert "duration_ms" in record.extra_fields

    def test_logs_failure_and_reraises(self, caplog):
        logger = logging.getLogger("uploader.test")
        with caplog.at_level(logging.INFO, logger="uploader.test"):
            with pytest.raises(ValueError):
                with PerformanceTracker("resize", logger):
                    raise ValueError("bad image")

        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert record.extra_fields["error_type"] == "ValueError"
        assert record.extra_fields["error"] == "bad image"


def test_setup_logging_installs_json_handler():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        setup_logging("DEBUG", json_format=True)

        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, StructuredFormatter)
        assert logging.getLogger("PIL").level == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
