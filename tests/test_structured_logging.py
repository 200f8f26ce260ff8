"""Tests for structured JSON logging configuration and output."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from gitstore.logging_config import (
    HealthCheckFilter,
    RequestIDFilter,
    build_json_formatter,
    configure_json_logging,
)
from gitstore.utils.request_context import clear_request_id, set_request_id


@pytest.fixture
def json_logger():
    """A logger writing JSON lines into a buffer."""
    log_stream = StringIO()
    handler = logging.StreamHandler(log_stream)
    handler.setFormatter(build_json_formatter())
    handler.addFilter(RequestIDFilter())

    logger = logging.getLogger("test_structured_logging")
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    yield logger, log_stream

    logger.removeHandler(handler)
    handler.close()
    clear_request_id()


def test_structured_logging_outputs_json(json_logger) -> None:
    logger, stream = json_logger
    set_request_id("req-1")

    logger.info("Test message", extra={"path": "docs/a.md"})

    log_data = json.loads(stream.getvalue().strip())
    assert log_data["message"] == "Test message"
    assert log_data["level"] == "INFO"
    assert log_data["name"] == "test_structured_logging"
    assert log_data["request_id"] == "req-1"
    assert log_data["path"] == "docs/a.md"
    assert "timestamp" in log_data


def test_partial_failure_fields_are_structured(json_logger) -> None:
    logger, stream = json_logger

    logger.warning(
        "Excluding unresolved entry from details",
        extra={"path": "docs/b.md", "kind": "file", "error_kind": "UpstreamUnavailable"},
    )

    log_data = json.loads(stream.getvalue().strip())
    assert log_data["level"] == "WARNING"
    assert log_data["error_kind"] == "UpstreamUnavailable"
    assert log_data["request_id"] == "no-request-id"


def test_structured_logging_error_with_exc_info(json_logger) -> None:
    logger, stream = json_logger

    try:
        raise ValueError("Test error")
    except ValueError:
        logger.exception("Operation failed")

    log_data = json.loads(stream.getvalue().strip())
    assert log_data["level"] == "ERROR"
    assert "ValueError: Test error" in log_data["exc_info"]


def test_configure_json_logging_installs_single_handler() -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level

    try:
        configure_json_logging(log_level="DEBUG", use_json=True)
        configure_json_logging(log_level="WARNING", use_json=True)

        assert len(root.handlers) == 1
        assert root.level == logging.WARNING
        assert logging.getLogger("httpx").level == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


class _Record:
    def __init__(self, message: str) -> None:
        self.message = message

    def getMessage(self) -> str:  # noqa: N802 - matches logging.LogRecord API
        return self.message


@pytest.mark.parametrize(
    ("message", "kept"),
    [
        ('127.0.0.1:1 - "GET /health HTTP/1.1" 200 OK', False),
        ('127.0.0.1:1 - "GET /health/ready HTTP/1.1" 200 OK', False),
        ('127.0.0.1:1 - "GET /ping HTTP/1.1" 200 OK', False),
        ('127.0.0.1:1 - "GET /health/ready HTTP/1.1" 503 Service Unavailable', True),
        ('127.0.0.1:1 - "GET /details?path=docs HTTP/1.1" 200 OK', True),
    ],
)
def test_health_check_filter(message: str, kept: bool) -> None:
    assert HealthCheckFilter().filter(_Record(message)) is kept  # type: ignore[arg-type]
