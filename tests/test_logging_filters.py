"""Tests for sensitive data filtering in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from kotoba_api.core.logging import (
    JsonFormatter,
    RequestIdFilter,
    SensitiveDataFilter,
    clear_request_id,
    set_request_id,
)


@pytest.fixture
def capture():
    """Yield a logger wired to a JSON handler and the stream it writes to."""
    logger = logging.getLogger("test_redaction")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)

    yield logger, stream

    logger.handlers.clear()
    clear_request_id()


def test_sensitive_filter_redacts_api_keys(capture):
    """Ensure SensitiveDataFilter redacts credential fields."""
    logger, stream = capture

    logger.info(
        "test_event",
        extra={
            "api_key": "AIza-secret-123",
            "authorization": "Bearer another-secret",
            "safe_field": "visible",
        },
    )

    output = stream.getvalue()

    assert "AIza-secret-123" not in output
    assert "another-secret" not in output
    assert "[REDACTED]" in output
    assert "visible" in output


def test_sensitive_filter_redacts_learner_text(capture):
    """Ensure submitted and translated text never reaches the sink."""
    logger, stream = capture

    logger.info(
        "translate_event",
        extra={
            "text": "私の住所は東京です",
            "translated_text": "My address is Tokyo",
            "romanization": "watashi no juusho",
            "chars": 9,
        },
    )

    output = stream.getvalue()

    assert "東京" not in output
    assert "Tokyo" not in output
    assert "juusho" not in output
    assert '"chars": 9' in output


def test_sensitive_filter_allows_safe_fields(capture):
    """Verify safe fields pass through unmodified."""
    logger, stream = capture

    logger.info(
        "safe_event",
        extra={
            "route": "/v1/translate",
            "status": 200,
            "duration_ms": 150.5,
        },
    )

    output = stream.getvalue()

    assert "/v1/translate" in output
    assert "200" in output
    assert "[REDACTED]" not in output


def test_sensitive_filter_redacts_nested_dicts(capture):
    """Ensure nested sensitive fields are redacted."""
    logger, stream = capture

    logger.info(
        "nested_event",
        extra={
            "headers": {
                "x-forwarded-for": "203.0.113.9",
                "user-agent": "pytest",
            },
        },
    )

    output = stream.getvalue()

    assert "203.0.113.9" not in output
    assert "pytest" in output


def test_json_formatter_keeps_japanese_readable_and_adds_request_id(capture):
    logger, stream = capture
    set_request_id("req-123")

    logger.info("analyze.completed", extra={"note": "猫"})

    record = json.loads(stream.getvalue())
    assert record["message"] == "analyze.completed"
    assert record["request_id"] == "req-123"
    assert record["note"] == "猫"
    assert record["level"] == "info"
