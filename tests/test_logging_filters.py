"""Tests for sensitive data filtering in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from app.core.logging import (
    JsonFormatter,
    RequestIdFilter,
    SensitiveDataFilter,
    clear_request_id,
    hash_for_log,
    set_request_id,
)


@pytest.fixture
def capture():
    """Return (logger, stream) wired through the redaction filter and JSON formatter."""

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


def test_redacts_credentials_and_tokens(capture):
    logger, stream = capture

    logger.info(
        "auth.event",
        extra={
            "password": "hunter2",
            "token": "eyJhbGciOi.payload.sig",
            "authorization": "Bearer abc",
            "identity_class": "user",
        },
    )

    output = stream.getvalue()
    assert "hunter2" not in output
    assert "eyJhbGciOi" not in output
    assert "Bearer abc" not in output
    assert "[REDACTED]" in output
    assert '"identity_class": "user"' in output


def test_redacts_prompt_text(capture):
    logger, stream = capture

    logger.info("chat.event", extra={"prompt": "my private question", "prompt_chars": 19})

    output = stream.getvalue()
    assert "my private question" not in output
    assert "prompt_chars" in output


def test_redacts_nested_dicts(capture):
    logger, stream = capture

    logger.info(
        "nested_event",
        extra={"headers": {"Authorization": "Bearer secret", "user-agent": "pytest"}},
    )

    output = stream.getvalue()
    assert "Bearer secret" not in output
    assert "pytest" in output


def test_safe_fields_pass_through(capture):
    logger, stream = capture

    logger.info("quota.allowed", extra={"limit": 10, "remaining": 9, "path": "/api/chat"})

    payload = json.loads(stream.getvalue())
    assert payload["message"] == "quota.allowed"
    assert payload["limit"] == 10
    assert payload["remaining"] == 9
    assert "[REDACTED]" not in stream.getvalue()


def test_request_id_from_context(capture):
    logger, stream = capture

    set_request_id("req-123")
    try:
        logger.info("with_context")
    finally:
        clear_request_id()

    assert json.loads(stream.getvalue())["request_id"] == "req-123"


def test_hash_for_log_is_stable_and_opaque():
    digest = hash_for_log("ip:10.0.0.1")

    assert digest == hash_for_log("ip:10.0.0.1")
    assert digest != hash_for_log("ip:10.0.0.2")
    assert "10.0.0.1" not in digest
    assert len(digest) == 16
