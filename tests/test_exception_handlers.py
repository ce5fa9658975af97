"""Tests for global exception handlers.

Validates that every error type is rendered in the same envelope with the
proper HTTP status code and without leaking internals.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from app.core.errors import (
    AppError,
    ConfigurationAppError,
    InvalidCredentialsAppError,
    InvalidTokenAppError,
    LLMAppError,
    MissingCredentialsAppError,
    QuotaExceededAppError,
    ValidationAppError,
)
from app.core.exception_handlers import setup_exception_handlers, status_code_for


class _Payload(BaseModel):
    message: str


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers, raise_server_exceptions=False)


@pytest.mark.parametrize(
    ("exc", "expected"),
    [
        (ValidationAppError(code="v", message="v"), 400),
        (MissingCredentialsAppError(code="m", message="m"), 401),
        (InvalidTokenAppError(code="t", message="t"), 401),
        (InvalidCredentialsAppError(code="c", message="c"), 403),
        (QuotaExceededAppError(code="q", message="q"), 429),
        (LLMAppError(code="l", message="l"), 500),
        (ConfigurationAppError(code="x", message="x"), 500),
    ],
)
def test_status_code_for(exc: AppError, expected: int) -> None:
    assert status_code_for(exc) == expected


class TestAppErrorHandler:
    def test_envelope_shape(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/boom")
        async def boom():
            raise ValidationAppError(code="missing_message", message="Message is required")

        response = client.get("/boom")

        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert data["message"] == "Message is required"
        assert data["error"]["code"] == "missing_message"
        assert "request_id" in data["error"]
        assert "details" not in data["error"]

    def test_details_are_included(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/boom")
        async def boom():
            raise InvalidTokenAppError(
                code="invalid_token",
                message="Token has expired",
                details={"reason": "Token has expired"},
            )

        response = client.get("/boom")

        assert response.status_code == 401
        assert response.json()["error"]["details"] == {"reason": "Token has expired"}

    def test_quota_exceeded_adds_remaining_and_headers(
        self, client: TestClient, app_with_handlers: FastAPI
    ):
        @app_with_handlers.get("/boom")
        async def boom():
            raise QuotaExceededAppError(
                code="quota_exceeded",
                message="Too many requests.",
                details={"limit": 5, "reset_at": 1700003600, "retry_after": 120},
            )

        response = client.get("/boom")

        assert response.status_code == 429
        assert response.json()["remaining_requests"] == 0
        assert response.headers["Retry-After"] == "120"
        assert response.headers["X-RateLimit-Limit"] == "5"
        assert response.headers["X-RateLimit-Remaining"] == "0"
        assert response.headers["X-RateLimit-Reset"] == "1700003600"

    def test_llm_error_message_is_reported(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/boom")
        async def boom():
            raise LLMAppError(code="llm_request_failed", message="OpenAI API error: 429")

        response = client.get("/boom")

        assert response.status_code == 500
        assert response.json()["message"] == "OpenAI API error: 429"


class TestValidationHandler:
    def test_malformed_body_returns_400(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.post("/echo")
        async def echo(payload: _Payload):
            return payload

        response = client.post("/echo", content=b"not json", headers={"Content-Type": "application/json"})

        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert data["error"]["code"] == "invalid_request"
        assert data["error"]["details"]["context"]["errors"]


class TestGeneralExceptionHandler:
    def test_unexpected_error_returns_generic_500(
        self, client: TestClient, app_with_handlers: FastAPI
    ):
        @app_with_handlers.get("/crash")
        async def crash():
            raise RuntimeError("database connection failed")

        response = client.get("/crash")

        assert response.status_code == 500
        data = response.json()
        assert data["error"]["code"] == "internal_server_error"
        assert "database connection" not in data["message"]

    def test_never_leaks_stack_trace(self):
        from app.core.exception_handlers import general_exception_handler

        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        response = asyncio.run(general_exception_handler(request, ValueError("details")))

        text = bytes(response.body).decode()
        assert json.loads(text)["success"] is False
        assert "Traceback" not in text
        assert "ValueError" not in text


def test_setup_registers_handlers(app_with_handlers: FastAPI):
    assert AppError in app_with_handlers.exception_handlers
    assert Exception in app_with_handlers.exception_handlers
