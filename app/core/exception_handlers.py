"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain, request validation and unexpected) and return the same JSON
envelope with the proper HTTP status code:

    {"success": false, "message": "...", "error": {"code": "...", "request_id": "..."}}

Design:
- AppError subclasses → status from ``_STATUS_BY_ERROR`` (400/401/403/429/500)
- RequestValidationError → 400
- Unexpected Exception → generic 500 (safety net)
"""

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.errors import (
    AppError,
    AuthenticationAppError,
    ConfigurationAppError,
    InvalidCredentialsAppError,
    LLMAppError,
    QuotaExceededAppError,
    ValidationAppError,
)
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)

# First match wins, so subclasses come before their bases.
_STATUS_BY_ERROR: tuple[tuple[type[AppError], int], ...] = (
    (InvalidCredentialsAppError, 403),
    (AuthenticationAppError, 401),
    (QuotaExceededAppError, 429),
    (ValidationAppError, 400),
    (LLMAppError, 500),
    (ConfigurationAppError, 500),
)


def status_code_for(exc: AppError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 400


def _error_content(code: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    error: dict[str, Any] = {"code": code, "request_id": get_request_id()}
    if details:
        error["details"] = details
    return {"success": False, "message": message, "error": error}


def _rate_limit_headers(request: Request, exc: QuotaExceededAppError) -> dict[str, str]:
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is not None and not gateway.include_rate_limit_headers:
        return {}

    details = exc.details or {}
    return {
        "Retry-After": str(details.get("retry_after", 0)),
        "X-RateLimit-Limit": str(details.get("limit", 0)),
        "X-RateLimit-Remaining": "0",
        "X-RateLimit-Reset": str(details.get("reset_at", 0)),
    }


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with the shared JSON envelope.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and error details.
    """
    status_code = status_code_for(exc)

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "request_path": request.url.path,
        },
    )

    content = _error_content(exc.code, exc.message, dict(exc.details) if exc.details else None)
    headers: dict[str, str] = {}

    if isinstance(exc, QuotaExceededAppError):
        content["remaining_requests"] = 0
        headers = _rate_limit_headers(request, exc)

    return JSONResponse(status_code=status_code, content=content, headers=headers or None)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies as 400 in the shared envelope."""
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    logger.info(
        "request_validation_failed",
        extra={"request_path": request.url.path, "error_count": len(errors)},
    )
    return JSONResponse(
        status_code=400,
        content=_error_content(
            "invalid_request",
            "Request body is invalid",
            {"context": {"errors": errors}},
        ),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning a generic
    message; no stack traces reach the client.
    """
    logger.error(
        "unhandled_exception",
        exc_info=exc,
        extra={
            "error_type": type(exc).__name__,
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return JSONResponse(
        status_code=500,
        content=_error_content(
            "internal_server_error",
            "An unexpected error occurred. Please try again later.",
        ),
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Must be called during app initialization, before route registration.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(validation_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
