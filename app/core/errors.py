"""Application-level exception types.

This module defines the errors raised at the request boundary, enabling
consistent error handling, logging, and API responses. Domain components
(issuer, authenticator, tracker) report failures as values; the gateway
turns them into these exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    hint: str
    reason: str
    identity_class: str
    limit: int
    remaining_requests: int
    reset_at: int
    retry_after: int
    timeout_seconds: float
    model: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when request input validation fails."""


class MissingMessageAppError(ValidationAppError):
    """Raised when a chat request carries no message."""


class ConfigurationAppError(AppError):
    """Raised at startup when configuration is unusable."""


class AuthenticationAppError(AppError):
    """Raised when authentication fails."""


class MissingCredentialsAppError(AuthenticationAppError):
    """Raised when login is attempted without username or password."""


class InvalidCredentialsAppError(AuthenticationAppError):
    """Raised when username/password do not match a stored credential."""


class InvalidTokenAppError(AuthenticationAppError):
    """Raised when a bearer token fails verification."""


class QuotaExceededAppError(AppError):
    """Raised when an identity has used up its quota for the window."""


class LLMAppError(AppError):
    """Raised when the downstream generation call fails."""
