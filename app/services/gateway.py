"""Request gateway orchestrating identity, quota and the downstream LLM call.

This service is the core business logic behind the HTTP routes. It handles:
- Login and token issuance
- Identity resolution (guest or bearer token)
- Admission against the caller's quota
- The generation call, bounded by a timeout
- Translation of every failure into an AppError for the HTTP layer
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from dataclasses import dataclass

from app.adapters.llm.base import AbstractLLMClient
from app.core.errors import LLMAppError, MissingMessageAppError, QuotaExceededAppError
from app.core.logging import hash_for_log
from app.services.auth_service import (
    AuthFailure,
    CredentialIssuer,
    Identity,
    IssuedToken,
    TokenAuthenticator,
    to_app_error,
)
from app.services.quota_policy import describe_window
from app.services.status_reporter import StatusReport, StatusReporter
from app.services.usage_tracker import AdmissionResult, UsageTracker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatReply:
    message: str
    remaining: int
    limit: int
    reset_at: int


class RequestGateway:
    """Composes authenticator -> usage tracker -> LLM client.

    Attributes:
        issuer: Login credential checker and token issuer.
        authenticator: Resolves the identity of each request.
        tracker: Owns the usage store and decides admission.
        llm: Downstream text generator.
        reporter: Read-only quota view sharing the same tracker.
    """

    def __init__(
        self,
        *,
        issuer: CredentialIssuer,
        authenticator: TokenAuthenticator,
        tracker: UsageTracker,
        llm: AbstractLLMClient,
        llm_timeout_seconds: float = 45.0,
        include_rate_limit_headers: bool = True,
    ) -> None:
        self.issuer = issuer
        self.authenticator = authenticator
        self.tracker = tracker
        self.llm = llm
        self.llm_timeout_seconds = llm_timeout_seconds
        self.include_rate_limit_headers = include_rate_limit_headers
        self.reporter = StatusReporter(authenticator=authenticator, tracker=tracker)

    def login(self, username: str | None, password: str | None) -> IssuedToken:
        """Exchange credentials for a signed token.

        Raises:
            MissingCredentialsAppError: If username or password is empty.
            InvalidCredentialsAppError: If no stored user matches.
        """
        outcome = self.issuer.issue(username, password)
        if isinstance(outcome, AuthFailure):
            raise to_app_error(outcome)
        return outcome

    def resolve_identity(self, authorization: str | None, origin: str) -> Identity:
        outcome = self.authenticator.resolve(authorization, origin)
        if isinstance(outcome, AuthFailure):
            raise to_app_error(outcome)
        return outcome

    async def chat(
        self,
        authorization: str | None,
        origin: str,
        message: str | None,
    ) -> ChatReply:
        """Answer a chat message if the caller still has quota.

        Order: identity, message validation, admission, generation. A request
        rejected before admission does not consume quota.

        Raises:
            InvalidTokenAppError: If a presented token fails verification.
            MissingMessageAppError: If the message is missing or blank.
            QuotaExceededAppError: If the caller is over quota.
            LLMAppError: If the generation call fails or times out.
        """
        identity = self.resolve_identity(authorization, origin)

        # Checked before admission on purpose: a request without a message
        # never costs quota and never turns into a 429.
        if not message or not message.strip():
            raise MissingMessageAppError(
                code="missing_message",
                message="Message is required",
            )

        admission = self.tracker.admit(identity)
        if not admission.allowed:
            raise self._quota_exceeded(identity, admission)

        text = await self._generate(identity, message)
        return ChatReply(
            message=text,
            remaining=admission.remaining,
            limit=admission.limit,
            reset_at=admission.reset_at,
        )

    def status(self, authorization: str | None, origin: str) -> StatusReport:
        return self.reporter.report(authorization, origin)

    def _quota_exceeded(self, identity: Identity, admission: AdmissionResult) -> QuotaExceededAppError:
        window = describe_window(self.tracker.window_seconds)
        retry_after = max(0, math.ceil(admission.reset_at - self.tracker.now()))
        return QuotaExceededAppError(
            code="quota_exceeded",
            message=(
                f"Too many requests. {identity.identity_class} users can make "
                f"{admission.limit} requests per {window}."
            ),
            details={
                "identity_class": identity.identity_class,
                "limit": admission.limit,
                "remaining_requests": 0,
                "reset_at": admission.reset_at,
                "retry_after": retry_after,
            },
        )

    async def _generate(self, identity: Identity, message: str) -> str:
        started = time.perf_counter()
        try:
            text = await asyncio.wait_for(
                self.llm.generate_text(message),
                timeout=self.llm_timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            logger.error(
                "chat.llm_timeout",
                extra={"timeout_s": self.llm_timeout_seconds, "key_hash": hash_for_log(identity.key)},
            )
            raise LLMAppError(
                code="llm_timeout",
                message="Request failed: the model did not respond in time",
                details={"timeout_seconds": self.llm_timeout_seconds},
            ) from exc
        except Exception as exc:
            logger.error(
                "chat.llm_failed",
                extra={"error_type": type(exc).__name__, "key_hash": hash_for_log(identity.key)},
            )
            raise LLMAppError(
                code="llm_request_failed",
                message=str(exc) or "Request failed!",
                details={"model": str(getattr(self.llm, "model", "unknown"))},
            ) from exc

        logger.info(
            "chat.completed",
            extra={
                "identity_class": identity.identity_class,
                "prompt_chars": len(message),
                "reply_chars": len(text),
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            },
        )
        return text
