"""Read-only quota status for the caller."""

from __future__ import annotations

from dataclasses import dataclass

from app.services.auth_service import AuthFailure, TokenAuthenticator, to_app_error
from app.services.quota_policy import describe_window
from app.services.usage_tracker import UsageTracker


@dataclass(frozen=True)
class StatusReport:
    identity_class: str
    limit: int
    remaining: int
    reset_at: int
    message: str


class StatusReporter:
    """Answers "how much quota do I have left" without consuming any."""

    def __init__(self, *, authenticator: TokenAuthenticator, tracker: UsageTracker) -> None:
        self.authenticator = authenticator
        self.tracker = tracker

    def report(self, authorization: str | None, origin: str) -> StatusReport:
        """Resolve the caller and peek at their usage.

        Raises:
            InvalidTokenAppError: If a presented token fails verification.
        """
        identity = self.authenticator.resolve(authorization, origin)
        if isinstance(identity, AuthFailure):
            raise to_app_error(identity)

        status = self.tracker.peek(identity)
        window = describe_window(self.tracker.window_seconds)
        return StatusReport(
            identity_class=identity.identity_class,
            limit=status.limit,
            remaining=status.remaining,
            reset_at=status.reset_at,
            message=(
                f"You are accessing as a {identity.identity_class} user. "
                f"Your maximum request limit is {status.limit} AI questions per {window}."
            ),
        )
