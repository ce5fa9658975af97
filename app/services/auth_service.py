"""Identity resolution: login token issuance and bearer token verification.

Both services report failures as ``AuthFailure`` values instead of raising,
so the gateway decides explicitly how each outcome maps to a response.
``to_app_error`` performs that translation at the request boundary.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable

import jwt

from app.adapters.credentials.base import AbstractCredentialStore
from app.core.config import GUEST_CLASS, AuthSettings
from app.core.errors import (
    AuthenticationAppError,
    InvalidCredentialsAppError,
    InvalidTokenAppError,
    MissingCredentialsAppError,
)
from app.core.logging import hash_for_log

logger = logging.getLogger(__name__)

CLAIM_ID = "id"
CLAIM_CLASS = "class"


class AuthErrorKind(str, Enum):
    MISSING_CREDENTIALS = "missing_credentials"
    INVALID_CREDENTIALS = "invalid_credentials"
    INVALID_TOKEN = "invalid_token"


@dataclass(frozen=True)
class AuthFailure:
    """Why identity could not be established."""

    kind: AuthErrorKind
    reason: str


@dataclass(frozen=True)
class Identity:
    """Who a request is accounted to.

    Attributes:
        key: Quota bucket key, ``user:<id>`` or ``ip:<origin>``.
        identity_class: Class used for the quota lookup.
    """

    key: str
    identity_class: str

    @classmethod
    def guest(cls, origin: str) -> "Identity":
        return cls(key=f"ip:{origin}", identity_class=GUEST_CLASS)

    @classmethod
    def principal(cls, principal_id: Any, identity_class: str) -> "Identity":
        return cls(key=f"user:{principal_id}", identity_class=identity_class)

    @property
    def is_guest(self) -> bool:
        return self.key.startswith("ip:")


@dataclass(frozen=True)
class IssuedToken:
    token: str
    expires_at: int


class CredentialIssuer:
    """Checks username/password and issues signed, time-limited tokens."""

    def __init__(
        self,
        store: AbstractCredentialStore,
        *,
        secret: str,
        algorithm: str = "HS256",
        ttl_seconds: int = 3600,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self._secret = secret
        self._algorithm = algorithm
        self._ttl_seconds = ttl_seconds
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        store: AbstractCredentialStore,
        auth_settings: AuthSettings,
        clock: Callable[[], float] = time.time,
    ) -> "CredentialIssuer":
        return cls(
            store,
            secret=auth_settings.jwt_secret,
            algorithm=auth_settings.jwt_algorithm,
            ttl_seconds=auth_settings.token_ttl_seconds,
            clock=clock,
        )

    def issue(self, username: str | None, password: str | None) -> IssuedToken | AuthFailure:
        if not username or not password:
            logger.info("auth.login_rejected", extra={"reason": "missing_credentials"})
            return AuthFailure(
                AuthErrorKind.MISSING_CREDENTIALS,
                "Username and password are required",
            )

        record = self.store.match(username, password)
        if record is None:
            logger.warning(
                "auth.login_rejected",
                extra={"reason": "invalid_credentials", "username_hash": hash_for_log(username)},
            )
            return AuthFailure(
                AuthErrorKind.INVALID_CREDENTIALS,
                "Invalid username or password",
            )

        issued_at = int(self._clock())
        expires_at = issued_at + self._ttl_seconds
        token = jwt.encode(
            {
                CLAIM_ID: record.id,
                CLAIM_CLASS: record.identity_class,
                "iat": issued_at,
                "exp": expires_at,
            },
            self._secret,
            algorithm=self._algorithm,
        )

        logger.info(
            "auth.login_succeeded",
            extra={"identity_class": record.identity_class, "expires_at": expires_at},
        )
        return IssuedToken(token=token, expires_at=expires_at)


class TokenAuthenticator:
    """Resolves the Identity a request is accounted to.

    Requests without an Authorization header are guests keyed by origin.
    Requests with one must carry a valid, unexpired bearer token.
    """

    def __init__(
        self,
        *,
        secret: str,
        algorithm: str = "HS256",
        known_classes: Iterable[str] | None = None,
    ) -> None:
        """Initialize the authenticator.

        Args:
            secret: Signing secret shared with the issuer.
            algorithm: Accepted JWT algorithm.
            known_classes: Identity classes with a quota. Tokens naming any
                other class are rejected. None accepts every class.
        """
        self._secret = secret
        self._algorithm = algorithm
        self._known_classes = frozenset(known_classes) if known_classes is not None else None

    @classmethod
    def from_settings(
        cls,
        auth_settings: AuthSettings,
        known_classes: Iterable[str] | None = None,
    ) -> "TokenAuthenticator":
        return cls(
            secret=auth_settings.jwt_secret,
            algorithm=auth_settings.jwt_algorithm,
            known_classes=known_classes,
        )

    def resolve(self, authorization: str | None, origin: str) -> Identity | AuthFailure:
        if not authorization:
            return Identity.guest(origin)

        scheme, _, token = authorization.strip().partition(" ")
        token = token.strip()
        if scheme.lower() != "bearer" or not token:
            return self._reject("Authorization header must be 'Bearer <token>'")

        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", CLAIM_ID, CLAIM_CLASS]},
            )
        except jwt.InvalidTokenError as exc:
            return self._reject(str(exc) or "Invalid token")

        principal_id = claims[CLAIM_ID]
        identity_class = claims[CLAIM_CLASS]
        if principal_id in (None, "") or not isinstance(identity_class, str) or not identity_class:
            return self._reject("Token claims are malformed")
        if self._known_classes is not None and identity_class not in self._known_classes:
            return self._reject(f"Unknown identity class: {identity_class}")

        return Identity.principal(principal_id, identity_class)

    def _reject(self, reason: str) -> AuthFailure:
        logger.warning("auth.token_rejected", extra={"reason": reason})
        return AuthFailure(AuthErrorKind.INVALID_TOKEN, reason)


def to_app_error(failure: AuthFailure) -> AuthenticationAppError:
    """Translate an AuthFailure into the error raised at the request boundary."""
    if failure.kind is AuthErrorKind.MISSING_CREDENTIALS:
        return MissingCredentialsAppError(
            code=failure.kind.value,
            message="Username and password are required!",
        )
    if failure.kind is AuthErrorKind.INVALID_CREDENTIALS:
        return InvalidCredentialsAppError(
            code=failure.kind.value,
            message="Invalid username or password!",
        )
    return InvalidTokenAppError(
        code=failure.kind.value,
        message=failure.reason,
        details={"reason": failure.reason},
    )
