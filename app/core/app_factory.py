"""Application factory for the FastAPI app.

Centralizes app construction (components, middleware, handlers, routers) so
tests can build isolated apps with their own usage store, credential store,
clock and LLM client.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from fastapi import FastAPI

from app.adapters.credentials import AbstractCredentialStore, JsonFileCredentialStore
from app.adapters.llm import AbstractLLMClient, create_llm_client
from app.adapters.usage_store import AbstractUsageStore, InMemoryUsageStore
from app.api.routes import auth_router, chat_router, health_router
from app.core.config import DEFAULT_JWT_SECRET, GUEST_CLASS, Settings, settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations
from app.services.auth_service import CredentialIssuer, TokenAuthenticator
from app.services.gateway import RequestGateway
from app.services.quota_policy import QuotaPolicy
from app.services.usage_tracker import build_usage_tracker

logger = logging.getLogger(__name__)


def _warn_on_insecure_defaults(cfg: Settings) -> None:
    if cfg.auth.jwt_secret == DEFAULT_JWT_SECRET:
        logger.warning(
            "config.default_jwt_secret",
            extra={"hint": "Set AUTH_JWT_SECRET; tokens signed with the default are forgeable"},
        )


def build_gateway(
    cfg: Settings,
    *,
    llm_client: AbstractLLMClient | None = None,
    credential_store: AbstractCredentialStore | None = None,
    usage_store: AbstractUsageStore | None = None,
    clock: Callable[[], float] = time.time,
) -> RequestGateway:
    """Wire the admission pipeline from configuration.

    Raises:
        ConfigurationAppError: If the credential file is unusable or a user
            class has no quota.
    """
    store = credential_store
    if store is None:
        store = JsonFileCredentialStore.from_path(cfg.auth.resolved_users_file())

    policy = QuotaPolicy.from_settings(cfg.quota)
    policy.require(store.identity_classes() | {GUEST_CLASS})

    tracker = build_usage_tracker(
        cfg.quota,
        policy=policy,
        store=usage_store if usage_store is not None else InMemoryUsageStore(),
        clock=clock,
    )

    return RequestGateway(
        issuer=CredentialIssuer.from_settings(store, cfg.auth, clock=clock),
        authenticator=TokenAuthenticator.from_settings(cfg.auth, known_classes=policy.classes),
        tracker=tracker,
        llm=llm_client if llm_client is not None else create_llm_client(cfg.llm),
        llm_timeout_seconds=cfg.llm.timeout_seconds,
        include_rate_limit_headers=cfg.quota.include_headers,
    )


def create_app(
    app_settings: Settings | None = None,
    *,
    llm_client: AbstractLLMClient | None = None,
    credential_store: AbstractCredentialStore | None = None,
    usage_store: AbstractUsageStore | None = None,
    clock: Callable[[], float] = time.time,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        app_settings: Settings to build from; defaults to the global settings.
        llm_client: Downstream generator; built from LLM_* settings if omitted.
        credential_store: Credential lookup; loaded from AUTH_USERS_FILE if omitted.
        usage_store: Usage map; a fresh in-memory store if omitted.
        clock: Time source for quota windows and token timestamps.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    cfg = app_settings or settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log)
    _warn_on_insecure_defaults(cfg)

    app = FastAPI(
        title="Quota Chat API",
        description=(
            "Chat with a language model behind per-identity quotas. Guests are "
            "limited per network address; logged-in users per account and "
            "class. Log in via /api/login and send the token as a Bearer "
            "Authorization header."
        ),
        version="0.1.0",
        debug=cfg.app.debug,
    )

    app.state.settings = cfg
    app.state.gateway = build_gateway(
        cfg,
        llm_client=llm_client,
        credential_store=credential_store,
        usage_store=usage_store,
        clock=clock,
    )

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(auth_router, prefix="/api")
    app.include_router(chat_router, prefix="/api")
    app.include_router(health_router)

    # OpenAPI customizations (security scheme, tags, exemptions)
    apply_openapi_customizations(app)

    logger.info(
        "app.started",
        extra={
            "app_env": cfg.app_env,
            "quota_strategy": cfg.quota.strategy,
            "window_s": cfg.quota.window_seconds,
            "limits": dict(cfg.quota.limits),
        },
    )
    return app
