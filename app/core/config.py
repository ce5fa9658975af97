"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

# Select the .env file for the current environment
_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


DEFAULT_JWT_SECRET = "supersecret"

GUEST_CLASS = "guest"


class LLMSettings(BaseSettings):
    """Downstream text-generation provider configuration.

    Validation of provider-specific requirements happens in the factory.
    """

    provider: str = Field(
        "openai",
        description="LLM provider name (currently only openai)",
    )
    model: str = Field(
        "gpt-4o-mini",
        description="Model used to answer chat messages",
    )
    api_key: str | None = Field(
        None,
        description="API key for the provider. Missing key is a startup warning.",
    )
    base_url: str | None = Field(
        None,
        description="Custom API endpoint (OpenAI-compatible servers)",
    )
    timeout_seconds: float = Field(
        45.0,
        description="Upper bound for a single generation call, in seconds",
        gt=0,
    )
    max_retries: int = Field(
        0,
        description="Retries performed by the SDK on transient failures (0 = fail once)",
        ge=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        case_sensitive=False,
    )


class AuthSettings(BaseSettings):
    """Login and token signing configuration."""

    jwt_secret: str = Field(
        DEFAULT_JWT_SECRET,
        description="Process-wide secret used to sign and verify bearer tokens",
    )
    jwt_algorithm: str = Field(
        "HS256",
        description="JWT signing algorithm",
    )
    token_ttl_seconds: int = Field(
        3600,
        description="Lifetime of issued tokens in seconds",
        ge=1,
    )
    users_file: str = Field(
        "users.json",
        description="Path to the JSON credential store (relative paths resolve from project root)",
    )

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        case_sensitive=False,
    )

    def resolved_users_file(self) -> Path:
        path = Path(self.users_file)
        return path if path.is_absolute() else PROJECT_ROOT / path


class QuotaSettings(BaseSettings):
    """Per-identity request quota configuration."""

    limits: dict[str, int] = Field(
        default_factory=lambda: {GUEST_CLASS: 5, "user": 10, "premium": 50},
        description="JSON mapping of identity class to max requests per window",
    )
    window_seconds: int = Field(
        3600,
        description="Quota window length in seconds, shared by all classes",
        ge=1,
    )
    strategy: Literal["fixed", "sliding"] = Field(
        "fixed",
        description="Admission algorithm: fixed window with lazy reset, or sliding window",
    )
    eviction_windows: int = Field(
        2,
        description="Drop usage records whose window ended more than N windows ago",
        ge=1,
    )
    include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers on chat responses",
    )

    model_config = SettingsConfigDict(
        env_prefix="QUOTA_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: Literal["json", "plain"] = Field("json", description="Log line format")
    output: Literal["stdout", "file"] = Field("stdout", description="Log destination")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10_485_760,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Rotated files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to accept and echo the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Server-level configuration."""

    host: str = Field("0.0.0.0", description="Bind address for the HTTP server")
    port: int = Field(3000, description="Listening port for the HTTP server")
    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=AppSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    quota: QuotaSettings = Field(default_factory=QuotaSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
