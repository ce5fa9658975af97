"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any app import because
``app.core.config.settings`` is evaluated at import time.
"""

import os

os.environ["APP_ENV"] = "testing"
os.environ.setdefault("LLM_PROVIDER", "openai")
os.environ.setdefault("LLM_MODEL", "gpt-4o-mini")
os.environ.setdefault("LLM_API_KEY", "test-key-123")
os.environ.setdefault("AUTH_JWT_SECRET", "test-secret-with-enough-bytes-for-hs256-signing")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import time
from unittest.mock import AsyncMock, MagicMock, Mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.adapters.credentials import CredentialRecord, JsonFileCredentialStore
from app.adapters.llm.base import AbstractLLMClient
from app.adapters.usage_store import InMemoryUsageStore
from app.core.app_factory import create_app
from app.core.config import AuthSettings, QuotaSettings, Settings

TEST_SECRET = "test-secret-with-enough-bytes-for-hs256-signing"


@pytest.fixture
def clock() -> Mock:
    """Controllable time source; set ``clock.return_value`` to move time.

    Starts at the real current time so tokens it stamps verify normally.
    """
    return Mock(return_value=float(int(time.time())))


@pytest.fixture
def credential_store() -> JsonFileCredentialStore:
    return JsonFileCredentialStore(
        [
            CredentialRecord(id=1, username="a", password="secret-a", identity_class="user"),
            CredentialRecord(id=2, username="b", password="secret-b", identity_class="premium"),
        ]
    )


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        auth=AuthSettings(jwt_secret=TEST_SECRET, token_ttl_seconds=3600),
        quota=QuotaSettings(
            limits={"guest": 5, "user": 10, "premium": 50},
            window_seconds=3600,
            strategy="fixed",
        ),
    )


@pytest.fixture
def llm_client() -> MagicMock:
    client = MagicMock(spec=AbstractLLMClient)
    client.model = "gpt-4o-mini"
    client.generate_text = AsyncMock(return_value="Hello from the model")
    return client


@pytest.fixture
def usage_store() -> InMemoryUsageStore:
    return InMemoryUsageStore()


@pytest.fixture
def app(test_settings, llm_client, credential_store, usage_store, clock) -> FastAPI:
    return create_app(
        test_settings,
        llm_client=llm_client,
        credential_store=credential_store,
        usage_store=usage_store,
        clock=clock,
    )


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def login_token(client: TestClient):
    """Log in through the API and return the bearer header for a user."""

    def _login(username: str = "a", password: str = "secret-a") -> dict[str, str]:
        resp = client.post("/api/login", json={"username": username, "password": password})
        assert resp.status_code == 200, resp.text
        return {"Authorization": f"Bearer {resp.json()['token']}"}

    return _login
