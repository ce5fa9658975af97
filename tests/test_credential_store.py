"""Unit tests for the JSON file credential store."""

import json
from pathlib import Path

import pytest

from app.adapters.credentials import CredentialRecord, JsonFileCredentialStore
from app.core.errors import ConfigurationAppError


@pytest.fixture
def users_file(tmp_path: Path) -> Path:
    path = tmp_path / "users.json"
    path.write_text(
        json.dumps(
            [
                {"id": 1, "username": "a", "password": "pw-a", "type": "user"},
                {"id": "u-2", "username": "b", "password": "pw-b", "type": "premium"},
                {"id": 3, "username": "a", "password": "pw-a2", "type": "premium"},
            ]
        ),
        encoding="utf-8",
    )
    return path


def test_loads_records_from_file(users_file: Path) -> None:
    store = JsonFileCredentialStore.from_path(users_file)

    assert len(store) == 3
    assert store.identity_classes() == {"user", "premium"}


def test_match_requires_username_and_password(users_file: Path) -> None:
    store = JsonFileCredentialStore.from_path(users_file)

    assert store.match("b", "pw-b").id == "u-2"
    assert store.match("b", "pw-a") is None
    assert store.match("B", "pw-b") is None
    assert store.match("c", "pw-b") is None


def test_match_considers_every_record_with_username(users_file: Path) -> None:
    store = JsonFileCredentialStore.from_path(users_file)

    assert store.match("a", "pw-a").identity_class == "user"
    assert store.match("a", "pw-a2").identity_class == "premium"


def test_record_accepts_type_or_field_name() -> None:
    by_alias = CredentialRecord.model_validate({"id": 1, "username": "a", "password": "p", "type": "user"})
    by_name = CredentialRecord(id=1, username="a", password="p", identity_class="user")

    assert by_alias == by_name


def test_missing_file_is_configuration_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationAppError) as exc_info:
        JsonFileCredentialStore.from_path(tmp_path / "nope.json")

    assert exc_info.value.code == "credential_store_unavailable"


@pytest.mark.parametrize(
    "content",
    [
        "not json",
        json.dumps({"username": "a"}),
        json.dumps([{"id": 1, "username": "a", "password": "p"}]),
        json.dumps([{"id": 1, "username": "", "password": "p", "type": "user"}]),
    ],
)
def test_invalid_file_is_configuration_error(tmp_path: Path, content: str) -> None:
    path = tmp_path / "users.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigurationAppError) as exc_info:
        JsonFileCredentialStore.from_path(path)

    assert exc_info.value.code == "credential_store_invalid"
