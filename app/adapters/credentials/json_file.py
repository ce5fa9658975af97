"""JSON file credential store.

The file holds a list of objects shaped like::

    [{"id": 1, "username": "alice", "password": "...", "type": "user"}]

It is read once at startup; edits require a restart.
"""

from __future__ import annotations

import hmac
import logging
from pathlib import Path
from typing import Iterable

from pydantic import TypeAdapter, ValidationError

from app.adapters.credentials.base import AbstractCredentialStore, CredentialRecord
from app.core.errors import ConfigurationAppError

logger = logging.getLogger(__name__)

_RECORDS_ADAPTER = TypeAdapter(list[CredentialRecord])


class JsonFileCredentialStore(AbstractCredentialStore):
    """In-memory view over credential records loaded from JSON."""

    def __init__(self, records: Iterable[CredentialRecord]) -> None:
        self._records = tuple(records)

    @classmethod
    def from_path(cls, path: str | Path) -> "JsonFileCredentialStore":
        """Load and validate the credential file.

        Raises:
            ConfigurationAppError: If the file is missing or malformed.
        """
        file_path = Path(path)
        try:
            raw = file_path.read_bytes()
        except OSError as exc:
            raise ConfigurationAppError(
                code="credential_store_unavailable",
                message=f"Cannot read credential file: {file_path}",
                details={"reason": str(exc), "hint": "Set AUTH_USERS_FILE to a readable JSON file"},
            ) from exc

        try:
            records = _RECORDS_ADAPTER.validate_json(raw)
        except ValidationError as exc:
            raise ConfigurationAppError(
                code="credential_store_invalid",
                message=f"Credential file is not a valid list of users: {file_path}",
                details={"reason": str(exc)},
            ) from exc

        logger.info(
            "credentials.loaded",
            extra={"path": str(file_path), "user_count": len(records)},
        )
        return cls(records)

    def match(self, username: str, password: str) -> CredentialRecord | None:
        for record in self._records:
            if record.username != username:
                continue
            if hmac.compare_digest(record.password.encode(), password.encode()):
                return record
        return None

    def identity_classes(self) -> set[str]:
        return {record.identity_class for record in self._records}

    def __len__(self) -> int:
        return len(self._records)
