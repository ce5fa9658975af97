"""Credential store adapters used by the login flow."""

from app.adapters.credentials.base import AbstractCredentialStore, CredentialRecord
from app.adapters.credentials.json_file import JsonFileCredentialStore

__all__ = [
    "AbstractCredentialStore",
    "CredentialRecord",
    "JsonFileCredentialStore",
]
