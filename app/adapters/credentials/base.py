"""Credential store interface and record schema."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict, Field


class CredentialRecord(BaseModel):
    """A stored user credential.

    ``type`` in the stored document is the identity class used for quota
    lookup (e.g. ``user`` or ``premium``).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int | str = Field(..., description="Stable principal identifier")
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    identity_class: str = Field(..., alias="type", min_length=1)


class AbstractCredentialStore(ABC):
    """Read-only lookup of credential records."""

    @abstractmethod
    def match(self, username: str, password: str) -> CredentialRecord | None:
        """Return the record whose username and password both match exactly.

        Returns:
            The matching record, or None if there is no match.
        """
        raise NotImplementedError

    @abstractmethod
    def identity_classes(self) -> set[str]:
        """Return every identity class assigned to a stored user."""
        raise NotImplementedError
