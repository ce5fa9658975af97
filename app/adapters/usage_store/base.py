"""Usage store interface.

The tracker depends on this abstraction (not the concrete implementation)
so the storage backend can be swapped later with minimal changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from typing import Iterator


@dataclass
class UsageRecord:
    """Consumption state for a single identity key.

    Attributes:
        count: Requests counted in the current window (denied ones included).
        window_start: UNIX time in seconds when the current window opened.
        hits: Newest request timestamps, oldest first. Only populated by the
            sliding window tracker, which caps its length.
    """

    count: int
    window_start: float
    hits: deque[float] = field(default_factory=deque)


class AbstractUsageStore(ABC):
    """Key/value map of identity key -> UsageRecord.

    Implementations are not required to be thread-safe; callers serialize
    read-modify-write sequences themselves.
    """

    @abstractmethod
    def get(self, key: str) -> UsageRecord | None:
        """Return the record for ``key`` or None when nothing is stored."""
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, record: UsageRecord) -> None:
        """Store ``record`` under ``key``, replacing any previous record."""
        raise NotImplementedError

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove the record for ``key`` if present."""
        raise NotImplementedError

    @abstractmethod
    def items(self) -> Iterator[tuple[str, UsageRecord]]:
        """Iterate over a snapshot of stored (key, record) pairs."""
        raise NotImplementedError

    @abstractmethod
    def __len__(self) -> int:
        raise NotImplementedError
