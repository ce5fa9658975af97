"""In-memory usage store.

Notes:
- Per-process only: running multiple workers multiplies the effective quota.
- Contents are lost on restart.
"""

from __future__ import annotations

from typing import Iterator

from app.adapters.usage_store.base import AbstractUsageStore, UsageRecord


class InMemoryUsageStore(AbstractUsageStore):
    """Dictionary-backed usage store owned by a single tracker."""

    def __init__(self) -> None:
        self._records: dict[str, UsageRecord] = {}

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"InMemoryUsageStore(size={len(self._records)})"

    def get(self, key: str) -> UsageRecord | None:
        return self._records.get(key)

    def set(self, key: str, record: UsageRecord) -> None:
        if not key:
            raise ValueError("key must be a non-empty string")
        self._records[key] = record

    def delete(self, key: str) -> None:
        self._records.pop(key, None)

    def items(self) -> Iterator[tuple[str, UsageRecord]]:
        # Snapshot so callers may delete while iterating
        return iter(list(self._records.items()))

    def __len__(self) -> int:
        return len(self._records)
