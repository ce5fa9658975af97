"""Usage store adapters.

The tracker only talks to the abstract store, so the in-memory map can later
be replaced by a shared cache without touching the admission logic.
"""

from app.adapters.usage_store.base import AbstractUsageStore, UsageRecord
from app.adapters.usage_store.in_memory import InMemoryUsageStore

__all__ = [
    "AbstractUsageStore",
    "InMemoryUsageStore",
    "UsageRecord",
]
