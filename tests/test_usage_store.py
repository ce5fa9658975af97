"""Unit tests for the in-memory usage store adapter."""

import pytest

from app.adapters.usage_store import InMemoryUsageStore, UsageRecord


def test_set_get_delete() -> None:
    store = InMemoryUsageStore()
    record = UsageRecord(count=1, window_start=10.0)

    store.set("ip:1.2.3.4", record)
    assert store.get("ip:1.2.3.4") is record
    assert len(store) == 1

    store.delete("ip:1.2.3.4")
    assert store.get("ip:1.2.3.4") is None
    assert len(store) == 0


def test_delete_missing_key_is_noop() -> None:
    InMemoryUsageStore().delete("missing")


def test_items_is_a_snapshot() -> None:
    store = InMemoryUsageStore()
    store.set("a", UsageRecord(count=1, window_start=0.0))
    store.set("b", UsageRecord(count=2, window_start=0.0))

    for key, _ in store.items():
        store.delete(key)

    assert len(store) == 0


def test_rejects_empty_key() -> None:
    with pytest.raises(ValueError):
        InMemoryUsageStore().set("", UsageRecord(count=1, window_start=0.0))
