"""Per-identity usage tracking and admission decisions.

Two admission strategies share the same contract:

- ``FixedWindowUsageTracker`` (default): a window opens on an identity's
  first request and resets lazily on the first request after it has elapsed.
  Bursts straddling a boundary can admit up to twice the limit in a short
  interval.
- ``SlidingWindowUsageTracker``: counts the requests seen during the last
  ``window_seconds``.

In both, a denied request is still counted, so clients hammering past their
limit keep extending their usage until the window moves on.
"""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from typing import Callable

from app.adapters.usage_store.base import AbstractUsageStore, UsageRecord
from app.core.config import QuotaSettings
from app.core.logging import hash_for_log
from app.services.auth_service import Identity
from app.services.quota_policy import QuotaPolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdmissionResult:
    """Outcome of an admission check.

    Attributes:
        allowed: Whether the request may proceed.
        remaining: Requests left in the current window (0 when blocked).
        limit: Max requests per window for the identity's class.
        reset_at: UNIX epoch seconds when a slot is next freed.
    """

    allowed: bool
    remaining: int
    limit: int
    reset_at: int


@dataclass(frozen=True)
class QuotaStatus:
    """Read-only snapshot of an identity's quota."""

    remaining: int
    limit: int
    reset_at: int


class UsageTracker(ABC):
    """Admission control over an injected usage store.

    ``admit`` is the only writer. It runs its read-modify-write under a lock
    so two concurrent requests for one key can never both see the last slot.
    """

    def __init__(
        self,
        *,
        policy: QuotaPolicy,
        store: AbstractUsageStore,
        window_seconds: int,
        eviction_windows: int = 2,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the tracker.

        Args:
            policy: Per-class quota lookup.
            store: Backing map of identity key -> UsageRecord.
            window_seconds: Window length shared by all classes.
            eviction_windows: Records idle for this many windows after their
                window ended are dropped by the sweep.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If window_seconds or eviction_windows are invalid.
        """
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")
        if eviction_windows < 1:
            raise ValueError("eviction_windows must be >= 1")

        self.policy = policy
        self.store = store
        self.window_seconds = window_seconds
        self.eviction_windows = eviction_windows
        self._clock = clock
        self._lock = threading.RLock()
        self._last_sweep = clock()

    @abstractmethod
    def _consume(self, record: UsageRecord | None, now: float, limit: int) -> UsageRecord:
        """Count one request against ``record`` and return the updated record."""

    @abstractmethod
    def _active_count(self, record: UsageRecord | None, now: float) -> int:
        """Requests counted against the window as of ``now``, without mutation."""

    @abstractmethod
    def _reset_at(self, record: UsageRecord | None, now: float) -> float:
        """When the next slot frees up."""

    @abstractmethod
    def _last_activity_end(self, record: UsageRecord) -> float:
        """When the record's most recent window closes."""

    def now(self) -> float:
        return self._clock()

    def admit(self, identity: Identity) -> AdmissionResult:
        """Count a request for ``identity`` and decide whether it may proceed."""
        limit = self.policy.limit_for(identity.identity_class)

        with self._lock:
            now = self._clock()
            self._maybe_sweep(now)

            record = self._consume(self.store.get(identity.key), now, limit)
            self.store.set(identity.key, record)

            allowed = record.count <= limit
            result = AdmissionResult(
                allowed=allowed,
                remaining=max(limit - record.count, 0),
                limit=limit,
                reset_at=int(self._reset_at(record, now)),
            )

        logger.log(
            logging.INFO if allowed else logging.WARNING,
            "quota.allowed" if allowed else "quota.denied",
            extra={
                "identity_class": identity.identity_class,
                "key_hash": hash_for_log(identity.key),
                "count": record.count,
                "limit": limit,
                "remaining": result.remaining,
            },
        )
        return result

    def peek(self, identity: Identity) -> QuotaStatus:
        """Report remaining quota without creating or touching a record."""
        limit = self.policy.limit_for(identity.identity_class)

        with self._lock:
            now = self._clock()
            record = self.store.get(identity.key)
            used = self._active_count(record, now)
            reset_at = self._reset_at(record, now)

        return QuotaStatus(
            remaining=max(limit - used, 0),
            limit=limit,
            reset_at=int(reset_at),
        )

    def evict_stale(self) -> int:
        """Drop records idle for more than ``eviction_windows`` windows.

        Returns:
            Number of records removed.
        """
        with self._lock:
            return self._evict(self._clock())

    def _maybe_sweep(self, now: float) -> None:
        if now - self._last_sweep >= self.window_seconds:
            self._evict(now)

    def _evict(self, now: float) -> int:
        horizon = self.eviction_windows * self.window_seconds
        removed = 0
        for key, record in self.store.items():
            if now - self._last_activity_end(record) > horizon:
                self.store.delete(key)
                removed += 1
        self._last_sweep = now

        if removed:
            logger.info(
                "quota.evicted",
                extra={"removed": removed, "retained": len(self.store)},
            )
        return removed


class FixedWindowUsageTracker(UsageTracker):
    """Fixed window with lazy reset, anchored at the first request."""

    def _expired(self, record: UsageRecord, now: float) -> bool:
        return now - record.window_start >= self.window_seconds

    def _consume(self, record: UsageRecord | None, now: float, limit: int) -> UsageRecord:
        if record is None or self._expired(record, now):
            return UsageRecord(count=1, window_start=now)
        record.count += 1
        return record

    def _active_count(self, record: UsageRecord | None, now: float) -> int:
        if record is None or self._expired(record, now):
            return 0
        return record.count

    def _reset_at(self, record: UsageRecord | None, now: float) -> float:
        if record is None or self._expired(record, now):
            return now + self.window_seconds
        return record.window_start + self.window_seconds

    def _last_activity_end(self, record: UsageRecord) -> float:
        return record.window_start + self.window_seconds


class SlidingWindowUsageTracker(UsageTracker):
    """Counts requests whose timestamp falls within the last window.

    Only the newest ``limit + 1`` timestamps are kept per key. A dropped hit
    is older than every kept one, so it can only matter while the window
    still holds more than ``limit`` hits, when the request is denied anyway.
    """

    def _in_window(self, record: UsageRecord | None, now: float) -> list[float]:
        if record is None:
            return []
        return [hit for hit in record.hits if now - hit < self.window_seconds]

    def _consume(self, record: UsageRecord | None, now: float, limit: int) -> UsageRecord:
        hits = record.hits if record is not None else deque()
        while hits and now - hits[0] >= self.window_seconds:
            hits.popleft()
        hits.append(now)
        while len(hits) > limit + 1:
            hits.popleft()
        return UsageRecord(count=len(hits), window_start=hits[0], hits=hits)

    def _active_count(self, record: UsageRecord | None, now: float) -> int:
        return len(self._in_window(record, now))

    def _reset_at(self, record: UsageRecord | None, now: float) -> float:
        hits = self._in_window(record, now)
        if not hits:
            return now + self.window_seconds
        return hits[0] + self.window_seconds

    def _last_activity_end(self, record: UsageRecord) -> float:
        last_hit = record.hits[-1] if record.hits else record.window_start
        return last_hit + self.window_seconds


def build_usage_tracker(
    quota_settings: QuotaSettings,
    *,
    policy: QuotaPolicy,
    store: AbstractUsageStore,
    clock: Callable[[], float] = time.time,
) -> UsageTracker:
    """Create the tracker selected by ``QUOTA_STRATEGY``."""
    tracker_cls: type[UsageTracker] = (
        SlidingWindowUsageTracker
        if quota_settings.strategy == "sliding"
        else FixedWindowUsageTracker
    )
    return tracker_cls(
        policy=policy,
        store=store,
        window_seconds=quota_settings.window_seconds,
        eviction_windows=quota_settings.eviction_windows,
        clock=clock,
    )
