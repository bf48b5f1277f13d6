"""In-memory "seen metric" store with age- and size-based cleanup.

``SeenSetStore`` maps a metric key to the wall-clock time it was last
recorded. Reads (``contains``, ``all_entries``) share a reader-writer lock;
every mutation takes it exclusively. The underlying dict never leaves the
store.

Two cleanup policies operate on the store from outside:

* ``ExpirySweeper`` drops entries recorded longer ago than the retention
  window. It runs once at the start of every collection cycle.
* ``CapacityEvictor`` drops the oldest 10% of entries (at least one) once the
  store grows past its maximum size.

Both measure age from insertion time, not from the metric's own timestamp.
"""

from __future__ import annotations

import heapq
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable

from tsdb_poller.pipeline.rwlock import ReadWriteLock

Clock = Callable[[], float]

_EVICTION_FRACTION = 10  # evict 1/10th of the store


@dataclass(frozen=True)
class SeenEntry:
    key: str
    last_seen_at: float


class SeenSetStore:
    """Thread-safe mapping of metric key -> last seen time (epoch seconds)."""

    def __init__(self, clock: Clock = time.time) -> None:
        self._clock = clock
        self._entries: dict[str, float] = {}
        self._lock = ReadWriteLock()

    def contains(self, key: str) -> bool:
        with self._lock.read():
            return key in self._entries

    def insert(self, key: str) -> None:
        """Insert *key* or refresh its last seen time."""
        now = self._clock()
        with self._lock.write():
            self._entries[key] = now

    def admit_if_new(self, key: str) -> bool:
        """Record *key* and return True only if it was not already present.

        Check and insert happen under one exclusive lock, so two callers racing
        on the same key cannot both be admitted.
        """
        now = self._clock()
        with self._lock.write():
            if key in self._entries:
                return False
            self._entries[key] = now
            return True

    def remove(self, *keys: str) -> int:
        """Remove *keys*, ignoring absent ones. Returns how many were removed."""
        removed = 0
        with self._lock.write():
            for key in keys:
                if self._entries.pop(key, None) is not None:
                    removed += 1
        return removed

    def remove_older_than(self, cutoff: float) -> int:
        """Remove entries last seen strictly before *cutoff*.

        Comparison and removal share one exclusive lock, so a key refreshed
        concurrently is either kept or was already stale.
        """
        with self._lock.write():
            stale = [k for k, t in self._entries.items() if t < cutoff]
            for key in stale:
                del self._entries[key]
        return len(stale)

    def remove_oldest(self, count: int) -> int:
        """Remove the *count* least recently seen entries."""
        if count <= 0:
            return 0
        with self._lock.write():
            oldest = heapq.nsmallest(count, self._entries.items(), key=lambda item: item[1])
            for key, _ in oldest:
                del self._entries[key]
        return len(oldest)

    def size(self) -> int:
        with self._lock.read():
            return len(self._entries)

    def __len__(self) -> int:
        return self.size()

    def all_entries(self) -> list[SeenEntry]:
        """Point-in-time snapshot of every entry."""
        with self._lock.read():
            return [SeenEntry(k, t) for k, t in self._entries.items()]

    def clear(self) -> None:
        with self._lock.write():
            self._entries.clear()

    def now(self) -> float:
        return self._clock()


class ExpirySweeper:
    """Removes entries last seen strictly before ``now - window``."""

    def __init__(self, store: SeenSetStore, window: timedelta) -> None:
        self.store = store
        self.window = window

    def sweep(self, now: float | None = None) -> int:
        current = self.store.now() if now is None else now
        cutoff = current - self.window.total_seconds()
        return self.store.remove_older_than(cutoff)


class CapacityEvictor:
    """Keeps the store at or below ``max_entries`` by batch-evicting the oldest.

    A non-positive ``max_entries`` disables eviction.
    """

    def __init__(self, store: SeenSetStore, max_entries: int) -> None:
        self.store = store
        self.max_entries = max_entries

    @property
    def enabled(self) -> bool:
        return self.max_entries > 0

    def over_limit(self) -> bool:
        return self.enabled and self.store.size() > self.max_entries

    def enforce(self) -> int:
        """Evict when over the limit. Returns the number of entries removed."""
        if not self.enabled:
            return 0
        size = self.store.size()
        if size <= self.max_entries:
            return 0
        return self.store.remove_oldest(max(1, size // _EVICTION_FRACTION))
