"""Metric deduplication gate.

Decides, per incoming record, whether it is forwarded:

  - unseen key  → forward and record in the seen-set
  - seen key    → suppress until the entry expires or is evicted

``should_forward`` + ``mark_seen`` is the two-step form: it is not atomic, so
two callers handling the same key concurrently may both forward it.
``admit`` collapses both steps into one store operation and is what
``process`` uses for a collection cycle.

With tracking disabled every record is forwarded and the store is never
consulted.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Iterable

from tsdb_poller.pipeline.metric import MetricRecord
from tsdb_poller.pipeline.metric_key import generate_metric_key
from tsdb_poller.pipeline.seen_set import CapacityEvictor, ExpirySweeper, SeenSetStore


@dataclass
class CycleStats:
    processed: int = 0
    forwarded: int = 0
    expired: int = 0
    evicted: int = 0


class MetricDeduplicator:
    def __init__(
        self,
        store: SeenSetStore,
        sweeper: ExpirySweeper,
        evictor: CapacityEvictor,
        enabled: bool = True,
    ) -> None:
        self.store = store
        self.sweeper = sweeper
        self.evictor = evictor
        self.enabled = enabled

    @classmethod
    def create(
        cls,
        max_entries: int,
        window: timedelta,
        enabled: bool = True,
        store: SeenSetStore | None = None,
    ) -> "MetricDeduplicator":
        """Wire a store with its sweeper and evictor."""
        if store is None:
            store = SeenSetStore()
        return cls(
            store=store,
            sweeper=ExpirySweeper(store, window),
            evictor=CapacityEvictor(store, max_entries),
            enabled=enabled,
        )

    def should_forward(self, record: MetricRecord) -> bool:
        if not self.enabled:
            return True
        return not self.store.contains(generate_metric_key(record))

    def mark_seen(self, record: MetricRecord) -> int:
        """Record *record* as seen. Returns the number of entries evicted."""
        self.store.insert(generate_metric_key(record))
        return self._evict_if_needed()

    def admit(self, record: MetricRecord) -> tuple[bool, int]:
        """Atomically check and record *record*.

        Returns ``(forward, evicted)``.
        """
        if not self.enabled:
            return True, 0
        if not self.store.admit_if_new(generate_metric_key(record)):
            return False, 0
        return True, self._evict_if_needed()

    def begin_cycle(self) -> int:
        """Expire stale entries before any decision of the cycle is made."""
        if not self.enabled:
            return 0
        return self.sweeper.sweep()

    def process(
        self,
        records: Iterable[MetricRecord],
        forward: Callable[[MetricRecord], None],
    ) -> CycleStats:
        """Run one collection cycle over *records*, forwarding the new ones."""
        stats = CycleStats(expired=self.begin_cycle())
        for record in records:
            stats.processed += 1
            admitted, evicted = self.admit(record)
            stats.evicted += evicted
            if admitted:
                forward(record)
                stats.forwarded += 1
        return stats

    def _evict_if_needed(self) -> int:
        if not self.evictor.over_limit():
            return 0
        return self.evictor.enforce()
