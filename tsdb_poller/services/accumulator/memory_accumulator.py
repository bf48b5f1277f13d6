from __future__ import annotations

from tsdb_poller.pipeline.metric import MetricRecord
from tsdb_poller.services.accumulator.interface import AccumulatorInterface


class MemoryAccumulator(AccumulatorInterface):
    """Keeps forwarded records in a list for test assertions."""

    def __init__(self) -> None:
        self.records: list[MetricRecord] = []
        self.flushes = 0

    def add_record(self, record: MetricRecord) -> None:
        self.records.append(record)

    def flush(self) -> None:
        self.flushes += 1

    @property
    def names(self) -> list[str]:
        return [r.name for r in self.records]

    def clear(self) -> None:
        self.records.clear()
