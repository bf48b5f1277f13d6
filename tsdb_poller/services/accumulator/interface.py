from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Any, Mapping

from tsdb_poller.pipeline.metric import MetricRecord


class AccumulatorInterface(ABC):
    """Output sink for metrics approved by the deduplication gate."""

    @abstractmethod
    def add_record(self, record: MetricRecord) -> None: ...

    def add_fields(
        self,
        name: str,
        fields: Mapping[str, Any],
        tags: Mapping[str, str] | None = None,
        timestamp_ns: int | None = None,
    ) -> None:
        """Build a record from plain values and add it."""
        ts = timestamp_ns if timestamp_ns is not None else time.time_ns()
        self.add_record(MetricRecord.create(name, fields, ts, tags))

    def flush(self) -> None:
        """Push out anything buffered. Called at the end of each cycle."""
