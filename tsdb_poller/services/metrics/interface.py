from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Mapping, Optional

Tags = Optional[Mapping[str, str]]


class MetricsInterface(ABC):
    """Self-monitoring of the poller itself (not the metrics it forwards).

    Names are dotted, e.g. ``influxdb_input.metrics_forwarded``; backends map
    them to their own naming rules.
    """

    @abstractmethod
    def counter(self, name: str, value: float = 1, tags: Tags = None) -> None:
        """Add *value* to a monotonically increasing counter."""

    @abstractmethod
    def gauge(self, name: str, value: float, tags: Tags = None) -> None:
        """Set a point-in-time value."""

    @abstractmethod
    def histogram(self, name: str, value: float, tags: Tags = None) -> None:
        """Record one observation, e.g. a query duration in seconds."""
