from __future__ import annotations

from tsdb_poller.services.metrics.interface import MetricsInterface, Tags


def _series_keys(name: str, tags: Tags) -> list[str]:
    if not tags:
        return [name]
    labels = ",".join(f"{k}={tags[k]}" for k in sorted(tags))
    return [name, f"{name}{{{labels}}}"]


class MemoryMetrics(MetricsInterface):
    """Keeps every value in dicts so tests can assert on them.

    Each value is aggregated under the bare metric name; tagged values are
    additionally kept under ``name{k=v,...}``.
    """

    def __init__(self) -> None:
        self.counters: dict[str, float] = {}
        self.gauges: dict[str, float] = {}
        self.histograms: dict[str, list[float]] = {}

    def counter(self, name: str, value: float = 1, tags: Tags = None) -> None:
        for key in _series_keys(name, tags):
            self.counters[key] = self.counters.get(key, 0) + value

    def gauge(self, name: str, value: float, tags: Tags = None) -> None:
        for key in _series_keys(name, tags):
            self.gauges[key] = value

    def histogram(self, name: str, value: float, tags: Tags = None) -> None:
        for key in _series_keys(name, tags):
            self.histograms.setdefault(key, []).append(value)
