from tsdb_poller.services.metrics.interface import MetricsInterface, Tags


class NoopMetrics(MetricsInterface):
    """Default backend when ``--metrics`` is not given."""

    def counter(self, name: str, value: float = 1, tags: Tags = None) -> None:
        return None

    def gauge(self, name: str, value: float, tags: Tags = None) -> None:
        return None

    def histogram(self, name: str, value: float, tags: Tags = None) -> None:
        return None
