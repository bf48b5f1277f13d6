"""Prometheus backend for the poller's self-monitoring metrics."""

from __future__ import annotations

from typing import Any

from tsdb_poller.services.metrics.interface import MetricsInterface, Tags
from tsdb_poller.services.secrets.interface import SecretsInterface

_NAMESPACE = "tsdb_poller"
_DEFAULT_PORT = "9091"


class PrometheusMetrics(MetricsInterface):
    """Exports metrics through ``prometheus_client``.

    ``METRICS_PROMETHEUS_PORT`` (default 9091) selects the port of the
    ``/metrics`` endpoint; ``0`` keeps the registry without serving it.
    ``influxdb_input.metrics_forwarded`` is exported as
    ``tsdb_poller_influxdb_input_metrics_forwarded_total``.

    Each instance owns its registry, so several can coexist in one process.
    """

    def __init__(self, secrets: SecretsInterface) -> None:
        import prometheus_client

        self._prom = prometheus_client
        self._registry = prometheus_client.CollectorRegistry()
        self._collectors: dict[tuple[str, str, tuple[str, ...]], Any] = {}

        port = int(secrets.get_or_default("METRICS_PROMETHEUS_PORT", _DEFAULT_PORT))
        if port:
            prometheus_client.start_http_server(port, registry=self._registry)

    @property
    def registry(self) -> Any:
        return self._registry

    def counter(self, name: str, value: float = 1, tags: Tags = None) -> None:
        self._series(self._prom.Counter, name, tags).inc(value)

    def gauge(self, name: str, value: float, tags: Tags = None) -> None:
        self._series(self._prom.Gauge, name, tags).set(value)

    def histogram(self, name: str, value: float, tags: Tags = None) -> None:
        self._series(self._prom.Histogram, name, tags).observe(value)

    def _series(self, kind: Any, name: str, tags: Tags) -> Any:
        """Return the (labelled) child of the collector for *name*."""
        safe = name.replace("-", "_").replace(".", "_")
        labels = tuple(sorted(tags)) if tags else ()
        key = (kind.__name__, safe, labels)
        collector = self._collectors.get(key)
        if collector is None:
            collector = kind(
                safe, safe, labels, namespace=_NAMESPACE, registry=self._registry
            )
            self._collectors[key] = collector
        if not tags:
            return collector
        return collector.labels(*(tags[label] for label in labels))
