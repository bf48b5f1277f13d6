from tsdb_poller.services.metrics.prometheus_metrics import PrometheusMetrics
from tsdb_poller.services.secrets.env_secrets import EnvSecrets


def _metrics() -> PrometheusMetrics:
    return PrometheusMetrics(EnvSecrets(overrides={"METRICS_PROMETHEUS_PORT": "0"}))


def test_counter_exported_with_namespace():
    m = _metrics()
    m.counter("influxdb_input.metrics_forwarded", 2)
    m.counter("influxdb_input.metrics_forwarded")
    value = m.registry.get_sample_value("tsdb_poller_influxdb_input_metrics_forwarded_total")
    assert value == 3


def test_gauge_and_histogram():
    m = _metrics()
    m.gauge("influxdb_input.tracked_metrics", 42)
    m.histogram("influxdb_input.query_seconds", 0.25)
    assert m.registry.get_sample_value("tsdb_poller_influxdb_input_tracked_metrics") == 42
    assert m.registry.get_sample_value("tsdb_poller_influxdb_input_query_seconds_count") == 1


def test_labels():
    m = _metrics()
    m.counter("query-errors", tags={"status": "500"})
    value = m.registry.get_sample_value("tsdb_poller_query_errors_total", {"status": "500"})
    assert value == 1


def test_instances_use_separate_registries():
    a, b = _metrics(), _metrics()
    a.counter("cycles")
    b.counter("cycles")
    assert a.registry.get_sample_value("tsdb_poller_cycles_total") == 1
