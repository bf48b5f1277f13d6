from tsdb_poller.services.metrics.memory_metrics import MemoryMetrics


def test_counter_increments():
    m = MemoryMetrics()
    m.counter("influxdb_input.metrics_forwarded")
    m.counter("influxdb_input.metrics_forwarded", value=3)
    assert m.counters["influxdb_input.metrics_forwarded"] == 4


def test_gauge_sets_value():
    m = MemoryMetrics()
    m.gauge("influxdb_input.tracked_metrics", 10)
    m.gauge("influxdb_input.tracked_metrics", 7)
    assert m.gauges["influxdb_input.tracked_metrics"] == 7


def test_histogram_records_values():
    m = MemoryMetrics()
    m.histogram("influxdb_input.query_seconds", 0.1)
    m.histogram("influxdb_input.query_seconds", 0.3)
    assert m.histograms["influxdb_input.query_seconds"] == [0.1, 0.3]


def test_tagged_series_kept_alongside_total():
    m = MemoryMetrics()
    m.counter("query_errors", tags={"status": "500"})
    m.counter("query_errors", tags={"status": "503"})
    assert m.counters["query_errors"] == 2
    assert m.counters["query_errors{status=500}"] == 1
    assert m.counters["query_errors{status=503}"] == 1
