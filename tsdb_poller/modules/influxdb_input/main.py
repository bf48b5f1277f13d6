"""InfluxDB3 input worker.

Each collection cycle:

1. runs the configured SQL query against ``/api/v3/query_sql``
2. converts the result rows into metric records (rows without fields are dropped)
3. expires tracked keys older than ``metric-tracking-window``
4. forwards records whose (name, tags, timestamp) key is not tracked yet and
   tracks them, evicting the oldest 10% once ``max-tracked-metrics`` is exceeded

With ``track-new-metrics-only`` off, steps 3 and 4 are skipped and every
record is forwarded.

With ``interval`` at 0 the module runs one cycle and exits (non-zero if the
query failed); otherwise it polls until shutdown, logging failed cycles and
retrying on the next interval.

Args (each falls back to the matching env var, then the default)::

    url        INFLUXDB_URL        http://localhost:8181
    token      INFLUXDB_TOKEN      ""
    database   INFLUXDB_DATABASE   control
    query      INFLUXDB_QUERY      SELECT * FROM opcua ORDER BY time DESC LIMIT 100
"""

from __future__ import annotations

import time
from datetime import timedelta

from tsdb_poller.config.context import ModuleConfig
from tsdb_poller.config.durations import parse_duration_or
from tsdb_poller.modules.base import AsyncModule
from tsdb_poller.pipeline.conversion import convert_rows
from tsdb_poller.pipeline.dedup import CycleStats, MetricDeduplicator
from tsdb_poller.services.accumulator.interface import AccumulatorInterface
from tsdb_poller.services.influxdb.client import InfluxQueryClient
from tsdb_poller.services.influxdb.errors import QueryError
from tsdb_poller.services.influxdb.tls import build_ssl_context
from tsdb_poller.services.lifecycle.lifecycle_manager import LifecycleManager
from tsdb_poller.services.logger.factory import LoggerFactory
from tsdb_poller.services.logger.interface import LoggingInterface
from tsdb_poller.services.metrics.interface import MetricsInterface
from tsdb_poller.services.secrets.interface import SecretsInterface

DEFAULT_URL = "http://localhost:8181"
DEFAULT_DATABASE = "control"
DEFAULT_QUERY = "SELECT * FROM opcua ORDER BY time DESC LIMIT 100"
DEFAULT_TIMEOUT = timedelta(seconds=5)
DEFAULT_TRACKING_WINDOW = timedelta(hours=1)
DEFAULT_MAX_TRACKED = 10_000

_METRIC_PREFIX = "influxdb_input"


class InfluxDBInputModule(AsyncModule):
    log: LoggingInterface

    def __init__(
        self,
        config: ModuleConfig,
        logger: LoggerFactory,
        secrets: SecretsInterface,
        metrics: MetricsInterface,
        acc: AccumulatorInterface,
        lifecycle: LifecycleManager,
    ) -> None:
        self.config = config
        self.logger = logger
        self.secrets = secrets
        self.metrics = metrics
        self.acc = acc
        self.lifecycle = lifecycle
        self.client: InfluxQueryClient | None = None
        self.dedup: MetricDeduplicator | None = None

    async def initialize(self) -> None:
        self.log = self.logger.create()

        self.url: str = self._setting("url", "INFLUXDB_URL", DEFAULT_URL)
        self.token: str = self._setting("token", "INFLUXDB_TOKEN", "")
        self.database: str = self._setting("database", "INFLUXDB_DATABASE", DEFAULT_DATABASE)
        self.query: str = self._setting("query", "INFLUXDB_QUERY", DEFAULT_QUERY)
        self.organization: str = self.config.get("organization", "") or ""

        self.timeout = parse_duration_or(self.config.get("timeout"), DEFAULT_TIMEOUT)
        if self.timeout <= timedelta(0):
            self.timeout = DEFAULT_TIMEOUT
        self.interval = parse_duration_or(self.config.get("interval"), timedelta(0))

        self.track_new_metrics_only = self.config.get_bool("track-new-metrics-only", True)
        self.max_tracked_metrics = self.config.get_int("max-tracked-metrics", 0)
        if self.max_tracked_metrics == 0:
            self.max_tracked_metrics = DEFAULT_MAX_TRACKED
        self.tracking_window = parse_duration_or(
            self.config.get("metric-tracking-window"), DEFAULT_TRACKING_WINDOW
        )

        if self.track_new_metrics_only:
            self.dedup = MetricDeduplicator.create(
                max_entries=self.max_tracked_metrics,
                window=self.tracking_window,
            )

        if self.client is None:
            self.client = InfluxQueryClient(
                url=self.url,
                database=self.database,
                token=self.token,
                timeout=self.timeout,
                ssl_context=build_ssl_context(
                    tls_ca=self.config.get("tls-ca", ""),
                    tls_cert=self.config.get("tls-cert", ""),
                    tls_key=self.config.get("tls-key", ""),
                    insecure_skip_verify=self.config.get_bool("insecure-skip-verify", False),
                ),
            )
        self.lifecycle.on_shutdown(self.client.close)

        health = self.lifecycle.health_server
        if health is not None:
            health.register_check("influxdb", self.client.health_check)
            health.register_stat("tracked_metrics", self.tracked_count)

        self.log.info(
            "InfluxDB3 input initialized",
            url=self.url,
            database=self.database,
            track_new_metrics_only=self.track_new_metrics_only,
            max_tracked_metrics=self.max_tracked_metrics,
            tracking_window=str(self.tracking_window),
        )

    async def validate(self) -> None:
        if not self.url:
            raise ValueError("url is required")
        if not self.query:
            raise ValueError("query is required")
        if self.track_new_metrics_only and self.max_tracked_metrics < 0:
            raise ValueError("max-tracked-metrics must be a positive integer")
        if self.interval < timedelta(0):
            raise ValueError("interval must not be negative")

    async def execute(self) -> int:
        await self._require_client().connect()

        if self.interval == timedelta(0):
            try:
                await self.gather()
            except QueryError:
                return 1
            return 0

        self.log.info("InfluxDB3 input polling", interval=str(self.interval))
        while not self.lifecycle.is_shutting_down:
            try:
                await self.gather()
            except QueryError:
                pass  # already logged and counted by gather()
            await self.lifecycle.wait(self.interval.total_seconds())
        return 0

    async def teardown(self) -> None:
        if self.client is not None:
            await self.client.close()

    async def gather(self, acc: AccumulatorInterface | None = None) -> CycleStats:
        """Run one collection cycle, forwarding new records to *acc*.

        Raises QueryError if the query fails; nothing is forwarded or tracked
        in that case.
        """
        sink = acc or self.acc

        started = time.perf_counter()
        try:
            rows = await self._require_client().query(self.query)
        except QueryError as exc:
            self.log.error("Failed to query InfluxDB3", error=str(exc))
            self.metrics.counter(f"{_METRIC_PREFIX}.query_errors")
            raise
        self.metrics.histogram(f"{_METRIC_PREFIX}.query_seconds", time.perf_counter() - started)

        records = convert_rows(rows)

        if self.dedup is None:
            for record in records:
                sink.add_record(record)
            stats = CycleStats(processed=len(records), forwarded=len(records))
        else:
            stats = self.dedup.process(records, sink.add_record)
            self._log_tracking(stats)

        sink.flush()
        self._record_metrics(stats)
        return stats

    def tracked_count(self) -> int:
        return self.dedup.store.size() if self.dedup is not None else 0

    # ── Internal ──────────────────────────────────────────────────────────

    def _require_client(self) -> InfluxQueryClient:
        if self.client is None:
            raise RuntimeError("influxdb_input used before initialize()")
        return self.client

    def _setting(self, arg: str, env_key: str, default: str) -> str:
        value = self.config.get(arg)
        if value:
            return str(value)
        return self.secrets.get_or_default(env_key, default)

    def _log_tracking(self, stats: CycleStats) -> None:
        if stats.expired:
            self.log.debug("Cleaned up old metric entries from tracking", removed=stats.expired)
        if stats.evicted:
            self.log.debug(
                "Evicted oldest metrics from tracking",
                evicted=stats.evicted,
                limit=self.max_tracked_metrics,
            )
        self.log.debug(
            "Processed metrics",
            processed=stats.processed,
            forwarded=stats.forwarded,
        )

    def _record_metrics(self, stats: CycleStats) -> None:
        self.metrics.counter(f"{_METRIC_PREFIX}.metrics_processed", stats.processed)
        self.metrics.counter(f"{_METRIC_PREFIX}.metrics_forwarded", stats.forwarded)
        if self.dedup is not None:
            self.metrics.counter(f"{_METRIC_PREFIX}.tracking_expired", stats.expired)
            self.metrics.counter(f"{_METRIC_PREFIX}.tracking_evicted", stats.evicted)
            self.metrics.gauge(f"{_METRIC_PREFIX}.tracked_metrics", self.tracked_count())


module_class = InfluxDBInputModule
