"""Converts InfluxDB 3 SQL result rows into ``MetricRecord`` objects.

Row conventions::

    time          RFC 3339 string or epoch seconds → record timestamp
    _measurement  string → record name (default ``influxdb3_query_result``)
    _<anything>   → field (kept even when it is a string)
    string value  → tag
    other value   → field

Null values are dropped. A row left without any field yields ``None``.
"""

from __future__ import annotations

import math
import re
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable

from tsdb_poller.pipeline.metric import FieldValue, MetricRecord

DEFAULT_MEASUREMENT = "influxdb3_query_result"
TIME_COLUMN = "time"
MEASUREMENT_COLUMN = "_measurement"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_NS_PER_SECOND = 1_000_000_000

_RFC3339 = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})[Tt ](?P<clock>\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<frac>\d{1,9})\d*)?"
    r"(?P<tz>[Zz]|[+-]\d{2}:\d{2})?$"
)


def parse_timestamp(value: Any) -> int | None:
    """Return nanoseconds since the epoch, or None if *value* is not a timestamp.

    Numbers are whole epoch seconds (fractions are truncated). Strings without
    an offset are taken as UTC.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, (int, float)):
        return int(value) * _NS_PER_SECOND
    if not isinstance(value, str):
        return None

    match = _RFC3339.match(value.strip())
    if match is None:
        return None
    try:
        naive = datetime.fromisoformat(f"{match['date']}T{match['clock']}")
    except ValueError:
        return None

    tz = match["tz"]
    if tz is None or tz in ("Z", "z"):
        tzinfo = timezone.utc
    else:
        sign = -1 if tz[0] == "-" else 1
        hours, minutes = int(tz[1:3]), int(tz[4:6])
        try:
            tzinfo = timezone(sign * timedelta(hours=hours, minutes=minutes))
        except ValueError:
            return None

    seconds = (naive.replace(tzinfo=tzinfo) - _EPOCH) // timedelta(seconds=1)
    nanos = int((match["frac"] or "").ljust(9, "0"))
    return seconds * _NS_PER_SECOND + nanos


def convert_row_to_metric(
    row: dict[str, Any], now_ns: int | None = None
) -> MetricRecord | None:
    data = dict(row)
    timestamp_ns: int | None = None
    name = DEFAULT_MEASUREMENT

    if TIME_COLUMN in data:
        timestamp_ns = parse_timestamp(data.pop(TIME_COLUMN))
    if timestamp_ns is None:
        timestamp_ns = now_ns if now_ns is not None else time.time_ns()

    if MEASUREMENT_COLUMN in data:
        measurement = data.pop(MEASUREMENT_COLUMN)
        if isinstance(measurement, str) and measurement:
            name = measurement

    tags: dict[str, str] = {}
    fields: dict[str, FieldValue] = {}
    for key, value in data.items():
        if value is None:
            continue
        if key.startswith("_"):
            fields[key] = FieldValue.of(value)
        elif isinstance(value, str):
            tags[key] = value
        else:
            fields[key] = FieldValue.of(value)

    if not fields:
        return None
    return MetricRecord(name=name, fields=fields, timestamp_ns=timestamp_ns, tags=tags)


def convert_rows(
    rows: Iterable[dict[str, Any]], now_ns: int | None = None
) -> list[MetricRecord]:
    """Convert a result set. Rows without fields are skipped.

    Rows without a usable ``time`` share one capture time so repeated rows in
    the same response produce the same key.
    """
    now = now_ns if now_ns is not None else time.time_ns()
    records = []
    for row in rows:
        record = convert_row_to_metric(row, now_ns=now)
        if record is not None:
            records.append(record)
    return records
