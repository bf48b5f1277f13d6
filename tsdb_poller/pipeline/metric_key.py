"""Deterministic identity keys for metric records.

Key layout::

    <name>|<timestamp_ns>|<k1>=<v1>,<k2>=<v2>,...

Tag pairs are rendered as ``key=value`` and sorted by the full pair string, so
the key does not depend on tag insertion order. A record without tags ends in
a trailing ``|``. Field contents never take part in the key.
"""

from __future__ import annotations

from tsdb_poller.pipeline.metric import MetricRecord

SECTION_SEPARATOR = "|"
TAG_SEPARATOR = ","


def generate_metric_key(record: MetricRecord) -> str:
    tags = sorted(f"{k}={v}" for k, v in record.tags.items())
    return SECTION_SEPARATOR.join(
        (record.name, str(record.timestamp_ns), TAG_SEPARATOR.join(tags))
    )
