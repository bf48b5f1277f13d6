"""InfluxDB line protocol rendering for forwarded records.

Output shape::

    measurement[,tag=value...] field=value[,field=value...] timestamp_ns\\n

Tags and fields are written in key order so output is reproducible.
"""

from __future__ import annotations

import json

from tsdb_poller.pipeline.metric import FieldKind, FieldValue, MetricRecord

_MEASUREMENT_ESCAPES = str.maketrans({",": r"\,", " ": r"\ ", "\n": r"\n"})
_KEY_ESCAPES = str.maketrans({",": r"\,", "=": r"\=", " ": r"\ ", "\n": r"\n"})
_STRING_ESCAPES = str.maketrans({'"': r"\"", "\\": "\\\\"})


def _escape_key(value: str) -> str:
    return value.translate(_KEY_ESCAPES)


def format_field_value(field: FieldValue) -> str:
    match field.kind:
        case FieldKind.STRING:
            return f'"{field.value.translate(_STRING_ESCAPES)}"'
        case FieldKind.INT:
            return f"{field.value}i"
        case FieldKind.FLOAT:
            return repr(float(field.value))
        case FieldKind.BOOL:
            return "true" if field.value else "false"
        case _:
            encoded = json.dumps(field.value, default=str, sort_keys=True)
            return f'"{encoded.translate(_STRING_ESCAPES)}"'


def format_line_protocol(record: MetricRecord) -> str:
    parts = [record.name.translate(_MEASUREMENT_ESCAPES)]
    for key in sorted(record.tags):
        parts.append(f",{_escape_key(key)}={_escape_key(record.tags[key])}")

    fields = ",".join(
        f"{_escape_key(key)}={format_field_value(record.fields[key])}"
        for key in sorted(record.fields)
    )
    return f"{''.join(parts)} {fields} {record.timestamp_ns}\n"
