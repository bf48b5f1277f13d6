"""Metric records produced from query rows and forwarded to the accumulator.

Field values are wrapped in ``FieldValue`` so every consumer dispatches on an
explicit ``FieldKind`` instead of re-inspecting Python types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping


class FieldKind(str, Enum):
    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    OTHER = "other"


@dataclass(frozen=True)
class FieldValue:
    """A typed scalar field value. ``OTHER`` keeps the raw decoded JSON value."""

    kind: FieldKind
    value: Any

    @classmethod
    def of(cls, raw: Any) -> "FieldValue":
        # bool is a subclass of int, so it must be checked first
        if isinstance(raw, bool):
            return cls(FieldKind.BOOL, raw)
        if isinstance(raw, int):
            return cls(FieldKind.INT, raw)
        if isinstance(raw, float):
            return cls(FieldKind.FLOAT, raw)
        if isinstance(raw, str):
            return cls(FieldKind.STRING, raw)
        return cls(FieldKind.OTHER, raw)


@dataclass(frozen=True)
class MetricRecord:
    """One data point ready for forwarding.

    ``timestamp_ns`` is nanoseconds since the Unix epoch. Identity for
    deduplication is (name, tags, timestamp_ns); fields never take part in it.
    """

    name: str
    fields: Mapping[str, FieldValue]
    timestamp_ns: int
    tags: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("metric name must not be empty")
        if not self.fields:
            raise ValueError(f"metric '{self.name}' has no fields")
        object.__setattr__(self, "tags", MappingProxyType(dict(self.tags)))
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    @classmethod
    def create(
        cls,
        name: str,
        fields: Mapping[str, Any],
        timestamp_ns: int,
        tags: Mapping[str, str] | None = None,
    ) -> "MetricRecord":
        """Build a record from plain Python field values."""
        typed = {
            k: v if isinstance(v, FieldValue) else FieldValue.of(v)
            for k, v in fields.items()
        }
        return cls(name=name, fields=typed, timestamp_ns=timestamp_ns, tags=tags or {})

    def raw_fields(self) -> dict[str, Any]:
        return {k: v.value for k, v in self.fields.items()}
