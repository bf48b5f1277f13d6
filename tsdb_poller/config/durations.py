"""Go-style duration strings, as used in Telegraf-compatible configuration.

A duration is a sequence of decimal numbers with a unit suffix, optionally
signed: ``"5s"``, ``"1h30m"``, ``"1.5h"``, ``"300ms"``. Valid units are
``ns``, ``us`` (or ``µs``), ``ms``, ``s``, ``m`` and ``h``. ``"0"`` alone is
allowed without a unit.
"""

from __future__ import annotations

import re
from datetime import timedelta

_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_COMPONENT = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(value: str) -> timedelta:
    """Parse *value* into a timedelta.

    Raises ValueError on malformed input and on durations too large for a
    timedelta.
    """
    text = value.strip()
    if not text:
        raise ValueError("empty duration")

    sign = 1
    if text[0] in "+-":
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    if text == "0":
        return timedelta(0)

    total = 0.0
    pos = 0
    while pos < len(text):
        match = _COMPONENT.match(text, pos)
        if match is None:
            raise ValueError(f"invalid duration {value!r}")
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()
    if pos == 0:
        raise ValueError(f"invalid duration {value!r}")
    try:
        return timedelta(seconds=sign * total)
    except OverflowError as exc:
        raise ValueError(f"duration out of range {value!r}") from exc


def parse_duration_or(value: str | None, default: timedelta) -> timedelta:
    """Parse *value*, falling back to *default* when empty or malformed."""
    if not value:
        return default
    try:
        return parse_duration(value)
    except ValueError:
        return default
