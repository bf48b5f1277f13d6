"""Errors raised by the InfluxDB query layer.

Any of these aborts the current collection cycle; the seen-set is left
untouched.
"""

from __future__ import annotations


class QueryError(Exception):
    """Base class for failed InfluxDB queries."""


class QueryTransportError(QueryError):
    """The request could not be sent or the response could not be read."""


class QueryStatusError(QueryError):
    """InfluxDB answered with a non-200 status."""

    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"unexpected status code {status}: {body}")
        self.status = status
        self.body = body


class QueryDecodeError(QueryError):
    """The response body is not a JSON array of row objects."""
