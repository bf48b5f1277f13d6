"""Async client for the InfluxDB 3 SQL query API.

Sends ``POST <url>/api/v3/query_sql`` with a JSON body::

    {"db": "<database>", "q": "<sql>", "format": "json"}

and expects a JSON array of row objects back.
"""

from __future__ import annotations

import asyncio
import json
import ssl
from datetime import timedelta
from typing import Any

import aiohttp

from tsdb_poller.services.influxdb.errors import (
    QueryDecodeError,
    QueryStatusError,
    QueryTransportError,
)

QUERY_SQL_PATH = "/api/v3/query_sql"


class InfluxQueryClient:
    def __init__(
        self,
        url: str,
        database: str,
        token: str = "",
        timeout: timedelta = timedelta(seconds=5),
        ssl_context: ssl.SSLContext | None = None,
    ) -> None:
        self.url = url
        self.database = database
        self.token = token
        self.timeout = timeout
        self._ssl_context = ssl_context
        self._session: aiohttp.ClientSession | None = None

    @property
    def query_url(self) -> str:
        return f"{self.url.rstrip('/')}{QUERY_SQL_PATH}"

    def headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def connect(self) -> aiohttp.ClientSession:
        """Open the HTTP session if needed and return it."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(ssl=self._ssl_context) if self._ssl_context else None
            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=aiohttp.ClientTimeout(total=self.timeout.total_seconds()),
            )
        return self._session

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    def health_check(self) -> bool:
        return self._session is not None and not self._session.closed

    async def query(self, sql: str) -> list[dict[str, Any]]:
        """Run *sql* and return the decoded rows.

        Raises QueryTransportError, QueryStatusError or QueryDecodeError.
        """
        session = await self.connect()
        payload = {"db": self.database, "q": sql, "format": "json"}
        try:
            async with session.post(
                self.query_url, json=payload, headers=self.headers()
            ) as resp:
                raw = await resp.read()
                status = resp.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise QueryTransportError(f"failed to execute request: {exc}") from exc

        if status != 200:
            raise QueryStatusError(status, raw.decode("utf-8", errors="replace"))
        return _decode_rows(raw)


def _decode_rows(raw: bytes) -> list[dict[str, Any]]:
    try:
        body = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise QueryDecodeError(f"failed to decode response: {exc}") from exc
    if not body.strip():
        return []
    try:
        rows = json.loads(body)
    except json.JSONDecodeError as exc:
        raise QueryDecodeError(f"failed to parse response: {exc}") from exc
    if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
        raise QueryDecodeError("failed to parse response: expected a JSON array of objects")
    return rows
