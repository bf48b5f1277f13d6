"""Root-level pytest fixtures: an in-process fake InfluxDB 3 query endpoint."""

from __future__ import annotations

from typing import Any

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

QUERY_SQL_PATH = "/api/v3/query_sql"


class FakeInflux:
    """Answers ``POST /api/v3/query_sql`` with canned rows and records requests.

    Set ``status``/``body`` to simulate failures; ``body`` replaces the JSON
    rows verbatim (``bytes`` are sent undecoded).
    """

    def __init__(self) -> None:
        self.url = ""
        self.rows: list[dict[str, Any]] = []
        self.status = 200
        self.body: str | bytes | None = None
        self.requests: list[dict[str, Any]] = []

    async def handle(self, request: web.Request) -> web.Response:
        self.requests.append(
            {"headers": dict(request.headers), "json": await request.json()}
        )
        if self.body is not None:
            if isinstance(self.body, bytes):
                return web.Response(
                    status=self.status, body=self.body, content_type="application/json", charset="utf-8"
                )
            return web.Response(status=self.status, text=self.body)
        return web.json_response(self.rows, status=self.status)


@pytest.fixture
async def fake_influx():
    fake = FakeInflux()
    app = web.Application()
    app.router.add_post(QUERY_SQL_PATH, fake.handle)
    server = TestServer(app)
    await server.start_server()
    fake.url = str(server.make_url("/")).rstrip("/")
    yield fake
    await server.close()
