"""Probe endpoints for the poller worker, served with plain asyncio streams.

    GET /health/live     always 200 while the process runs
    GET /health/ready    200 when every registered check passes, else 503;
                         the body also carries registered stats such as
                         ``tracked_metrics``
    GET /health/startup  200 once the module has been started
"""

from __future__ import annotations

import asyncio
import json
from http import HTTPStatus
from typing import Any, Callable

Body = dict[str, Any]

_READ_TIMEOUT = 5.0


class HealthCheckServer:
    def __init__(self, port: int = 8080, host: str = "0.0.0.0") -> None:
        self._port = port
        self._host = host
        self._checks: dict[str, Callable[[], bool]] = {}
        self._stats: dict[str, Callable[[], int | float]] = {}
        self._started = False
        self._ready = True
        self._server: asyncio.Server | None = None
        self._routes: dict[str, Callable[[], tuple[int, Body]]] = {
            "/health/live": lambda: (200, {"status": "ok"}),
            "/health/ready": self._readiness,
            "/health/startup": self._startup,
        }

    @property
    def bound_port(self) -> int | None:
        if self._server is None or not self._server.sockets:
            return None
        return self._server.sockets[0].getsockname()[1]

    def register_check(self, name: str, check: Callable[[], bool]) -> None:
        self._checks[name] = check

    def register_stat(self, name: str, stat: Callable[[], int | float]) -> None:
        self._stats[name] = stat

    def mark_started(self) -> None:
        self._started = True

    def mark_not_ready(self) -> None:
        """Fail readiness from now on; used once shutdown begins."""
        self._ready = False

    async def start(self) -> None:
        self._server = await asyncio.start_server(self._serve, self._host, self._port)

    async def stop(self) -> None:
        if self._server is None:
            return
        self._server.close()
        await self._server.wait_closed()
        self._server = None

    # ── Probes ────────────────────────────────────────────────────────────

    def _readiness(self) -> tuple[int, Body]:
        if not self._ready:
            return 503, {"status": "not ready", "reason": "shutting down"}

        checks = {name: _run_check(fn) for name, fn in self._checks.items()}
        healthy = all(result == "ok" for result in checks.values())
        body: Body = {"status": "ok" if healthy else "not ready", "checks": checks}
        if self._stats:
            body["stats"] = {name: fn() for name, fn in self._stats.items()}
        return (200 if healthy else 503), body

    def _startup(self) -> tuple[int, Body]:
        if self._started:
            return 200, {"status": "ok"}
        return 503, {"status": "not started"}

    # ── HTTP ──────────────────────────────────────────────────────────────

    async def _serve(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        try:
            request = await self._read_request(reader)
            if request is not None:
                writer.write(_encode(*self._dispatch(*request)))
                await writer.drain()
        except (asyncio.TimeoutError, ConnectionError):
            pass
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except ConnectionError:
                pass

    async def _read_request(self, reader: asyncio.StreamReader) -> tuple[str, str] | None:
        line = await asyncio.wait_for(reader.readline(), timeout=_READ_TIMEOUT)
        if not line:
            return None
        # drain headers; the request body is never used
        while await asyncio.wait_for(reader.readline(), timeout=_READ_TIMEOUT) not in (b"\r\n", b"\n", b""):
            pass
        parts = line.decode("utf-8", errors="replace").split()
        if len(parts) < 2:
            return "", ""
        return parts[0], parts[1]

    def _dispatch(self, method: str, path: str) -> tuple[int, Body]:
        if not method:
            return 400, {"error": "bad request"}
        if method != "GET":
            return 405, {"error": "method not allowed"}
        route = self._routes.get(path)
        if route is None:
            return 404, {"error": "not found"}
        return route()


def _run_check(check: Callable[[], bool]) -> str:
    try:
        return "ok" if check() else "fail"
    except Exception as exc:
        return f"error: {exc}"


def _encode(status: int, body: Body) -> bytes:
    payload = json.dumps(body).encode("utf-8")
    head = (
        f"HTTP/1.1 {status} {HTTPStatus(status).phrase}\r\n"
        "Content-Type: application/json\r\n"
        f"Content-Length: {len(payload)}\r\n"
        "Connection: close\r\n\r\n"
    )
    return head.encode("ascii") + payload
