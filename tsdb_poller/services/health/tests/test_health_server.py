"""Tests for HealthCheckServer over real sockets."""

from __future__ import annotations

import asyncio
import json

import pytest

from tsdb_poller.services.health.health_server import HealthCheckServer


@pytest.fixture
async def health():
    server = HealthCheckServer(port=0, host="127.0.0.1")
    await server.start()
    yield server
    await server.stop()


async def _request(server: HealthCheckServer, path: str, method: str = "GET") -> tuple[int, dict]:
    assert server.bound_port is not None
    reader, writer = await asyncio.open_connection("127.0.0.1", server.bound_port)
    writer.write(f"{method} {path} HTTP/1.1\r\nHost: probe\r\n\r\n".encode())
    await writer.drain()
    raw = await asyncio.wait_for(reader.read(), timeout=5.0)
    writer.close()
    await writer.wait_closed()

    head, _, payload = raw.decode().partition("\r\n\r\n")
    return int(head.split()[1]), json.loads(payload)


async def test_live(health: HealthCheckServer) -> None:
    assert await _request(health, "/health/live") == (200, {"status": "ok"})


async def test_ready_includes_tracked_metrics_stat(health: HealthCheckServer) -> None:
    tracked = [0]
    health.register_check("influxdb", lambda: True)
    health.register_stat("tracked_metrics", lambda: tracked[0])
    tracked[0] = 12

    status, body = await _request(health, "/health/ready")

    assert status == 200
    assert body == {
        "status": "ok",
        "checks": {"influxdb": "ok"},
        "stats": {"tracked_metrics": 12},
    }


@pytest.mark.parametrize(
    "check, expected",
    [(lambda: False, "fail"), (lambda: 1 / 0, "error: division by zero")],
)
async def test_ready_reports_failing_check(health: HealthCheckServer, check, expected) -> None:
    health.register_check("influxdb", check)
    status, body = await _request(health, "/health/ready")
    assert status == 503
    assert body["status"] == "not ready"
    assert body["checks"]["influxdb"] == expected


async def test_ready_after_shutdown_begins(health: HealthCheckServer) -> None:
    health.mark_not_ready()
    status, body = await _request(health, "/health/ready")
    assert status == 503
    assert body["reason"] == "shutting down"


async def test_startup_flips_once_started(health: HealthCheckServer) -> None:
    assert (await _request(health, "/health/startup"))[0] == 503
    health.mark_started()
    assert await _request(health, "/health/startup") == (200, {"status": "ok"})


@pytest.mark.parametrize(
    "method, path, status",
    [("GET", "/metrics", 404), ("POST", "/health/live", 405)],
)
async def test_rejected_requests(health: HealthCheckServer, method: str, path: str, status: int) -> None:
    assert (await _request(health, path, method))[0] == status


async def test_bound_port_is_none_until_started() -> None:
    assert HealthCheckServer(port=0).bound_port is None
