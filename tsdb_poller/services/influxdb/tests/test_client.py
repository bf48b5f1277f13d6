"""Tests for InfluxQueryClient against a fake query endpoint."""

from __future__ import annotations

from datetime import timedelta

import pytest

from tsdb_poller.services.influxdb.client import InfluxQueryClient
from tsdb_poller.services.influxdb.errors import (
    QueryDecodeError,
    QueryError,
    QueryStatusError,
    QueryTransportError,
)


@pytest.fixture
async def client(fake_influx):
    c = InfluxQueryClient(url=fake_influx.url + "/", database="control", token="s3cret")
    await c.connect()
    yield c
    await c.close()


async def test_query_returns_rows(fake_influx, client: InfluxQueryClient) -> None:
    fake_influx.rows = [{"time": "2024-01-01T12:00:00Z", "host": "a", "value": 1.0}]
    rows = await client.query("SELECT * FROM opcua")
    assert rows == fake_influx.rows


async def test_request_body_and_headers(fake_influx, client: InfluxQueryClient) -> None:
    await client.query("SELECT 1")
    [request] = fake_influx.requests
    assert request["json"] == {"db": "control", "q": "SELECT 1", "format": "json"}
    assert request["headers"]["Authorization"] == "Bearer s3cret"
    assert request["headers"]["Accept"] == "application/json"
    assert request["headers"]["Content-Type"].startswith("application/json")


async def test_no_authorization_without_token(fake_influx) -> None:
    c = InfluxQueryClient(url=fake_influx.url, database="control")
    try:
        await c.query("SELECT 1")
    finally:
        await c.close()
    assert "Authorization" not in fake_influx.requests[0]["headers"]


async def test_non_200_raises_status_error(fake_influx, client: InfluxQueryClient) -> None:
    fake_influx.status = 500
    fake_influx.body = "database not found"
    with pytest.raises(QueryStatusError) as exc_info:
        await client.query("SELECT 1")
    assert exc_info.value.status == 500
    assert "database not found" in str(exc_info.value)


async def test_invalid_json_raises_decode_error(fake_influx, client: InfluxQueryClient) -> None:
    fake_influx.body = "{not json"
    with pytest.raises(QueryDecodeError):
        await client.query("SELECT 1")


async def test_non_array_json_raises_decode_error(fake_influx, client: InfluxQueryClient) -> None:
    fake_influx.body = '{"rows": []}'
    with pytest.raises(QueryDecodeError):
        await client.query("SELECT 1")


async def test_empty_body_is_no_rows(fake_influx, client: InfluxQueryClient) -> None:
    fake_influx.body = ""
    assert await client.query("SELECT 1") == []


async def test_connection_refused_raises_transport_error() -> None:
    c = InfluxQueryClient(url="http://127.0.0.1:1", database="control", timeout=timedelta(seconds=2))
    try:
        with pytest.raises(QueryTransportError):
            await c.query("SELECT 1")
    finally:
        await c.close()


async def test_errors_share_base_class() -> None:
    for cls in (QueryTransportError, QueryStatusError, QueryDecodeError):
        assert issubclass(cls, QueryError)


async def test_health_check_follows_session(fake_influx) -> None:
    c = InfluxQueryClient(url=fake_influx.url, database="control")
    assert not c.health_check()
    await c.connect()
    assert c.health_check()
    await c.close()
    assert not c.health_check()


def test_query_url_strips_trailing_slash() -> None:
    c = InfluxQueryClient(url="http://influx:8181/", database="control")
    assert c.query_url == "http://influx:8181/api/v3/query_sql"


async def test_undecodable_body_raises_decode_error(fake_influx, client: InfluxQueryClient) -> None:
    fake_influx.body = b"\xff\xfe["
    with pytest.raises(QueryDecodeError, match="failed to decode response"):
        await client.query("SELECT 1")
