"""Tests for the query client SSL context."""

from __future__ import annotations

import ssl

import pytest

from tsdb_poller.services.influxdb.tls import build_ssl_context


def test_nothing_configured_returns_none() -> None:
    assert build_ssl_context() is None


def test_insecure_skip_verify_disables_verification() -> None:
    ctx = build_ssl_context(insecure_skip_verify=True)
    assert ctx is not None
    assert ctx.verify_mode == ssl.CERT_NONE
    assert ctx.check_hostname is False


def test_missing_ca_file_raises(tmp_path) -> None:
    with pytest.raises(OSError):
        build_ssl_context(tls_ca=str(tmp_path / "missing.pem"))
