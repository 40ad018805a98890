"""Tests for the HTTP probe, using httpx.MockTransport except where noted."""

from __future__ import annotations

import socket
from ipaddress import IPv4Address

import httpx
import pytest

from probes import HttpProbe, get_probe
from probes.http import bound_transport
from service import HttpTarget

SOURCE = IPv4Address("10.0.0.42")


def _probe(handler, seen_sources=None):
    def _factory(source_address):
        if seen_sources is not None:
            seen_sources.append(source_address)
        return httpx.MockTransport(handler)

    return HttpProbe(timeout=5, transport_factory=_factory)


class _FailingStream(httpx.AsyncByteStream):
    async def __aiter__(self):
        raise httpx.ReadError("connection reset while reading body")
        yield b""  # pragma: no cover


class TestHttpProbe:
    @pytest.mark.asyncio
    async def test_200_is_up(self):
        requests = []
        sources = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, text="Welcome")

        status = await _probe(handler, sources).check(HttpTarget("10.1.1.1", path="/shop"), SOURCE)

        assert status.up is True
        assert status.failure_reason == ""
        assert str(requests[0].url) == "http://10.1.1.1/shop"
        assert requests[0].method == "GET"
        assert sources == [SOURCE]

    @pytest.mark.asyncio
    async def test_500_is_down(self):
        status = await _probe(lambda r: httpx.Response(500)).check(HttpTarget("10.1.1.1"), SOURCE)
        assert status.up is False
        assert "500" in status.failure_reason

    @pytest.mark.asyncio
    async def test_404_is_down(self):
        status = await _probe(lambda r: httpx.Response(404)).check(HttpTarget("10.1.1.1"), SOURCE)
        assert status.up is False
        assert "404" in status.failure_reason

    @pytest.mark.asyncio
    async def test_transport_error_is_down(self):
        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)

        status = await _probe(handler).check(HttpTarget("10.1.1.1"), SOURCE)
        assert status.up is False
        assert "ConnectError" in status.failure_reason
        assert "Connection refused" in status.failure_reason

    @pytest.mark.asyncio
    async def test_body_read_error_is_still_up(self):
        status = await _probe(lambda r: httpx.Response(200, stream=_FailingStream())).check(
            HttpTarget("10.1.1.1"), SOURCE
        )
        assert status.up is True
        assert "Error reading body" in status.failure_reason

    @pytest.mark.asyncio
    async def test_marker_not_checked_by_default(self):
        status = await _probe(lambda r: httpx.Response(200, text="maintenance page")).check(
            HttpTarget("10.1.1.1", response="Welcome"), SOURCE
        )
        assert status.up is True
        assert status.failure_reason == ""

    @pytest.mark.asyncio
    async def test_marker_checked_when_enabled(self):
        probe = _probe(lambda r: httpx.Response(200, text="maintenance page"))
        status = await probe.check(HttpTarget("10.1.1.1", response="Welcome", verify_response=True), SOURCE)
        assert status.up is True
        assert status.failure_reason == "Response did not contain expected marker"

        probe = _probe(lambda r: httpx.Response(200, text="Welcome to the shop"))
        status = await probe.check(HttpTarget("10.1.1.1", response="Welcome", verify_response=True), SOURCE)
        assert status.failure_reason == ""

    @pytest.mark.asyncio
    async def test_unexpected_error_is_absorbed(self):
        def handler(request):
            raise RuntimeError("boom")

        status = await _probe(handler).check(HttpTarget("10.1.1.1"), SOURCE)
        assert status.up is False
        assert "boom" in status.failure_reason

    @pytest.mark.asyncio
    async def test_refused_connection_on_loopback(self):
        # a real socket: bind a port, close it, then connect from 127.0.0.1
        with socket.socket() as sock:
            sock.bind(("127.0.0.1", 0))
            port = sock.getsockname()[1]

        probe = HttpProbe(timeout=5)
        status = await probe.check(HttpTarget("127.0.0.1", port=port), IPv4Address("127.0.0.1"))
        assert status.up is False
        assert "ConnectError" in status.failure_reason


def test_url():
    assert HttpProbe.url_for(HttpTarget("10.1.1.1", path="/shop")) == "http://10.1.1.1/shop"
    assert HttpProbe.url_for(HttpTarget("10.1.1.1", port=8000, path="/login")) == "http://10.1.1.1:8000/login"


def test_bound_transport():
    assert isinstance(bound_transport(SOURCE), httpx.AsyncHTTPTransport)


def test_get_probe():
    assert isinstance(get_probe("http", timeout=3), HttpProbe)
    for planned in ("dns", "smtp", "pop3"):
        with pytest.raises(NotImplementedError):
            get_probe(planned)
    with pytest.raises(ValueError):
        get_probe("gopher")
