import asyncio
import time

import httpx
import pytest

from core.config import Config, EgressSettings, ProxySettings
from core.exceptions import UpstreamTimeoutError, UpstreamTransportError
from core.request_types import ForwardRequest
from services.upstream import UpstreamClient, build_http_client


def make_forward(url: str) -> ForwardRequest:
    return ForwardRequest(
        method="GET",
        route_name="cd",
        route_prefix="/cd",
        upstream_base_url=url,
        path="/v1/x",
        url=url + "/v1/x",
        supplied_credential="correct-value",
        headers={},
    )


@pytest.mark.asyncio
async def test_client_applies_uniform_timeout():
    client = build_http_client(Config(proxy=ProxySettings(timeout=12.5)))
    try:
        assert client.timeout == httpx.Timeout(12.5)
        assert client.follow_redirects is False
    finally:
        await client.aclose()


@pytest.mark.asyncio
async def test_client_routes_through_tunnel_when_configured():
    config = Config(egress=EgressSettings(tunnel_url="http://user:pw@fixie.test:80"))
    client = build_http_client(config)
    try:
        assert any(transport is not None for transport in client._mounts.values())
    finally:
        await client.aclose()


@pytest.mark.asyncio
async def test_direct_client_has_no_proxy_mounts():
    client = build_http_client(Config())
    try:
        assert all(transport is None for transport in client._mounts.values())
    finally:
        await client.aclose()


@pytest.mark.asyncio
async def test_refused_connection_is_reported_quickly():
    config = Config(proxy=ProxySettings(timeout=5.0))
    client = build_http_client(config)
    upstream = UpstreamClient(client)
    started = time.monotonic()
    try:
        with pytest.raises(UpstreamTransportError) as exc:
            await upstream.send(make_forward("http://127.0.0.1:1"))
    finally:
        await client.aclose()

    assert time.monotonic() - started < 6.0
    assert exc.value.url == "http://127.0.0.1:1/v1/x"
    assert exc.value.method == "GET"


@pytest.mark.asyncio
async def test_slow_body_is_cut_off_at_total_timeout():
    async def drip(reader, writer):
        await reader.readuntil(b"\r\n\r\n")
        writer.write(b"HTTP/1.1 200 OK\r\nContent-Length: 20\r\n\r\n")
        try:
            for _ in range(20):
                writer.write(b"x")
                await writer.drain()
                await asyncio.sleep(0.3)
        except ConnectionError:
            pass
        finally:
            writer.close()

    server = await asyncio.start_server(drip, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    config = Config(proxy=ProxySettings(timeout=1.0))
    client = build_http_client(config)
    upstream = UpstreamClient(client, config.proxy.timeout)
    started = time.monotonic()
    try:
        with pytest.raises(UpstreamTimeoutError) as exc:
            await upstream.send(make_forward(f"http://127.0.0.1:{port}"))
    finally:
        await client.aclose()
        server.close()

    assert time.monotonic() - started < 2.5
    assert exc.value.status_code == 502
    assert exc.value.url == f"http://127.0.0.1:{port}/v1/x"
