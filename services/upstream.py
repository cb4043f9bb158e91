"""HTTP client for upstream requests."""

import asyncio

import httpx

from core.config import Config
from core.exceptions import UpstreamTimeoutError, UpstreamTransportError
from core.request_types import ForwardRequest


def build_http_client(
    config: Config,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create the single shared outbound client, tunnelled when configured."""
    limits = httpx.Limits(max_connections=100, max_keepalive_connections=20)
    return httpx.AsyncClient(
        proxy=config.egress.tunnel_url or None,
        timeout=config.proxy.timeout,
        limits=limits,
        follow_redirects=False,
        trust_env=False,
        transport=transport,
    )


class UpstreamClient:
    """Send prepared requests upstream, one shot, no retries."""

    def __init__(self, client: httpx.AsyncClient, timeout: float | None = None) -> None:
        self._client = client
        # Total deadline; httpx timeouts only bound each phase
        self._timeout = timeout

    async def send(self, forward: ForwardRequest) -> httpx.Response:
        """Execute the forward call and return the buffered upstream response."""
        try:
            async with asyncio.timeout(self._timeout):
                return await self._client.request(
                    forward.method,
                    forward.url,
                    headers=forward.headers,
                    content=forward.body,
                )
        except (httpx.TimeoutException, TimeoutError) as e:
            raise UpstreamTimeoutError(
                f"Upstream timeout: {str(e) or type(e).__name__}",
                url=forward.url,
                method=forward.method,
                route=forward.route_name,
            ) from e
        except httpx.RequestError as e:
            raise UpstreamTransportError(
                f"Upstream connection error: {str(e) or type(e).__name__}",
                url=forward.url,
                method=forward.method,
                route=forward.route_name,
            ) from e
