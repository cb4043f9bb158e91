"""Egress IP diagnostic - shows which address upstreams see."""

from dataclasses import dataclass

import httpx

from core.config import Config
from core.exceptions import UpstreamTimeoutError, UpstreamTransportError

IP_ECHO_URL = "https://api.ipify.org?format=json"


@dataclass(frozen=True)
class EgressReport:
    via: str
    ip: str


def fetch_egress_ip(
    config: Config,
    transport: httpx.BaseTransport | None = None,
) -> EgressReport:
    """Ask an IP echo service for our public address, through the tunnel if set."""
    tunnel_url = config.egress.tunnel_url or None
    try:
        with httpx.Client(
            proxy=tunnel_url,
            timeout=config.proxy.timeout,
            trust_env=False,
            transport=transport,
        ) as client:
            response = client.get(IP_ECHO_URL)
            response.raise_for_status()
            ip = response.json()["ip"]
    except httpx.TimeoutException as e:
        raise UpstreamTimeoutError(
            f"Egress check timed out: {str(e) or type(e).__name__}",
            url=IP_ECHO_URL,
            method="GET",
        ) from e
    except httpx.HTTPStatusError as e:
        raise UpstreamTransportError(
            f"Egress check failed: {e.response.status_code}",
            url=IP_ECHO_URL,
            method="GET",
        ) from e
    except httpx.RequestError as e:
        raise UpstreamTransportError(
            f"Egress check failed: {str(e) or type(e).__name__}",
            url=IP_ECHO_URL,
            method="GET",
        ) from e
    except (ValueError, KeyError) as e:
        raise UpstreamTransportError(
            f"Unexpected egress check response: {e}",
            url=IP_ECHO_URL,
            method="GET",
        ) from e

    return EgressReport(via="tunnel" if tunnel_url else "direct", ip=str(ip))
