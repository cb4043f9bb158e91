"""Header construction for upstream requests."""

from collections.abc import Mapping

from core.config import RouteSettings

# host is derived from the upstream URL; content-length is recomputed by httpx
HOP_BY_HOP_HEADERS = frozenset(
    {
        "host",
        "connection",
        "content-length",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "trailers",
        "transfer-encoding",
        "upgrade",
    }
)


class HeaderBuilder:
    """Build upstream headers from the caller's headers."""

    def build_forward_headers(
        self,
        headers: Mapping[str, str],
        route: RouteSettings,
    ) -> dict[str, str]:
        """Copy caller headers minus hop-by-hop and credential headers."""
        dropped = HOP_BY_HOP_HEADERS.union(route.credential_headers)
        upstream: dict[str, str] = {}
        carrier_value = None
        for key, value in headers.items():
            key_lower = key.lower()
            if key_lower in dropped:
                continue
            if route.carrier_header and key_lower == route.carrier_header:
                carrier_value = str(value)
                continue
            upstream[key_lower] = str(value)

        if carrier_value is not None and "authorization" not in upstream:
            upstream["authorization"] = carrier_value
        return upstream
