"""Shared request data types."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class InboundRequest:
    """Transport-neutral view of a caller's request."""

    method: str
    path: str
    query: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""


@dataclass(frozen=True)
class ForwardRequest:
    """Prepared data for an upstream request."""

    method: str
    route_name: str
    route_prefix: str
    upstream_base_url: str
    path: str
    url: str
    supplied_credential: str
    headers: dict[str, str]
    body: bytes | None = None
