"""FastAPI route handlers."""

from collections.abc import Iterable

from fastapi import Request, Response
from fastapi.responses import JSONResponse

from core.config import RouteSettings
from core.exceptions import ProxyError, RequestTooLarge
from core.request_types import InboundRequest
from ui.log_utils import write_incoming_log


def request_path(request: Request) -> str:
    """Path as the caller sent it, percent-encoding intact."""
    raw_path = request.scope.get("raw_path")
    if raw_path:
        return raw_path.split(b"?", 1)[0].decode("latin-1")
    return request.url.path


def merge_headers(items: Iterable[tuple[str, str]]) -> dict[str, str]:
    """Collapse repeated header names into one comma-joined value."""
    merged: dict[str, str] = {}
    for key, value in items:
        key = key.lower()
        if key in merged:
            separator = "; " if key == "cookie" else ", "
            merged[key] = merged[key] + separator + value
        else:
            merged[key] = value
    return merged


async def _read_inbound(request: Request, max_body_size: int) -> InboundRequest:
    """Snapshot the Starlette request, keeping the raw (still-encoded) path."""
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > max_body_size:
        raise RequestTooLarge(f"Request body exceeds {max_body_size} bytes")

    body = await request.body()
    if len(body) > max_body_size:
        raise RequestTooLarge(f"Request body exceeds {max_body_size} bytes")

    return InboundRequest(
        method=request.method,
        path=request_path(request),
        query=request.url.query,
        headers=merge_headers(request.headers.items()),
        body=body,
    )


async def handle_forward(request: Request, route: RouteSettings) -> Response:
    """Relay a request matched to a route."""
    config = request.app.state.config
    inbound = await _read_inbound(request, config.proxy.max_body_size)
    if config.proxy.debug:
        write_incoming_log(
            inbound.method,
            inbound.path,
            inbound.headers,
            inbound.body.decode("utf-8", errors="replace"),
            secret_headers=route.credential_headers,
        )

    forwarder = request.app.state.forwarder
    return await forwarder.handle(route, inbound)


async def handle_not_found(request: Request) -> Response:
    """Answer paths that belong to no route."""
    return JSONResponse(
        {"ok": False, "error": "NOT_FOUND", "path": request.url.path},
        status_code=404,
    )


async def proxy_error_response(_request: Request, exc: ProxyError) -> Response:
    """Turn a ProxyError into a structured JSON response."""
    return JSONResponse(exc.to_payload(), status_code=exc.status_code)
