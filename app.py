"""FastAPI application factory."""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request

from api.cors import RelayCORSMiddleware
from api.handlers import handle_forward, handle_not_found, proxy_error_response, request_path
from core.config import Config
from core.exceptions import ProxyError
from core.protocols import RequestLogger
from core.routes import RouteTable
from services.forwarder import Forwarder
from services.upstream import UpstreamClient, build_http_client

METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def create_app(
    config: Config,
    logger: RequestLogger,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Pass ``http_client`` to supply the outbound client (tests use one backed
    by ``httpx.MockTransport``); it is then left open on shutdown.
    """
    route_table = RouteTable(config.routes)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = http_client or build_http_client(config)
        app.state.forwarder = Forwarder(
            logger=logger, upstream=UpstreamClient(client, config.proxy.timeout)
        )
        try:
            yield
        finally:
            if http_client is None:
                await client.aclose()

    app = FastAPI(
        title="Egress Relay",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.config = config
    app.state.route_table = route_table

    app.add_middleware(
        RelayCORSMiddleware,
        allow_origins=config.proxy.allowed_origins or ["*"],
        allow_methods=METHODS,
        allow_headers=["*"],
    )
    app.add_exception_handler(ProxyError, proxy_error_response)

    @app.api_route("/{path:path}", methods=METHODS)
    async def relay(request: Request, path: str):
        route = route_table.match(request_path(request))
        if route is None:
            return await handle_not_found(request)
        return await handle_forward(request, route)

    return app
