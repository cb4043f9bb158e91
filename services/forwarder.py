"""Authenticated reverse forwarder."""

import time

from fastapi import Response

from core import credentials
from core.config import RouteSettings
from core.exceptions import ConfigurationError, ProxyError
from core.headers import HeaderBuilder
from core.protocols import RequestLogger
from core.request_types import ForwardRequest, InboundRequest
from core.routes import build_upstream_url, strip_prefix
from core.transform import RequestTransformer
from services.upstream import UpstreamClient


class Forwarder:
    """Authenticate, translate and relay requests for one route table."""

    def __init__(
        self,
        logger: RequestLogger,
        upstream: UpstreamClient,
        header_builder: HeaderBuilder | None = None,
        transformer: RequestTransformer | None = None,
    ) -> None:
        self._logger = logger
        self._upstream = upstream
        self._headers = header_builder or HeaderBuilder()
        self._transformer = transformer or RequestTransformer()

    def prepare(self, route: RouteSettings, request: InboundRequest) -> ForwardRequest:
        """Validate the request and build its upstream counterpart.

        Raises ConfigurationError or AuthenticationError before anything is
        sent upstream.
        """
        supplied = credentials.verify(route, request.headers)

        if not route.upstream_base_url:
            raise ConfigurationError(
                f"Upstream base URL for route '{route.name}' is not configured",
                code="MISSING_UPSTREAM_BASE_URL",
                setting=route.base_url_env or f"{route.name}.upstream_base_url",
            )

        method = request.method.upper()
        remainder = strip_prefix(route, request.path)
        if request.query:
            remainder += "?" + request.query

        headers = self._headers.build_forward_headers(request.headers, route)
        body, content_type = self._transformer.encode_body(
            method, headers.get("content-type"), request.body
        )
        if content_type:
            headers["content-type"] = content_type

        return ForwardRequest(
            method=method,
            route_name=route.name,
            route_prefix=route.prefix,
            upstream_base_url=route.upstream_base_url,
            path=remainder,
            url=build_upstream_url(route, request.path, request.query),
            supplied_credential=supplied,
            headers=headers,
            body=body,
        )

    async def handle(self, route: RouteSettings, request: InboundRequest) -> Response:
        """Forward one request and relay the upstream response verbatim."""
        try:
            forward = self.prepare(route, request)
        except ProxyError as e:
            self._logger.log_error(route.name, e.status_code, e.code)
            raise

        self._logger.log_forward(forward)
        started = time.perf_counter()
        try:
            upstream = await self._upstream.send(forward)
        except ProxyError as e:
            self._logger.log_error(route.name, e.status_code, f"{e.message} ({forward.url})")
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        self._logger.log_response(forward, upstream.status_code, elapsed_ms=elapsed_ms)
        if upstream.status_code >= 400:
            self._logger.log_error(
                route.name, upstream.status_code, f"Upstream returned {upstream.status_code}"
            )

        headers = {}
        content_type = upstream.headers.get("content-type") or route.default_content_type
        if content_type:
            headers["content-type"] = content_type
        return Response(
            content=upstream.content,
            status_code=upstream.status_code,
            headers=headers,
        )
