"""CORS handling for browser callers."""

from starlette.datastructures import Headers
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import Response


class RelayCORSMiddleware(CORSMiddleware):
    """CORSMiddleware that answers rejected preflights with a bare 204.

    Disallowed origins simply get no Access-Control-* headers.
    """

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        if response.status_code == 400:
            return Response(status_code=204)
        return response
