# Tests import modules from the repository root (`core.*`, `services.*`, ...).
import os
import sys

import httpx
import pytest

ROOT = os.path.dirname(__file__)
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from core.config import RouteSettings  # noqa: E402


class RecordingLogger:
    """RequestLogger that keeps every event in memory."""

    def __init__(self):
        self.forwards = []
        self.responses = []
        self.errors = []

    def log_forward(self, forward):
        self.forwards.append(forward)

    def log_response(self, forward, status, *, elapsed_ms):
        self.responses.append((forward, status))

    def log_error(self, route, status, message):
        self.errors.append((route, status, message))


class MockUpstream:
    """Mock upstream recording every request it receives."""

    def __init__(self, handler=None):
        self.requests: list[httpx.Request] = []
        self._handler = handler or (lambda request: httpx.Response(200, json={"ok": True}))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        return self._handler(request)

    def async_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def logger():
    return RecordingLogger()


@pytest.fixture
def make_route():
    def _make(**overrides):
        values = {
            "name": "cd",
            "prefix": "/cd",
            "upstream_base_url": "https://papi.example.test",
            "credential_header": "x-shared-secret",
            "expected_credential": "correct-value",
            "error_code": "INVALID_SHARED_SECRET",
            "carrier_header": "x-cd-authorization",
            "credential_env": "SHARED_SECRET",
            "base_url_env": "CONSUMERDIRECT_BASE_URL",
        }
        values.update(overrides)
        return RouteSettings(**values)

    return _make
