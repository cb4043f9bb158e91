import httpx
import pytest

from core.config import Config
from core.exceptions import UpstreamTransportError
from services.egress import IP_ECHO_URL, fetch_egress_ip


def test_reports_ip_direct():
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, json={"ip": "54.173.229.200"})

    report = fetch_egress_ip(Config(), transport=httpx.MockTransport(handler))
    assert report.ip == "54.173.229.200"
    assert report.via == "direct"
    assert seen == [IP_ECHO_URL]


def test_error_status_raises_transport_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(503))
    with pytest.raises(UpstreamTransportError) as exc:
        fetch_egress_ip(Config(), transport=transport)
    assert exc.value.url == IP_ECHO_URL
    assert "503" in exc.value.message


def test_unexpected_body_raises_transport_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="nope"))
    with pytest.raises(UpstreamTransportError):
        fetch_egress_ip(Config(), transport=transport)


def test_connect_error_raises_transport_error():
    def refuse(request):
        raise httpx.ConnectError("Connection refused", request=request)

    with pytest.raises(UpstreamTransportError) as exc:
        fetch_egress_ip(Config(), transport=httpx.MockTransport(refuse))
    assert "Connection refused" in exc.value.message
