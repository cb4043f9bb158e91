"""Custom exception hierarchy for the egress relay."""

from typing import Any


class ProxyError(Exception):
    """Base exception for all relay errors.

    Attributes:
        message: Human-readable message
        code: Stable machine-readable error code
        status_code: HTTP status returned to the caller
    """

    status_code = 500
    code = "PROXY_ERROR"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def to_payload(self) -> dict[str, Any]:
        """Structured JSON body for the caller."""
        return {"ok": False, "error": self.code, "message": self.message}


class ConfigurationError(ProxyError):
    """Raised when configuration is missing or invalid."""

    code = "CONFIGURATION_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        setting: str | None = None,
    ) -> None:
        super().__init__(message, code)
        self.setting = setting

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        if self.setting:
            payload["setting"] = self.setting
        return payload


class AuthenticationError(ProxyError):
    """Raised when the caller's credential is missing or wrong."""

    status_code = 401
    code = "UNAUTHORIZED"

    def __init__(self, code: str | None = None, route: str | None = None) -> None:
        super().__init__("Invalid credential", code)
        self.route = route

    def to_payload(self) -> dict[str, Any]:
        # Never say why the credential was rejected
        return {"ok": False, "error": self.code}


class UpstreamTransportError(ProxyError):
    """Raised when the upstream cannot be reached (DNS, connect, TLS)."""

    status_code = 502
    code = "UPSTREAM_TRANSPORT_ERROR"

    def __init__(
        self,
        message: str,
        url: str | None = None,
        method: str | None = None,
        route: str | None = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.method = method
        self.route = route

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["url"] = self.url
        payload["method"] = self.method
        return payload


class UpstreamTimeoutError(UpstreamTransportError):
    """Raised when the upstream request exceeds the configured timeout."""

    code = "UPSTREAM_TIMEOUT"


class RequestTooLarge(ProxyError):
    """Request body exceeds size limit."""

    status_code = 413
    code = "REQUEST_TOO_LARGE"
