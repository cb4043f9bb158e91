"""Shared protocol definitions."""

from typing import Protocol

from core.request_types import ForwardRequest


class RequestLogger(Protocol):
    """Protocol for request logging (Dashboard or console)."""

    def log_forward(self, forward: ForwardRequest) -> None: ...
    def log_response(
        self,
        forward: ForwardRequest,
        status: int,
        *,
        elapsed_ms: float,
    ) -> None: ...
    def log_error(self, route: str, status: int, message: str) -> None: ...
