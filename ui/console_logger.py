"""Plain console logger for headless deployments."""

from datetime import datetime

from rich.console import Console

from core.request_types import ForwardRequest
from ui.log_utils import write_cli_log


class ConsoleLogger:
    """Print one line per relay event instead of a live dashboard."""

    def __init__(self, console: Console | None = None, *, write_file: bool = True):
        self._console = console or Console()
        self._write_file = write_file

    def log_forward(self, forward: ForwardRequest) -> None:
        self._print("cyan", "FORWARD", f"{forward.route_name} {forward.method} {forward.url}")
        if self._write_file:
            write_cli_log("FORWARD", f"{forward.method} {forward.url}", route=forward.route_name)

    def log_response(
        self,
        forward: ForwardRequest,
        status: int,
        *,
        elapsed_ms: float,
    ) -> None:
        style = "red" if status >= 400 else "green"
        self._print(
            style,
            "RESPONSE",
            f"{forward.route_name} {forward.method} {forward.path} -> {status} ({elapsed_ms:.0f}ms)",
        )
        if self._write_file:
            write_cli_log(
                "RESPONSE",
                f"{forward.method} {forward.url}",
                route=forward.route_name,
                status=status,
                elapsed_ms=f"{elapsed_ms:.0f}",
            )

    def log_error(self, route: str, status: int, message: str) -> None:
        self._print("red", "ERROR", f"{route} {status}: {message[:200]}")
        if self._write_file:
            write_cli_log("ERROR", message[:200], route=route, status=status)

    def _print(self, style: str, level: str, message: str) -> None:
        timestamp = datetime.now().strftime("%H:%M:%S")
        # markup=False so bracketed text from upstream bodies prints literally
        self._console.print(f"[dim]{timestamp}[/dim] [{style}]{level}[/{style}]", end=" ")
        self._console.print(message, markup=False, highlight=False)
