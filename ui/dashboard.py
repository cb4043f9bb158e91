"""Real-time CLI dashboard for relay monitoring."""

from datetime import datetime
from threading import Lock

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import Config
from core.request_types import ForwardRequest
from ui.log_utils import mask_url, write_cli_log

console = Console()


class RelayInfo:
    """Info about a single relayed request."""

    def __init__(
        self,
        route: str,
        method: str,
        path: str,
        status: int,
        elapsed_ms: float,
        timestamp: datetime,
    ):
        self.route = route
        self.method = method
        self.path = path[:60] + "..." if len(path) > 60 else path
        self.status = status
        self.elapsed_ms = elapsed_ms
        self.timestamp = timestamp


class Dashboard:
    """Real-time dashboard showing recent relays per route."""

    def __init__(self, config: Config):
        self.config = config
        self._lock = Lock()
        self._recent: list[RelayInfo] = []
        self._max_recent = 10
        self._request_count = {route.name: 0 for route in config.routes}
        self._errors: list[str] = []
        self._live: Live | None = None

    def start(self) -> "Dashboard":
        """Start the live dashboard."""
        self._live = Live(
            self._build_layout(),
            console=console,
            refresh_per_second=4,
            screen=False,
        )
        self._live.start()
        return self

    def stop(self) -> None:
        """Stop the live dashboard."""
        if self._live:
            self._live.stop()

    def log_forward(self, forward: ForwardRequest) -> None:
        """Count a request about to go upstream."""
        with self._lock:
            self._request_count[forward.route_name] = (
                self._request_count.get(forward.route_name, 0) + 1
            )
            self._refresh()
            write_cli_log("FORWARD", f"{forward.method} {forward.url}", route=forward.route_name)

    def log_response(
        self,
        forward: ForwardRequest,
        status: int,
        *,
        elapsed_ms: float,
    ) -> None:
        """Record the upstream's answer."""
        with self._lock:
            info = RelayInfo(
                route=forward.route_name,
                method=forward.method,
                path=forward.path,
                status=status,
                elapsed_ms=elapsed_ms,
                timestamp=datetime.now(),
            )
            self._recent.insert(0, info)
            self._recent = self._recent[: self._max_recent]
            self._refresh()
            write_cli_log(
                "RESPONSE",
                f"{forward.method} {forward.url}",
                route=forward.route_name,
                status=status,
                elapsed_ms=f"{elapsed_ms:.0f}",
            )

    def log_error(self, route: str, status: int, message: str) -> None:
        """Log an error."""
        with self._lock:
            truncated = message[:50] + "..." if len(message) > 50 else message
            self._errors.insert(0, f"{route} {status}: {truncated}")
            self._errors = self._errors[:3]
            self._refresh()
            write_cli_log("ERROR", message[:200], route=route, status=status)

    def _refresh(self) -> None:
        """Refresh the display."""
        if self._live:
            self._live.update(self._build_layout())

    def _build_layout(self) -> Layout:
        """Build the dashboard layout."""
        layout = Layout()

        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="body"),
            Layout(name="footer", size=5),
        )

        layout["header"].update(self._build_header())
        layout["body"].update(self._build_recent_panel())
        layout["footer"].update(self._build_footer())

        return layout

    def _build_header(self) -> Panel:
        """Build header with stats."""
        stats = Text()
        stats.append("Egress Relay", style="bold cyan")
        for name, count in self._request_count.items():
            stats.append("  |  ")
            stats.append(f"{name}: {count}", style="blue")
        stats.append("  |  ")
        stats.append(f"Port: {self.config.proxy.port}", style="dim")
        stats.append("  |  ")
        if self.config.egress.tunnel_url:
            stats.append(f"via {mask_url(self.config.egress.tunnel_url)}", style="green")
        else:
            stats.append("direct", style="yellow")

        return Panel(stats, style="cyan")

    def _build_recent_panel(self) -> Panel:
        """Build the recent relays panel."""
        if self._recent:
            table = Table(show_header=True, header_style="bold", expand=True, box=None)
            table.add_column("Time", style="dim", width=8)
            table.add_column("Route", width=8)
            table.add_column("Method", width=7)
            table.add_column("Path", ratio=2)
            table.add_column("Status", width=6)
            table.add_column("ms", width=7, justify="right")

            for info in self._recent:
                style = "red" if info.status >= 400 else "green"
                table.add_row(
                    info.timestamp.strftime("%H:%M:%S"),
                    info.route,
                    info.method,
                    info.path,
                    Text(str(info.status), style=style),
                    f"{info.elapsed_ms:.0f}",
                )

            content = table
        else:
            content = Text("Waiting for requests...", style="dim")

        return Panel(content, title="[blue]Recent relays[/blue]", border_style="blue")

    def _build_footer(self) -> Panel:
        """Build footer with errors and help."""
        if self._errors:
            error_text = Text()
            for err in self._errors:
                error_text.append("! ", style="red bold")
                error_text.append(err + "\n", style="red")
            content = error_text
        else:
            prefixes = ", ".join(route.prefix for route in self.config.routes)
            content = Text(
                f"Listening on :{self.config.proxy.port} for {prefixes}",
                style="dim",
            )

        return Panel(content, title="[dim]Status[/dim]", border_style="dim")
