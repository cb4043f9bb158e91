"""CLI entry point for egress-relay."""

import sys
from datetime import datetime

from rich.console import Console
from rich.table import Table

from app import create_app
from core.config import Config, load_config
from core.exceptions import ConfigurationError, UpstreamTransportError
from services.egress import fetch_egress_ip
from ui.console_logger import ConsoleLogger
from ui.dashboard import Dashboard
from ui.log_utils import mask, mask_url, write_cli_log

console = Console()


def main(argv: list[str] | None = None):
    """Main CLI entry point."""
    args = sys.argv[1:] if argv is None else argv

    if "--help" in args or "-h" in args:
        _print_help()
        return

    try:
        config = load_config()
    except ConfigurationError as e:
        console.print(f"[red][ERROR][/red] {e.message}")
        sys.exit(1)

    if "--config" in args:
        print_config(config)
        return

    if "--check" in args:
        sys.exit(check_egress(config))

    for route in config.routes:
        if not route.expected_credential:
            console.print(
                f"[yellow]Warning:[/yellow] route {route.prefix} has no credential "
                f"(set {route.credential_env or 'expected_credential'}); it will answer 500"
            )

    if "--headless" in args:
        run_server(config, ConsoleLogger(console))
    else:
        dashboard = Dashboard(config)
        dashboard.start()
        try:
            run_server(config, dashboard)
        finally:
            dashboard.stop()


def run_server(config: Config, logger) -> None:
    """Serve the relay until interrupted."""
    import uvicorn

    app = create_app(config, logger)
    uvicorn_config = uvicorn.Config(
        app,
        host=config.proxy.host,
        port=config.proxy.port,
        log_level="warning",
        timeout_keep_alive=config.proxy.keep_alive_timeout,
    )
    server = uvicorn.Server(uvicorn_config)

    start_time = datetime.now()
    write_cli_log("STARTUP", "Relay started", port=config.proxy.port)
    try:
        server.run()
    finally:
        duration = datetime.now() - start_time
        write_cli_log("SHUTDOWN", "Relay stopped", duration=str(duration))


def check_egress(config: Config) -> int:
    """Print the public IP upstreams will see. Returns an exit code."""
    try:
        report = fetch_egress_ip(config)
    except UpstreamTransportError as e:
        console.print(f"[red]Egress check failed:[/red] {e.message}")
        return 1
    via = mask_url(config.egress.tunnel_url) if report.via == "tunnel" else "direct"
    console.print(f"[green]Egress IP[/green] {report.ip} [dim](via {via})[/dim]")
    return 0


def print_config(config: Config) -> None:
    """Show the route table with secrets masked."""
    table = Table(title="Routes")
    table.add_column("Prefix")
    table.add_column("Upstream")
    table.add_column("Credential header")
    table.add_column("Secret")
    for route in config.routes:
        headers = route.credential_header
        if route.credential_alias:
            headers += f" (or {route.credential_alias})"
        secret = mask(route.expected_credential) if route.expected_credential else "[red]unset[/red]"
        table.add_row(route.prefix, route.upstream_base_url or "[red]unset[/red]", headers, secret)
    console.print(table)
    tunnel = mask_url(config.egress.tunnel_url) if config.egress.tunnel_url else "direct"
    console.print(f"[bold]Egress:[/bold] {tunnel}")
    console.print(f"[bold]Listen:[/bold] {config.proxy.host}:{config.proxy.port}")


def _print_help():
    """Print help message."""
    help_text = """
[bold cyan]Egress Relay[/bold cyan]

Forwards authenticated requests to fixed upstream APIs through a static-IP egress tunnel.

[bold]Usage:[/bold]
    egress-relay              Start with live dashboard
    egress-relay --headless   Start with plain log lines
    egress-relay --check      Show the egress IP upstreams will see
    egress-relay --config     Show the route table (secrets masked)
    egress-relay --help       Show this help

[bold]Environment:[/bold]
    PORT, HOST, UPSTREAM_TIMEOUT, MAX_BODY_SIZE, ALLOWED_ORIGINS
    EGRESS_PROXY_URL (or FIXIE_URL)
    PROXY_API_KEY, SHARED_SECRET, CD_PAPI_BASE_URL, CONSUMERDIRECT_BASE_URL
    RELAY_CONFIG_FILE   JSON route table replacing the built-in one
"""
    console.print(help_text)


if __name__ == "__main__":
    main()
