"""CLI entry point for segment-proxy."""

import sys
from datetime import datetime

from rich.console import Console

from app import create_app
from core.config import CONFIG_FILE, MIRROR_HOST_ENV, apply_cli_overrides, load_config
from core.exceptions import ConfigurationError
from ui.dashboard import Dashboard
from ui.log_utils import write_cli_log

console = Console()


def main(argv: list[str] | None = None):
    """Main CLI entry point."""
    args = sys.argv[1:] if argv is None else argv

    if args and args[0] == "--config":
        console.print(f"[bold]Config:[/bold] {CONFIG_FILE}")
        return

    if args and args[0] in ("--help", "-h"):
        _print_help()
        return

    try:
        config = apply_cli_overrides(load_config(), args)
    except ConfigurationError as e:
        console.print(f"[red][ERROR][/red] {e}")
        sys.exit(1)

    if not config.mirror.url:
        console.print(f"[yellow][WARNING][/yellow]: {MIRROR_HOST_ENV} ENV is not set!")
        write_cli_log("WARNING", f"{MIRROR_HOST_ENV} ENV is not set!")

    dashboard = Dashboard(config, live=not config.proxy.debug)

    try:
        app = create_app(config, dashboard)
    except ConfigurationError as e:
        console.print(f"[red][ERROR][/red] {e}")
        sys.exit(1)

    import uvicorn

    uvicorn_config = uvicorn.Config(
        app,
        host=config.proxy.host,
        port=config.proxy.port,
        log_level="info" if config.proxy.debug else "warning",
        # Access lines come from the app middleware in debug mode
        access_log=False,
        timeout_keep_alive=config.limits.keep_alive_timeout,
    )
    server = uvicorn.Server(uvicorn_config)

    if config.proxy.debug:
        console.print(f"serving proxy at port {config.proxy.port}")

    dashboard.start()
    start_time = datetime.now()
    write_cli_log("STARTUP", "Proxy started", port=config.proxy.port, mirror=config.mirror.url or "-")
    try:
        server.run()
    finally:
        duration = datetime.now() - start_time
        write_cli_log("SHUTDOWN", "Proxy stopped", duration=str(duration))
        dashboard.stop()


def _print_help():
    """Print help message."""
    help_text = f"""
[bold cyan]Segment Proxy[/bold cyan]

Routes /v1/projects and /analytics.js/v1 to the Segment CDN, everything else
to the Segment Tracking API. Set {MIRROR_HOST_ENV} to mirror every request.

[bold]Usage:[/bold]
    segment-proxy                  Start with live dashboard
    segment-proxy --port 9090      Bind to another port (default 8080)
    segment-proxy --debug          Log every request instead of the dashboard
    segment-proxy --config         Show config location
    segment-proxy --help           Show this help
"""
    console.print(help_text)


if __name__ == "__main__":
    main()
