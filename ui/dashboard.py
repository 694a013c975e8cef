"""Real-time CLI dashboard for proxy monitoring."""

from datetime import datetime
from pathlib import Path
from threading import Lock

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import Config
from core.router import CDN, TRACKING_API
from ui.log_utils import write_cli_log

console = Console()


class RequestInfo:
    """Info about a single routed request."""

    def __init__(self, route: str, method: str, url: str, timestamp: datetime):
        self.route = route
        self.method = method
        self.url = url[:80] + "..." if len(url) > 80 else url
        self.timestamp = timestamp


class Dashboard:
    """Dashboard showing routed traffic, mirror health and recent errors.

    With ``live`` off (debug mode) every event is printed as a line instead,
    so access log output stays readable.
    """

    def __init__(
        self,
        config: Config,
        *,
        live: bool = True,
        log_file: Path | None = None,
        output: Console | None = None,
    ):
        self.config = config
        self._use_live = live
        self._log_file = log_file
        self._console = output or console
        self._lock = Lock()
        self._recent: list[RequestInfo] = []
        self._max_recent = 8
        self._request_count = {CDN: 0, TRACKING_API: 0}
        self._attribution_count = 0
        self._mirror_count = {"ok": 0, "failed": 0}
        self._errors: list[str] = []
        self._live: Live | None = None

    @property
    def request_count(self) -> dict[str, int]:
        return dict(self._request_count)

    @property
    def mirror_count(self) -> dict[str, int]:
        return dict(self._mirror_count)

    @property
    def attribution_count(self) -> int:
        return self._attribution_count

    def start(self) -> "Dashboard":
        """Start the live dashboard."""
        if not self._use_live:
            return self
        self._live = Live(
            self._build_layout(),
            console=self._console,
            refresh_per_second=4,
            screen=False,
        )
        self._live.start()
        return self

    def stop(self) -> None:
        """Stop the live dashboard."""
        if self._live:
            self._live.stop()

    def log_route(self, route: str, method: str, url: str) -> None:
        """Log a request routed to an upstream."""
        with self._lock:
            self._request_count[route] = self._request_count.get(route, 0) + 1
            self._recent.insert(0, RequestInfo(route, method, url, datetime.now()))
            self._recent = self._recent[: self._max_recent]
            self._refresh()
            write_cli_log("ROUTE", f"{method} {url}", log_file=self._log_file, route=route)
            self._print(f"[blue]{route}[/blue] {method} {escape(url)}")

    def log_attribution(self, request_uri: str) -> None:
        """Log an attribution request."""
        with self._lock:
            self._attribution_count += 1
            self._refresh()
            write_cli_log(
                "INFO", f"Got an attribution request: [{request_uri}]", log_file=self._log_file
            )
            self._print(f"[green][INFO][/green] Got an attribution request: {escape(f'[{request_uri}]')}")

    def log_mirror(self, url: str, status: int) -> None:
        """Log a mirrored request."""
        with self._lock:
            self._mirror_count["ok"] += 1
            self._refresh()
            write_cli_log("MIRROR", url, log_file=self._log_file, status=status)

    def log_mirror_error(self, url: str, error: str) -> None:
        """Log a failed mirror dispatch."""
        with self._lock:
            self._mirror_count["failed"] += 1
            self._push_error(f"mirror {url}: {error}")
            write_cli_log(
                "ERROR", f"Failed to mirror request to {url}: {error}", log_file=self._log_file
            )
            self._print(f"[red][ERROR][/red] Failed to mirror request to {escape(url)}: {escape(error)}")

    def log_error(self, route: str, status: int, message: str) -> None:
        """Log an upstream error."""
        with self._lock:
            self._push_error(f"{route} {status}: {message}")
            write_cli_log(
                "ERROR", message[:200], log_file=self._log_file, route=route, status=status
            )
            self._print(f"[red][ERROR][/red] {route} {status}: {escape(message)}")

    def log_access(
        self,
        method: str,
        path: str,
        status: int,
        duration_ms: float,
        *,
        client: str | None = None,
    ) -> None:
        """Log one access line (debug mode)."""
        with self._lock:
            write_cli_log(
                "ACCESS",
                f"{method} {path}",
                log_file=self._log_file,
                status=status,
                duration_ms=f"{duration_ms:.1f}",
                client=client or "-",
            )
            self._print(f"[dim]{client or '-'}[/dim] {method} {escape(path)} {status} {duration_ms:.1f}ms")

    def _push_error(self, error: str) -> None:
        truncated = error[:60] + "..." if len(error) > 60 else error
        self._errors.insert(0, truncated)
        self._errors = self._errors[:3]
        self._refresh()

    def _print(self, line: str) -> None:
        if not self._use_live:
            self._console.print(line)

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
        stats.append("Segment Proxy", style="bold cyan")
        stats.append("  |  ")
        stats.append(f"CDN: {self._request_count[CDN]}", style="blue")
        stats.append("  |  ")
        stats.append(f"Tracking API: {self._request_count[TRACKING_API]}", style="magenta")
        stats.append("  |  ")
        stats.append(f"Attribution: {self._attribution_count}", style="green")
        stats.append("  |  ")
        if self.config.mirror.url:
            stats.append(
                f"Mirror: {self._mirror_count['ok']} ok / {self._mirror_count['failed']} failed",
                style="yellow",
            )
        else:
            stats.append("Mirror: off", style="dim")
        stats.append("  |  ")
        stats.append(f"Port: {self.config.proxy.port}", style="dim")

        return Panel(stats, style="cyan")

    def _build_recent_panel(self) -> Panel:
        """Build recent requests panel."""
        if self._recent:
            table = Table(show_header=True, header_style="bold", expand=True, box=None)
            table.add_column("Time", style="dim", width=8)
            table.add_column("Route", width=12)
            table.add_column("Method", width=7)
            table.add_column("URL", ratio=1)

            for info in self._recent:
                table.add_row(
                    info.timestamp.strftime("%H:%M:%S"),
                    info.route,
                    info.method,
                    info.url,
                )

            content = table
        else:
            content = Text("Waiting for requests...", style="dim")

        return Panel(content, title="[blue]Recent Requests[/blue]", border_style="blue")

    def _build_footer(self) -> Panel:
        """Build footer with errors."""
        if self._errors:
            error_text = Text()
            for err in self._errors:
                error_text.append("! ", style="red bold")
                error_text.append(err + "\n", style="red")
            content = error_text
        else:
            content = Text(
                f"Listening on {self.config.proxy.host}:{self.config.proxy.port}",
                style="dim",
            )

        return Panel(content, title="[dim]Status[/dim]", border_style="dim")
