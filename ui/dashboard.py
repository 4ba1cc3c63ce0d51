"""Real-time CLI dashboard for proxy monitoring."""

from datetime import datetime
from pathlib import Path
from threading import Lock

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import Config
from ui.log_utils import write_cli_log

console = Console()


class RequestInfo:
    """Info about a single relayed request."""

    def __init__(self, method: str, path: str, status: int, elapsed_ms: float, timestamp: datetime):
        self.method = method
        self.path = path[:60] + "..." if len(path) > 60 else path
        self.status = status
        self.elapsed_ms = elapsed_ms
        self.timestamp = timestamp


class Dashboard:
    """Real-time dashboard showing proxied traffic and recent errors."""

    def __init__(self, config: Config):
        self.config = config
        self._lock = Lock()
        self._log_file = Path(config.logs.directory) / "proxy.log"
        self._recent: list[RequestInfo] = []
        self._max_recent = 10
        self._counts = {"forwarded": 0, "ok": 0, "upstream_errors": 0, "proxy_errors": 0}
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

    def log_forward(self, method: str, path: str, target_url: str) -> None:
        """Log a request about to be sent upstream."""
        with self._lock:
            self._counts["forwarded"] += 1
            self._refresh()
            write_cli_log("FORWARD", f"{method} /{path}", log_file=self._log_file, target=target_url)

    def log_relayed(self, method: str, path: str, status: int, elapsed_ms: float) -> None:
        """Log an upstream response relayed back to the caller."""
        with self._lock:
            if status >= 400:
                self._counts["upstream_errors"] += 1
            else:
                self._counts["ok"] += 1
            info = RequestInfo(method, path, status, elapsed_ms, datetime.now())
            self._recent.insert(0, info)
            self._recent = self._recent[: self._max_recent]
            self._refresh()
            write_cli_log(
                "RELAYED",
                f"{method} /{path}",
                log_file=self._log_file,
                status=status,
                ms=f"{elapsed_ms:.0f}",
            )

    def log_error(self, route: str, status: int, message: str) -> None:
        """Log an error."""
        with self._lock:
            self._counts["proxy_errors"] += 1
            truncated = message[:50] + "..." if len(message) > 50 else message
            self._errors.insert(0, f"{route} {status}: {truncated}")
            self._errors = self._errors[:3]
            self._refresh()
            write_cli_log("ERROR", message[:200], log_file=self._log_file, route=route, status=status)

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
        layout["body"].update(self._build_requests_panel())
        layout["footer"].update(self._build_footer())

        return layout

    def _build_header(self) -> Panel:
        """Build header with stats."""
        stats = Text()
        stats.append("Admin Panel Proxy", style="bold cyan")
        stats.append("  |  ")
        stats.append(f"Forwarded: {self._counts['forwarded']}", style="blue")
        stats.append("  |  ")
        stats.append(f"2xx/3xx: {self._counts['ok']}", style="green")
        stats.append("  |  ")
        stats.append(f"Upstream 4xx/5xx: {self._counts['upstream_errors']}", style="yellow")
        stats.append("  |  ")
        stats.append(f"Proxy errors: {self._counts['proxy_errors']}", style="red")
        stats.append("  |  ")
        stats.append(f"Port: {self.config.proxy.port}", style="dim")

        return Panel(stats, style="cyan")

    def _build_requests_panel(self) -> Panel:
        """Build recent requests panel."""
        if self._recent:
            table = Table(show_header=True, header_style="bold", expand=True, box=None)
            table.add_column("Time", style="dim", width=8)
            table.add_column("Method", width=7)
            table.add_column("Path", ratio=3)
            table.add_column("Status", width=6)
            table.add_column("ms", width=7, justify="right")

            for req in self._recent:
                status_style = "red" if req.status >= 500 else "yellow" if req.status >= 400 else "green"
                table.add_row(
                    req.timestamp.strftime("%H:%M:%S"),
                    req.method,
                    "/" + req.path,
                    Text(str(req.status), style=status_style),
                    f"{req.elapsed_ms:.0f}",
                )

            content = table
        else:
            content = Text("Waiting for requests...", style="dim")

        return Panel(
            content,
            title=f"[blue]Upstream {self.config.upstream.base_url}[/blue]",
            border_style="blue",
        )

    def _build_footer(self) -> Panel:
        """Build footer with errors and help."""
        if self._errors:
            error_text = Text()
            for err in self._errors:
                error_text.append("! ", style="red bold")
                error_text.append(err + "\n", style="red")
            content = error_text
        else:
            prefix = self.config.proxy.route_prefix.rstrip("/")
            content = Text(
                f"Point the dashboard at http://localhost:{self.config.proxy.port}{prefix}",
                style="dim",
            )

        return Panel(content, title="[dim]Status[/dim]", border_style="dim")
