"""CLI entry point for admin-panel-proxy."""

import sys
from datetime import datetime
from pathlib import Path

from rich.console import Console

from app import create_app
from auth import SESSION_FILE, clear_session, login, print_auth_status, verify_session
from core.config import CONFIG_FILE, load_config
from ui.dashboard import Dashboard
from ui.log_utils import clear_logs, write_cli_log

console = Console()


def main():
    """Main CLI entry point."""
    config = load_config()

    # Handle CLI arguments
    if len(sys.argv) > 1:
        arg = sys.argv[1]

        if arg in ("--check", "--auth"):
            if print_auth_status() and not verify_session(config):
                sys.exit(1)
            return

        if arg == "--config":
            console.print(f"[bold]Config:[/bold] {CONFIG_FILE}")
            console.print(f"[bold]Session:[/bold] {SESSION_FILE}")
            console.print(f"[bold]Upstream:[/bold] {config.upstream.base_url}")
            return

        if arg == "--login":
            if len(sys.argv) < 3:
                console.print("[red][ERROR][/red] Usage: admin-panel-proxy --login EMAIL")
                sys.exit(1)
            password = console.input("Password: ", password=True)
            if not login(config, sys.argv[2], password):
                sys.exit(1)
            return

        if arg == "--logout":
            if clear_session():
                console.print("[green]Signed out[/green]")
            else:
                console.print("[dim]No stored session[/dim]")
            return

        if arg in ("--help", "-h"):
            _print_help()
            return

        console.print(f"[red][ERROR][/red] Unknown option: {arg}")
        _print_help()
        sys.exit(1)

    if not config.upstream.base_url:
        console.print("[red][ERROR][/red] Upstream URL not configured!")
        console.print(f"[dim]Edit {CONFIG_FILE} and set upstream.base_url[/dim]")
        sys.exit(1)

    log_root = Path(config.logs.directory)
    log_file = log_root / "proxy.log"
    clear_logs(log_root)
    dashboard = Dashboard(config)

    import uvicorn

    app = create_app(config, dashboard)

    uvicorn_config = uvicorn.Config(
        app,
        host=config.proxy.host,
        port=config.proxy.port,
        log_level="warning",
        timeout_keep_alive=config.limits.keep_alive_timeout,
    )
    server = uvicorn.Server(uvicorn_config)

    dashboard.start()
    start_time = datetime.now()
    write_cli_log("STARTUP", "Proxy started", log_file=log_file, port=config.proxy.port)
    try:
        server.run()
    finally:
        duration = datetime.now() - start_time
        write_cli_log("SHUTDOWN", "Proxy stopped", log_file=log_file, duration=str(duration))
        dashboard.stop()


def _print_help():
    """Print help message."""
    help_text = """
[bold cyan]Admin Panel Proxy[/bold cyan]

Forwards the admin dashboard's /api/* calls to the backend, adding CORS headers.

[bold]Usage:[/bold]
    admin-panel-proxy                Start with live dashboard
    admin-panel-proxy --login EMAIL  Sign in to the admin API
    admin-panel-proxy --logout       Forget the stored session
    admin-panel-proxy --check        Check the session with the backend
    admin-panel-proxy --config       Show config locations
    admin-panel-proxy --help         Show this help
"""
    console.print(help_text)


if __name__ == "__main__":
    main()
