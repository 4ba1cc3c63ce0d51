"""Admin session storage - the CLI's equivalent of the dashboard's token/user storage."""

import time

import httpx
from pydantic import ValidationError
from rich.console import Console

from core.config import CONFIG_DIR, Config
from core.exceptions import AccessDeniedError, AdminApiError, AuthExpiredError
from core.models import UserSession, decode_jwt_payload
from services.admin_client import AdminClient

console = Console()
SESSION_FILE = CONFIG_DIR / "session.json"


class SessionError(Exception):
    """Raised when the stored session cannot be read."""


def load_session(session_file=SESSION_FILE) -> UserSession | None:
    """Load the stored admin session, if any."""
    if not session_file.exists():
        return None
    try:
        return UserSession.model_validate_json(session_file.read_text())
    except ValidationError as e:
        raise SessionError(f"Stored session at {session_file} is unreadable: {e}") from e


def save_session(session: UserSession, session_file=SESSION_FILE) -> None:
    """Save the admin session, readable by the owner only."""
    session_file.parent.mkdir(parents=True, exist_ok=True)
    session_file.write_text(session.model_dump_json(indent=2))
    session_file.chmod(0o600)


def clear_session(session_file=SESSION_FILE) -> bool:
    """Forget the stored session. Returns whether one existed."""
    if session_file.exists():
        session_file.unlink()
        return True
    return False


def token_expiry(session: UserSession) -> float | None:
    """Expiry timestamp from the token's ``exp`` claim, when present."""
    try:
        exp = decode_jwt_payload(session.token).get("exp")
    except ValueError:
        return None
    return float(exp) if isinstance(exp, (int, float)) else None


def login(config: Config, correo: str, contrasena: str, session_file=SESSION_FILE) -> UserSession | None:
    """Log in through the admin API and persist the session."""
    with AdminClient(config.admin.api_url, timeout=config.admin.timeout) as client:
        try:
            session = client.login(correo, contrasena)
        except AccessDeniedError as e:
            console.print(f"[red]{e}[/red]")
            return None
        except AdminApiError as e:
            console.print(f"[red]Login failed:[/red] {e.status_code} - {e.envelope.display_message}")
            return None
        except httpx.RequestError as e:
            console.print(f"[red]Login failed:[/red] {e}")
            return None

    save_session(session, session_file)
    console.print(f"[green]Signed in[/green] as {session.correo} ({session.rol})")
    return session


def stored_client(config: Config, session_file=SESSION_FILE) -> AdminClient | None:
    """Admin client bound to the stored session; a 401 deletes the session file."""
    session = load_session(session_file)
    if session is None:
        return None
    return AdminClient(
        config.admin.api_url,
        session=session,
        timeout=config.admin.timeout,
        on_session_end=lambda: clear_session(session_file),
    )


def verify_session(config: Config, session_file=SESSION_FILE) -> bool:
    """Confirm the stored session with an authenticated call to the backend."""
    try:
        client = stored_client(config, session_file)
    except SessionError as e:
        console.print(f"[red]{e}[/red]")
        return False
    if client is None:
        console.print("[yellow]Not signed in[/yellow]")
        return False

    with client:
        try:
            client.get_users()
        except AuthExpiredError:
            console.print("[yellow]Session rejected by the backend, signed out[/yellow]")
            return False
        except AdminApiError as e:
            console.print(f"[red]Check failed:[/red] {e.status_code} - {e.envelope.display_message}")
            return False
        except httpx.RequestError as e:
            console.print(f"[red]Backend unreachable:[/red] {e}")
            return False

    console.print("[green]Backend accepted the session[/green]")
    return True


def print_auth_status(
session_file=SESSION_FILE) -> bool:
    """Print whether a usable admin session is stored."""
    try:
        session = load_session(session_file)
    except SessionError as e:
        console.print(f"[red]{e}[/red]")
        return False

    if not session:
        console.print("[yellow]Not signed in[/yellow]")
        console.print("\n[dim]Sign in with:[/dim]")
        console.print("  admin-panel-proxy --login EMAIL")
        return False

    expires_at = token_expiry(session)
    if expires_at is not None and expires_at <= time.time():
        console.print(f"[yellow]Session for {session.correo} expired[/yellow] ({time.ctime(expires_at)})")
        return False

    suffix = f" (expires {time.ctime(expires_at)})" if expires_at else ""
    console.print(f"[green]Signed in[/green] as {session.correo} ({session.rol}){suffix}")
    return True


def main():
    """CLI entry point for auth check."""
    print_auth_status()


if __name__ == "__main__":
    main()
