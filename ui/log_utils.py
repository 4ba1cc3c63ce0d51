"""Shared logging utilities."""

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

LOG_ROOT = Path.cwd() / "logs"
CLI_LOG_FILE = LOG_ROOT / "proxy.log"

SENSITIVE_HEADER_MARKERS = ("key", "authorization", "cookie", "token")


def write_incoming_log(
    method: str,
    url: str,
    headers: dict[str, str],
    body: Any,
    *,
    log_root: Path = LOG_ROOT,
) -> Path:
    """Write a single incoming request log entry."""
    payload = {
        "timestamp": _utc_now(),
        "method": method,
        "url": url,
        "headers": _redact_headers(headers),
        "body": body,
    }
    day = datetime.now(UTC).strftime("%Y-%m-%d")
    return _write_json(log_root / "incoming" / day, payload)


def write_cli_log(
    level: str,
    message: str,
    *,
    log_file: Path | None = None,
    **extra: Any,
) -> None:
    """Append a line to the rolling CLI log file."""
    log_file = log_file or CLI_LOG_FILE
    log_file.parent.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")
    extra_str = " ".join(f"{k}={v}" for k, v in extra.items()) if extra else ""
    line = f"[{timestamp}] {level}: {message}"
    if extra_str:
        line += f" {extra_str}"
    line += "\n"
    with log_file.open("a") as f:
        f.write(line)


def clear_logs(log_root: Path = LOG_ROOT) -> int:
    """Remove previous request logs and truncate the CLI log."""
    removed = 0
    incoming = log_root / "incoming"
    if incoming.exists():
        for old_file in incoming.rglob("*.json"):
            try:
                old_file.unlink()
                removed += 1
            except OSError:
                pass
    cli_log = log_root / "proxy.log"
    if cli_log.exists():
        cli_log.write_text("")
    return removed


class FileRequestLogger:
    """Headless request logger writing to the CLI log file only."""

    def __init__(self, log_root: Path = LOG_ROOT) -> None:
        self._log_file = log_root / "proxy.log"

    def log_forward(self, method: str, path: str, target_url: str) -> None:
        write_cli_log("FORWARD", f"{method} /{path}", log_file=self._log_file, target=target_url)

    def log_relayed(self, method: str, path: str, status: int, elapsed_ms: float) -> None:
        write_cli_log(
            "RELAYED",
            f"{method} /{path}",
            log_file=self._log_file,
            status=status,
            ms=f"{elapsed_ms:.0f}",
        )

    def log_error(self, route: str, status: int, message: str) -> None:
        write_cli_log("ERROR", message[:200], log_file=self._log_file, route=route, status=status)


def _write_json(folder: Path, payload: dict[str, Any]) -> Path:
    """Write payload to a unique JSON file in the given folder."""
    folder.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S.%fZ")
    file_path = folder / f"{timestamp}_{uuid4().hex}.json"
    file_path.write_text(json.dumps(payload, indent=2, default=str))
    return file_path


def _redact_headers(headers: dict[str, str]) -> dict[str, str]:
    """Redact sensitive headers."""
    redacted = {}
    for key, value in headers.items():
        if any(marker in key.lower() for marker in SENSITIVE_HEADER_MARKERS):
            redacted[key] = _mask(value)
        else:
            redacted[key] = value
    return redacted


def _mask(value: str) -> str:
    if len(value) <= 10:
        return "***"
    return value[:6] + "..." + value[-4:]


def _utc_now() -> str:
    return datetime.now(UTC).isoformat()
