"""Configuration models and loading."""

import json
import os
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

CONFIG_DIR = Path.home() / ".config" / "admin-panel-proxy"
CONFIG_FILE = CONFIG_DIR / "config.json"

ENV_UPSTREAM_URL = "ADMIN_PROXY_UPSTREAM_URL"
ENV_UPSTREAM_TIMEOUT = "ADMIN_PROXY_UPSTREAM_TIMEOUT"
ENV_LOG_DIR = "ADMIN_PROXY_LOG_DIR"


class ProxySettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = 3000
    route_prefix: str = "/api"
    routing_key: str = "path"
    debug: bool = True


class UpstreamSettings(BaseModel):
    base_url: str = "http://68.211.160.206:8080"
    timeout: float = 30.0


class CorsSettings(BaseModel):
    allow_methods: list[str] = Field(
        default_factory=lambda: ["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]
    )
    allow_headers: list[str] = Field(
        default_factory=lambda: ["Content-Type", "Authorization", "X-Requested-With"]
    )
    allow_credentials: bool = True
    max_age: int = 86400


class LimitsSettings(BaseModel):
    max_body_size: int = 50 * 1024 * 1024
    keep_alive_timeout: int = 5
    max_connections: int = 100
    max_keepalive_connections: int = 20


class LogSettings(BaseModel):
    directory: str = "logs"
    write_requests: bool = False


class AdminSettings(BaseModel):
    api_url: str = "http://127.0.0.1:3000/api"
    timeout: float = 30.0


class Config(BaseModel):
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    upstream: UpstreamSettings = Field(default_factory=UpstreamSettings)
    cors: CorsSettings = Field(default_factory=CorsSettings)
    limits: LimitsSettings = Field(default_factory=LimitsSettings)
    logs: LogSettings = Field(default_factory=LogSettings)
    admin: AdminSettings = Field(default_factory=AdminSettings)


def load_config(config_file: Path = CONFIG_FILE, *, create: bool = True) -> Config:
    """Load configuration from JSON file, creating default if needed.

    With ``create=False`` nothing is written to disk, which is what
    request-scoped hosts with a read-only filesystem need.
    """
    if not config_file.exists():
        default = Config()
        if create:
            config_file.parent.mkdir(parents=True, exist_ok=True)
            config_file.write_text(default.model_dump_json(indent=2))
        return apply_env_overrides(default)

    try:
        data = json.loads(config_file.read_text())
        return apply_env_overrides(Config.model_validate(data))
    except (json.JSONDecodeError, ValidationError):
        default = Config()
        if create:
            # Backup corrupted config and recreate default
            backup = config_file.with_suffix(".json.bak")
            config_file.rename(backup)
            config_file.write_text(default.model_dump_json(indent=2))
        return apply_env_overrides(default)


def apply_env_overrides(config: Config, environ: dict[str, str] | None = None) -> Config:
    """Return a copy of ``config`` with environment overrides applied."""
    env = os.environ if environ is None else environ
    config = config.model_copy(deep=True)

    if env.get(ENV_UPSTREAM_URL):
        config.upstream.base_url = env[ENV_UPSTREAM_URL]
    if env.get(ENV_UPSTREAM_TIMEOUT):
        config.upstream.timeout = float(env[ENV_UPSTREAM_TIMEOUT])
    if env.get(ENV_LOG_DIR):
        config.logs.directory = env[ENV_LOG_DIR]
    return config
