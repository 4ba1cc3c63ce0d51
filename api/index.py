"""Serverless entry point - one ASGI app, one invocation per request.

Configuration comes from the config file when present plus the
ADMIN_PROXY_* environment variables; nothing is written at import time.
"""

from pathlib import Path

from app import create_app
from core.config import load_config
from ui.log_utils import FileRequestLogger

config = load_config(create=False)
app = create_app(config, FileRequestLogger(Path(config.logs.directory)))
