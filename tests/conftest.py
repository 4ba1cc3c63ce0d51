"""Pytest configuration and fixtures."""

import base64
import json
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

from app import create_app
from core.config import Config

UPSTREAM_URL = "http://upstream.test:8080"


class RecordingLogger:
    """RequestLogger that keeps every call for assertions."""

    def __init__(self) -> None:
        self.forwarded: list[tuple[str, str, str]] = []
        self.relayed: list[tuple[str, str, int]] = []
        self.errors: list[tuple[str, int, str]] = []

    def log_forward(self, method: str, path: str, target_url: str) -> None:
        self.forwarded.append((method, path, target_url))

    def log_relayed(self, method: str, path: str, status: int, elapsed_ms: float) -> None:
        self.relayed.append((method, path, status))

    def log_error(self, route: str, status: int, message: str) -> None:
        self.errors.append((route, status, message))


class FakeUpstream:
    """Stand-in backend: records requests and answers with ``respond``."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.respond = lambda request: httpx.Response(200, json={"ok": True})

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)


def make_token(payload: dict[str, Any]) -> str:
    """Unsigned JWT carrying ``payload``."""
    segment = base64.urlsafe_b64encode(json.dumps(payload).encode()).decode().rstrip("=")
    return f"eyJhbGciOiJIUzI1NiJ9.{segment}.signature"


@pytest.fixture
def config(tmp_path):
    """Config pointing at the fake upstream, logging under tmp_path."""
    config = Config()
    config.upstream.base_url = UPSTREAM_URL
    config.logs.directory = str(tmp_path / "logs")
    return config


@pytest.fixture
def recording_logger():
    return RecordingLogger()


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def client(config, recording_logger, upstream):
    """TestClient for the proxy app wired to the fake upstream."""
    app = create_app(config, recording_logger, transport=httpx.MockTransport(upstream.handler))
    with TestClient(app) as test_client:
        yield test_client
