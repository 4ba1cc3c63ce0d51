"""Tests for admin session storage."""

import stat
import time

import httpx
import pytest

import auth
from conftest import make_token
from core.config import Config
from core.models import UserSession


@pytest.fixture
def session_file(tmp_path):
    return tmp_path / "session.json"


def make_session(**claims):
    token = make_token({"sub": "u-1", "role": "admin", **claims})
    return UserSession(token=token, usuario_id="u-1", correo="admin@example.com", rol="admin")


class TestSessionFile:
    def test_round_trip(self, session_file):
        session = make_session()
        auth.save_session(session, session_file)

        assert auth.load_session(session_file) == session

    def test_owner_only_permissions(self, session_file):
        auth.save_session(make_session(), session_file)

        assert stat.S_IMODE(session_file.stat().st_mode) == 0o600

    def test_missing_file(self, session_file):
        assert auth.load_session(session_file) is None

    def test_unreadable_file(self, session_file):
        session_file.write_text('{"token": 1}')

        with pytest.raises(auth.SessionError):
            auth.load_session(session_file)

    def test_clear(self, session_file):
        auth.save_session(make_session(), session_file)

        assert auth.clear_session(session_file) is True
        assert not session_file.exists()
        assert auth.clear_session(session_file) is False


class TestStatus:
    def test_not_signed_in(self, session_file):
        assert auth.print_auth_status(session_file) is False

    def test_signed_in(self, session_file):
        auth.save_session(make_session(exp=time.time() + 3600), session_file)
        assert auth.print_auth_status(session_file) is True

    def test_expired(self, session_file):
        auth.save_session(make_session(exp=time.time() - 60), session_file)
        assert auth.print_auth_status(session_file) is False

    def test_token_without_exp(self):
        assert auth.token_expiry(make_session()) is None


def patch_client(monkeypatch, handler):
    real_client = auth.AdminClient

    def factory(base_url, session=None, on_session_end=None, **kwargs):
        http_client = httpx.Client(base_url=base_url, transport=httpx.MockTransport(handler))
        return real_client(base_url, session, http_client=http_client, on_session_end=on_session_end)

    monkeypatch.setattr(auth, "AdminClient", factory)


class TestLogin:
    def test_admin_login_persists_session(self, monkeypatch, session_file):
        token = make_token({"sub": "u-1", "role": "admin"})
        patch_client(monkeypatch, lambda request: httpx.Response(200, json={"accessToken": token}))

        session = auth.login(Config(), "admin@example.com", "secret1", session_file)

        assert session.token == token
        assert auth.load_session(session_file) == session

    def test_non_admin_not_persisted(self, monkeypatch, session_file):
        token = make_token({"sub": "u-2", "role": "user"})
        patch_client(monkeypatch, lambda request: httpx.Response(200, json={"accessToken": token}))

        assert auth.login(Config(), "bob@example.com", "secret1", session_file) is None
        assert not session_file.exists()

    def test_rejected_credentials(self, monkeypatch, session_file):
        patch_client(monkeypatch, lambda request: httpx.Response(401, json={"error": "Credenciales invalidas"}))

        assert auth.login(Config(), "admin@example.com", "wrong", session_file) is None
        assert not session_file.exists()

    def test_backend_unreachable(self, monkeypatch, session_file):
        def refuse(request):
            raise httpx.ConnectError("Connection refused", request=request)

        patch_client(monkeypatch, refuse)

        assert auth.login(Config(), "admin@example.com", "secret1", session_file) is None

    def test_reply_without_token(self, monkeypatch, session_file):
        patch_client(monkeypatch, lambda request: httpx.Response(200, json={"message": "ok"}))

        assert auth.login(Config(), "admin@example.com", "secret1", session_file) is None
        assert not session_file.exists()


class TestVerifySession:
    def test_accepted_session_kept(self, monkeypatch, session_file):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=[])

        patch_client(monkeypatch, handler)
        session = make_session()
        auth.save_session(session, session_file)

        assert auth.verify_session(Config(), session_file) is True
        assert session_file.exists()
        assert seen[0].headers["authorization"] == f"Bearer {session.token}"

    def test_rejected_session_removes_file(self, monkeypatch, session_file):
        patch_client(monkeypatch, lambda request: httpx.Response(401, json={"error": "Token expirado"}))
        auth.save_session(make_session(), session_file)

        assert auth.verify_session(Config(), session_file) is False
        assert not session_file.exists()

    def test_server_error_keeps_file(self, monkeypatch, session_file):
        patch_client(monkeypatch, lambda request: httpx.Response(503, text="down"))
        auth.save_session(make_session(), session_file)

        assert auth.verify_session(Config(), session_file) is False
        assert session_file.exists()

    def test_no_stored_session(self, session_file):
        assert auth.stored_client(Config(), session_file) is None
        assert auth.verify_session(Config(), session_file) is False
