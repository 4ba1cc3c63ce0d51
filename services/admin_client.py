"""Client for the backend admin API consumed by the dashboard."""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, Literal

import httpx

from core.exceptions import (
    AccessDeniedError,
    AdminApiError,
    AuthExpiredError,
    FieldValidationError,
)
from core.models import (
    MIN_PASSWORD_LENGTH,
    BillingCode,
    BillingCodeRequest,
    ErrorEnvelope,
    NewUser,
    QuestionDraft,
    QuestionFilters,
    QuestionPage,
    QuestionUpdate,
    UserSession,
)

ReportFormat = Literal["excel", "csv"]


class AdminClient:
    """Authenticated calls to the admin endpoints of the backend.

    The session is injected explicitly: pass a stored ``UserSession`` or call
    ``login``. A 401 from any call ends the session and fires
    ``on_session_end`` so persisted copies can be wiped too.
    """

    def __init__(
        self,
        base_url: str,
        session: UserSession | None = None,
        *,
        http_client: httpx.Client | None = None,
        timeout: float = 30.0,
        on_session_end: Callable[[], None] | None = None,
    ) -> None:
        self._http = http_client or httpx.Client(base_url=base_url, timeout=timeout)
        self._owns_http = http_client is None
        self.session = session
        self._on_session_end = on_session_end
        # No GET endpoint exists upstream; only codes issued here are known
        self._issued_codes: list[BillingCode] = []

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "AdminClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # -- session ---------------------------------------------------------

    def login(self, correo: str, contrasena: str) -> UserSession:
        """Log in and keep the session if the account is an administrator."""
        response = self._http.post(
            "/auth/login",
            json={"email": correo, "password": contrasena},
        )
        if response.status_code >= 400:
            raise AdminApiError(response.status_code, _envelope(response))

        try:
            payload = response.json()
        except ValueError:
            payload = None
        token = payload.get("accessToken") if isinstance(payload, dict) else None
        if not isinstance(token, str) or not token:
            raise AdminApiError(
                response.status_code,
                ErrorEnvelope.from_payload("Login response did not include an access token"),
            )
        try:
            session = UserSession.from_access_token(token, correo)
        except ValueError as e:
            raise AdminApiError(response.status_code, ErrorEnvelope.from_payload(str(e))) from e
        if not session.is_admin:
            raise AccessDeniedError("Access denied: only administrators can sign in")

        self.session = session
        return session

    def logout(self) -> None:
        self.session = None
        self._issued_codes = []
        if self._on_session_end:
            self._on_session_end()

    # -- users -----------------------------------------------------------

    def get_users(self) -> list[dict[str, Any]]:
        return self._request("GET", "/admin/usuarios")

    def create_user(self, user: NewUser) -> dict[str, Any]:
        return self._request("POST", "/admin/usuarios", json=user.model_dump())

    def update_user_role(self, usuario_id: str, nuevo_rol: str) -> Any:
        return self._request("PATCH", f"/admin/usuarios/{usuario_id}/rol", json={"nuevoRol": nuevo_rol})

    def delete_user(self, usuario_id: str) -> Any:
        return self._request("DELETE", f"/admin/usuarios/{usuario_id}")

    def activate_user(self, usuario_id: str) -> Any:
        return self._request("PATCH", f"/admin/usuarios/{usuario_id}/activar")

    def reset_password(self, usuario_id: str, nueva_contrasena: str) -> Any:
        if len(nueva_contrasena) < MIN_PASSWORD_LENGTH:
            raise FieldValidationError(
                "nuevaContrasena", f"must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        return self._request(
            "PATCH",
            f"/admin/usuarios/{usuario_id}/password",
            json={"nuevaContrasena": nueva_contrasena},
        )

    # -- question bank ---------------------------------------------------

    def get_questions(self, filters: QuestionFilters | None = None) -> QuestionPage:
        params = filters.to_params() if filters else None
        return QuestionPage.from_payload(self._request("GET", "/admin/preguntas", params=params))

    def get_question(self, pregunta_id: str) -> dict[str, Any]:
        return self._request("GET", f"/admin/preguntas/{pregunta_id}")

    def create_question(self, draft: QuestionDraft) -> dict[str, Any]:
        return self._request("POST", "/admin/preguntas", json=draft.to_payload())

    def update_question(self, pregunta_id: str, update: QuestionUpdate) -> dict[str, Any]:
        return self._request("PATCH", f"/admin/preguntas/{pregunta_id}", json=update.to_payload())

    def delete_question(self, pregunta_id: str) -> Any:
        return self._request("DELETE", f"/admin/preguntas/{pregunta_id}")

    # -- reports ---------------------------------------------------------

    def get_management_report(self) -> dict[str, Any]:
        return self._request("GET", "/admin/informes/gestion")

    def download_management_report(self, fmt: ReportFormat = "excel") -> bytes:
        """Fetch the report export as raw bytes (xlsx or csv)."""
        if fmt not in ("excel", "csv"):
            raise FieldValidationError("format", "must be 'excel' or 'csv'")
        response = self._send("GET", f"/admin/informes/gestion/{fmt}")
        return response.content

    # -- billing codes ---------------------------------------------------

    def create_billing_code(self, request: BillingCodeRequest) -> BillingCode:
        """Issue a billing code and remember it for this session."""
        created = self._request("POST", "/billing/admin/codes", json=request.model_dump())
        code = BillingCode(
            **{
                **request.model_dump(),
                **(created if isinstance(created, dict) else {}),
                "created_at": datetime.now(UTC).isoformat(),
            }
        )
        self._issued_codes.insert(0, code)
        return code

    @property
    def issued_billing_codes(self) -> list[BillingCode]:
        """Codes created during this session, newest first."""
        return list(self._issued_codes)

    # -- transport -------------------------------------------------------

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        response = self._send(method, url, **kwargs)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        headers = kwargs.pop("headers", {})
        if self.session:
            headers["Authorization"] = f"Bearer {self.session.token}"
        response = self._http.request(method, url, headers=headers, **kwargs)

        if response.status_code == 401:
            envelope = _envelope(response)
            self.logout()
            raise AuthExpiredError(401, envelope)
        if response.status_code >= 400:
            raise AdminApiError(response.status_code, _envelope(response))
        return response


def _envelope(response: httpx.Response) -> ErrorEnvelope:
    try:
        payload = response.json()
    except ValueError:
        payload = response.text
    return ErrorEnvelope.from_payload(payload)
