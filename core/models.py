"""Typed shapes for the backend admin API."""

import base64
import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.exceptions import FieldValidationError

ADMIN_ROLE = "admin"
MIN_PASSWORD_LENGTH = 6


class UserSession(BaseModel):
    """Authenticated admin session, created on login and dropped on logout or 401."""

    token: str
    usuario_id: str
    correo: str
    rol: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.rol == ADMIN_ROLE

    @classmethod
    def from_access_token(cls, token: str, correo: str) -> "UserSession":
        payload = decode_jwt_payload(token)
        return cls(
            token=token,
            usuario_id=str(payload.get("sub", "")),
            correo=correo,
            rol=payload.get("role") or "user",
        )


def decode_jwt_payload(token: str) -> dict[str, Any]:
    """Decode the payload segment of a JWT without verifying it."""
    parts = token.split(".")
    if len(parts) < 2:
        raise ValueError("Malformed access token")
    segment = parts[1]
    segment += "=" * (-len(segment) % 4)
    try:
        payload = json.loads(base64.urlsafe_b64decode(segment))
    except (ValueError, json.JSONDecodeError) as e:
        raise ValueError(f"Malformed access token: {e}") from e
    if not isinstance(payload, dict):
        raise ValueError("Malformed access token: payload is not an object")
    return payload


class ErrorEnvelope(BaseModel):
    """Backend error payload, normalized once at the client boundary."""

    kind: Literal["string", "structured", "unknown"]
    raw: Any = None

    @classmethod
    def from_payload(cls, payload: Any) -> "ErrorEnvelope":
        # Backends usually wrap the message as {"error": ...}
        if isinstance(payload, dict) and "error" in payload:
            payload = payload["error"]
        if isinstance(payload, str) and payload.strip():
            return cls(kind="string", raw=payload)
        if isinstance(payload, (dict, list)) and payload:
            return cls(kind="structured", raw=payload)
        return cls(kind="unknown", raw=payload)

    @property
    def display_message(self) -> str:
        if self.kind == "string":
            return self.raw
        if self.kind == "structured":
            if isinstance(self.raw, dict) and isinstance(self.raw.get("message"), str):
                return self.raw["message"]
            return json.dumps(self.raw, ensure_ascii=False)
        return "Unexpected error from the backend"


class QuestionPage(BaseModel):
    """Canonical question list: paginated and bare-list responses both land here."""

    items: list[dict[str, Any]] = Field(default_factory=list)
    total: int = 0

    @classmethod
    def from_payload(cls, payload: Any) -> "QuestionPage":
        if isinstance(payload, dict) and isinstance(payload.get("items"), list):
            items = payload["items"]
            return cls(items=items, total=payload.get("total") or len(items))
        if isinstance(payload, list):
            return cls(items=payload, total=len(payload))
        return cls()


class QuestionFilters(BaseModel):
    q: str | None = None
    tipo_banco: Literal["tec", "soft", "mix"] | None = None
    nivel: Literal["jr", "mid", "sr"] | None = None
    sector: str | None = None
    activa: bool | None = None
    page: int | None = Field(default=None, ge=0)
    size: int | None = Field(default=None, gt=0)

    def to_params(self) -> dict[str, str]:
        params = {
            "q": self.q,
            "tipoBanco": self.tipo_banco,
            "nivel": self.nivel,
            "sector": self.sector,
            "activa": None if self.activa is None else str(self.activa).lower(),
            "page": self.page,
            "size": self.size,
        }
        return {key: str(value) for key, value in params.items() if value not in (None, "")}


def parse_hints(text: str | None) -> dict[str, Any] | None:
    """Parse the free-form hints field; blank means no hints."""
    if text is None or not text.strip():
        return None
    try:
        hints = json.loads(text)
    except json.JSONDecodeError:
        raise FieldValidationError(
            "pistas", 'must be valid JSON (e.g. {"pista1": "..."})'
        ) from None
    if not isinstance(hints, dict):
        raise FieldValidationError("pistas", "must be a JSON object")
    return hints


class QuestionDraft(BaseModel):
    """New question for the bank (free-text sector form)."""

    model_config = ConfigDict(populate_by_name=True)

    texto: str = Field(min_length=1)
    tipo_banco: Literal["tec", "soft", "mix"] = Field(default="tec", alias="tipoBanco")
    nivel: Literal["jr", "mid", "sr"] = "mid"
    sector: str | None = None
    respuesta_modelo: str | None = Field(default=None, alias="respuestaModelo")
    pistas: dict[str, Any] | None = None

    @field_validator("sector", "respuesta_modelo")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        return value or None

    @classmethod
    def from_form(cls, *, hints_text: str | None = None, **fields: Any) -> "QuestionDraft":
        return cls(pistas=parse_hints(hints_text), **fields)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class QuestionUpdate(BaseModel):
    texto: str | None = None
    sector: str | None = None
    activa: bool | None = None
    pistas: dict[str, Any] | None = None

    @classmethod
    def from_form(cls, *, hints_text: str | None = None, **fields: Any) -> "QuestionUpdate":
        """Blank ``hints_text`` clears the hints; ``None`` leaves them untouched."""
        if hints_text is not None:
            fields["pistas"] = parse_hints(hints_text)
        return cls(**fields)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class NewUser(BaseModel):
    correo: str = Field(min_length=3)
    contrasena: str = Field(min_length=MIN_PASSWORD_LENGTH)
    nombre: str | None = None
    rol: Literal["user", "admin"] = "user"
    idioma: Literal["es", "en", "pt"] = "es"


class BillingCodeRequest(BaseModel):
    days: int = Field(default=30, gt=0)
    label: str = ""
    max_uses: int = Field(default=1, gt=0)
    license_type: Literal["PROM", "INST", "GOOG", "GEN"] = "PROM"


class BillingCode(BaseModel):
    """A code issued during this session; the backend offers no way to list them."""

    model_config = ConfigDict(extra="allow")

    code: str
    days: int
    label: str = ""
    max_uses: int = 1
    license_type: str = "PROM"
    uses_count: int = 0
    activo: bool = True
    created_at: str
