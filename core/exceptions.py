"""Custom exception hierarchy for the admin panel proxy and client."""

from typing import Any


class ProxyError(Exception):
    """Base exception for all proxy errors."""

    status_code = 500


class MissingPathError(ProxyError):
    """No upstream path could be derived from the inbound request.

    Attributes:
        raw_url: The inbound URL as received (path and query string)
        query: Parsed query parameters, for debugging
    """

    status_code = 400

    def __init__(self, raw_url: str, query: dict[str, Any] | None = None) -> None:
        super().__init__("Could not extract path from query or URL")
        self.raw_url = raw_url
        self.query = query or {}


class RequestTooLarge(ProxyError):
    """Request body exceeds size limit."""

    status_code = 413

    def __init__(self, size: int, limit: int) -> None:
        super().__init__("Request body too large")
        self.size = size
        self.limit = limit


class UpstreamError(ProxyError):
    """Raised when the upstream cannot be reached.

    Attributes:
        message: Error message
        target_url: URL the proxy was trying to reach (optional)
    """

    def __init__(self, message: str, target_url: str | None = None) -> None:
        super().__init__(message)
        self.target_url = target_url


class UpstreamTimeoutError(UpstreamError):
    """Raised when the upstream request times out."""


class UpstreamConnectionError(UpstreamError):
    """Raised when unable to connect to the upstream."""


class ClientDisconnected(ProxyError):
    """The caller went away before the upstream answered."""

    status_code = 499


class AdminApiError(Exception):
    """The backend answered an admin API call with an error status.

    Attributes:
        status_code: HTTP status code from the backend
        envelope: Normalized error payload (``core.models.ErrorEnvelope``)
    """

    def __init__(self, status_code: int, envelope: Any) -> None:
        super().__init__(envelope.display_message)
        self.status_code = status_code
        self.envelope = envelope


class AuthExpiredError(AdminApiError):
    """The backend rejected the session token (401); the session is gone."""


class AccessDeniedError(Exception):
    """Login succeeded but the account is not an administrator."""


class FieldValidationError(ValueError):
    """A form field failed local validation and was never sent upstream."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message
