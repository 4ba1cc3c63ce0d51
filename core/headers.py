"""Header construction for upstream requests and browser responses."""

from core.config import CorsSettings

# Inbound headers that never reach the upstream
STRIPPED_REQUEST_HEADERS = frozenset({"host", "origin", "referer", "content-length"})

# Upstream response headers relayed besides the body, values untouched
RELAYED_RESPONSE_HEADERS = ("content-type", "content-disposition")


class HeaderBuilder:
    """Build upstream request headers and CORS response headers."""

    def __init__(self, cors: CorsSettings | None = None) -> None:
        self._cors = cors or CorsSettings()

    def build_upstream_headers(self, headers: dict[str, str]) -> dict[str, str]:
        """Copy inbound headers minus host, origin, referer and content-length."""
        return {
            key: value
            for key, value in headers.items()
            if key.lower() not in STRIPPED_REQUEST_HEADERS
        }

    def build_cors_headers(self, origin: str | None) -> dict[str, str]:
        """CORS headers attached to every response the proxy produces."""
        return {
            "Access-Control-Allow-Origin": origin or "*",
            "Access-Control-Allow-Methods": ", ".join(self._cors.allow_methods),
            "Access-Control-Allow-Headers": ", ".join(self._cors.allow_headers),
            "Access-Control-Allow-Credentials": "true" if self._cors.allow_credentials else "false",
            "Access-Control-Max-Age": str(self._cors.max_age),
        }

    def build_relayed_headers(self, upstream_headers) -> dict[str, str]:
        """Pick the upstream response headers worth passing back."""
        return {
            name: upstream_headers[name]
            for name in RELAYED_RESPONSE_HEADERS
            if name in upstream_headers
        }
