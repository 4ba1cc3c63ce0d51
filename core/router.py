"""Path resolution - determines which upstream path a request targets."""

import re
from collections.abc import Sequence

from core.exceptions import MissingPathError


class PathResolver:
    """Resolve the upstream-relative path of a wildcard-routed request."""

    def __init__(self, route_prefix: str = "/api", routing_key: str = "path"):
        self.routing_key = routing_key
        prefix = route_prefix.strip("/")
        self._prefix_re = re.compile(rf"^/?{re.escape(prefix)}(?:/|$)") if prefix else None

    def resolve(
        self,
        segments: str | Sequence[str] | None,
        raw_url: str,
        query: dict | None = None,
    ) -> str:
        """Return the resolved path, first from segments, then from the URL."""
        path = self._join_segments(segments)
        if not path:
            path = self._parse_url(raw_url)
        if not path:
            raise MissingPathError(raw_url, query)
        return path

    def forwarded_params(self, query_items: list[tuple[str, str]]) -> list[tuple[str, str]]:
        """Drop the routing key so it is not duplicated upstream."""
        return [(key, value) for key, value in query_items if key != self.routing_key]

    def _join_segments(self, segments: str | Sequence[str] | None) -> str:
        if not segments:
            return ""
        if isinstance(segments, str):
            return segments
        return "/".join(segment for segment in segments if segment)

    def _parse_url(self, raw_url: str) -> str:
        """Strip the query string and the mount prefix from the raw URL."""
        url_path = raw_url.split("?", 1)[0]
        if self._prefix_re:
            url_path = self._prefix_re.sub("", url_path, count=1)
        return url_path.lstrip("/")
