"""Routing orchestration for proxy requests."""

from urllib.parse import quote

from core.config import Config
from core.headers import HeaderBuilder
from core.protocols import RequestLogger
from core.request_types import InboundRequest, PreparedRequest
from core.router import PathResolver

# Characters allowed verbatim in a URL path segment, plus the separator
PATH_SAFE_CHARS = "/:@!$&'()*+,;="


class RoutingService:
    """Prepare inbound requests for forwarding to the upstream."""

    def __init__(
        self,
        config: Config,
        logger: RequestLogger,
        resolver: PathResolver,
        header_builder: HeaderBuilder,
    ) -> None:
        self._base_url = config.upstream.base_url.rstrip("/")
        self._logger = logger
        self._resolver = resolver
        self._headers = header_builder

    def resolve_path(self, inbound: InboundRequest) -> str:
        """Resolve the upstream path; raises MissingPathError when there is none."""
        routing_values = [
            value for key, value in inbound.query_items if key == self._resolver.routing_key
        ]
        segments = routing_values or inbound.path_segments
        return self._resolver.resolve(segments, inbound.raw_url, inbound.query_dict())

    def prepare(self, inbound: InboundRequest, path: str) -> PreparedRequest:
        """Build the outbound request for an already resolved path."""
        target_url = f"{self._base_url}/{quote(path, safe=PATH_SAFE_CHARS)}"
        self._logger.log_forward(inbound.method, path, target_url)
        return PreparedRequest(
            method=inbound.method,
            path=path,
            target_url=target_url,
            headers=self._headers.build_upstream_headers(inbound.headers),
            params=self._resolver.forwarded_params(inbound.query_items),
            body=inbound.body,
        )
