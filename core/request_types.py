"""Shared request data types."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class InboundRequest:
    """Framework-neutral view of a request that reached the proxy."""

    method: str
    raw_url: str
    headers: dict[str, str]
    query_items: list[tuple[str, str]]
    body: bytes = b""
    path_segments: str | list[str] | None = None

    @property
    def origin(self) -> str | None:
        for key, value in self.headers.items():
            if key.lower() == "origin":
                return value
        return None

    def query_dict(self) -> dict[str, str | list[str]]:
        """Collapse query items into a mapping, multi-valued keys become lists."""
        result: dict[str, str | list[str]] = {}
        for key, value in self.query_items:
            if key not in result:
                result[key] = value
            elif isinstance(result[key], list):
                result[key].append(value)
            else:
                result[key] = [result[key], value]
        return result


@dataclass(frozen=True)
class PreparedRequest:
    """Prepared data for an upstream request."""

    method: str
    path: str
    target_url: str
    headers: dict[str, str]
    params: list[tuple[str, str]] = field(default_factory=list)
    body: bytes = b""
