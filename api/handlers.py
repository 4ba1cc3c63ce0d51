"""FastAPI route handlers."""

from dataclasses import replace
from pathlib import Path

from fastapi import Request, Response
from fastapi.responses import JSONResponse

from core.config import Config
from core.exceptions import (
    ClientDisconnected,
    MissingPathError,
    RequestTooLarge,
    UpstreamError,
)
from core.protocols import RequestLogger
from core.request_types import InboundRequest
from ui.log_utils import write_incoming_log


def _inbound_from(request: Request) -> InboundRequest:
    """Snapshot the parts of the request the proxy works with (body excluded)."""
    raw_url = request.url.path
    if request.url.query:
        raw_url += f"?{request.url.query}"
    return InboundRequest(
        method=request.method,
        raw_url=raw_url,
        headers=dict(request.headers),
        query_items=list(request.query_params.multi_items()),
        path_segments=request.path_params.get("path"),
    )


async def _read_body(request: Request, limit: int) -> bytes:
    body = await request.body()
    if len(body) > limit:
        raise RequestTooLarge(len(body), limit)
    return body


async def handle_proxy(
    request: Request,
    config: Config,
    logger: RequestLogger,
) -> Response:
    """Forward a wildcard-routed request to the upstream, adding CORS headers."""
    routing_service = request.app.state.routing_service
    header_builder = request.app.state.header_builder
    upstream = request.app.state.upstream_client

    inbound = _inbound_from(request)
    cors_headers = header_builder.build_cors_headers(inbound.origin)

    try:
        path = routing_service.resolve_path(inbound)
    except MissingPathError as e:
        logger.log_error(inbound.method, e.status_code, f"{e} ({e.raw_url})")
        return JSONResponse(
            status_code=e.status_code,
            content={
                "error": "Path not provided",
                "details": str(e),
                "debug": {"url": e.raw_url, "query": e.query},
            },
            headers=cors_headers,
        )

    # Preflight never reaches the upstream
    if inbound.method == "OPTIONS":
        return Response(status_code=200, headers=cors_headers)

    try:
        raw_body = await _read_body(request, config.limits.max_body_size)
    except RequestTooLarge as e:
        logger.log_error(path, e.status_code, f"{e} ({e.size} > {e.limit} bytes)")
        return JSONResponse(
            status_code=e.status_code,
            content={"error": str(e)},
            headers=cors_headers,
        )
    inbound = replace(inbound, body=raw_body)

    if config.logs.write_requests:
        write_incoming_log(
            inbound.method,
            inbound.raw_url,
            inbound.headers,
            raw_body.decode("utf-8", errors="replace"),
            log_root=Path(config.logs.directory),
        )

    prepared = routing_service.prepare(inbound, path)
    try:
        response = await upstream.forward(prepared, logger, request.is_disconnected)
    except UpstreamError as e:
        logger.log_error(path, 500, str(e))
        return JSONResponse(
            status_code=500,
            content={"error": "internal proxy error", "details": str(e)},
            headers=cors_headers,
        )
    except ClientDisconnected as e:
        logger.log_error(path, e.status_code, str(e))
        return Response(status_code=e.status_code, headers=cors_headers)

    response.headers.update(cors_headers)
    return response
