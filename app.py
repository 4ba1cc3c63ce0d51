"""FastAPI application factory."""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request

from api.handlers import handle_proxy
from core.config import Config
from core.headers import HeaderBuilder
from core.protocols import RequestLogger
from core.router import PathResolver
from services.routing_service import RoutingService
from services.upstream import UpstreamClient

PROXY_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]


def create_app(
    config: Config,
    logger: RequestLogger,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Services are wired up front because request-scoped hosts may never run
    the lifespan; the lifespan only closes the upstream connection pool.
    ``transport`` replaces the network transport of the upstream client.
    """
    limits = httpx.Limits(
        max_connections=config.limits.max_connections,
        max_keepalive_connections=config.limits.max_keepalive_connections,
    )
    upstream_client = httpx.AsyncClient(
        timeout=config.upstream.timeout,
        limits=limits,
        transport=transport,
    )
    header_builder = HeaderBuilder(config.cors)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            yield
        finally:
            await upstream_client.aclose()

    app = FastAPI(title="Admin Panel Proxy", version="0.1.0", lifespan=lifespan)
    app.state.header_builder = header_builder
    app.state.upstream_client = UpstreamClient(
        upstream_client, header_builder, timeout=config.upstream.timeout
    )
    app.state.routing_service = RoutingService(
        config=config,
        logger=logger,
        resolver=PathResolver(config.proxy.route_prefix, config.proxy.routing_key),
        header_builder=header_builder,
    )

    prefix = config.proxy.route_prefix.rstrip("/")

    async def proxy(request: Request):
        return await handle_proxy(request, config, logger)

    # The bare prefix must answer itself, not redirect without CORS headers
    if prefix:
        app.add_api_route(prefix, proxy, methods=PROXY_METHODS, include_in_schema=False)
    app.add_api_route(prefix + "/{path:path}", proxy, methods=PROXY_METHODS)

    return app
