"""HTTP forwarding to the upstream backend."""

import asyncio
import contextlib
import time
from collections.abc import Awaitable, Callable

import httpx
from fastapi import Response

from core.exceptions import (
    ClientDisconnected,
    UpstreamConnectionError,
    UpstreamTimeoutError,
)
from core.headers import HeaderBuilder
from core.protocols import RequestLogger
from core.request_types import PreparedRequest

DISCONNECT_POLL_INTERVAL = 0.5

DisconnectCheck = Callable[[], Awaitable[bool]]


class UpstreamClient:
    """Forward prepared requests to the upstream and relay whatever comes back."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        header_builder: HeaderBuilder,
        timeout: float = 30.0,
    ) -> None:
        self._client = client
        self._headers = header_builder
        self._timeout = timeout

    async def forward(
        self,
        prepared: PreparedRequest,
        logger: RequestLogger,
        is_disconnected: DisconnectCheck | None = None,
    ) -> Response:
        """Send one upstream request and relay its status and body verbatim.

        Raises:
            UpstreamTimeoutError: the upstream did not answer within the timeout
            UpstreamConnectionError: any other transport failure
            ClientDisconnected: the caller went away while waiting
        """
        started = time.perf_counter()
        request = self._client.build_request(
            prepared.method,
            prepared.target_url,
            headers=prepared.headers,
            params=prepared.params,
            content=prepared.body or None,
            timeout=self._timeout,
        )
        try:
            response = await self._send(request, is_disconnected)
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError(_describe(e), prepared.target_url) from e
        except httpx.RequestError as e:
            raise UpstreamConnectionError(_describe(e), prepared.target_url) from e

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.log_relayed(prepared.method, prepared.path, response.status_code, elapsed_ms)

        return Response(
            content=response.content,
            status_code=response.status_code,
            headers=self._headers.build_relayed_headers(response.headers),
        )

    async def _send(
        self,
        request: httpx.Request,
        is_disconnected: DisconnectCheck | None,
    ) -> httpx.Response:
        """Await the upstream, cancelling it if the caller disconnects."""
        if is_disconnected is None:
            return await self._client.send(request)

        send_task = asyncio.ensure_future(self._client.send(request))
        try:
            while True:
                done, _ = await asyncio.wait({send_task}, timeout=DISCONNECT_POLL_INTERVAL)
                if done:
                    return send_task.result()
                if await is_disconnected():
                    raise ClientDisconnected(f"Client disconnected before {request.url} answered")
        finally:
            if not send_task.done():
                send_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await send_task


def _describe(error: httpx.RequestError) -> str:
    return str(error) or type(error).__name__
