"""HTTP proxying utilities for upstream requests."""

import json

import httpx
from fastapi import Response
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from core.exceptions import UpstreamConnectionError, UpstreamError, UpstreamTimeoutError
from core.headers import HeaderBuilder, encode_headers
from core.protocols import RequestLogger
from core.request_types import RewrittenRequest


class UpstreamClient:
    """Forward rewritten requests and stream the upstream response back."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        header_builder: HeaderBuilder | None = None,
    ) -> None:
        self._client = client
        self._headers = header_builder or HeaderBuilder()

    async def forward(
        self,
        rewritten: RewrittenRequest,
        logger: RequestLogger,
    ) -> Response | StreamingResponse:
        """Send ``rewritten`` upstream; transport failures become 502/504."""
        try:
            response = await self._send(rewritten)
        except UpstreamError as e:
            logger.log_error(rewritten.route_name, e.status_code, str(e))
            return Response(
                content=json.dumps({"error": str(e)}),
                status_code=e.status_code,
                media_type="application/json",
            )

        if response.status_code >= 500:
            logger.log_error(rewritten.route_name, response.status_code, f"{rewritten.method} {rewritten.url}")

        streaming = StreamingResponse(
            response.aiter_raw(),
            status_code=response.status_code,
            background=BackgroundTask(self._cleanup_streaming, response),
        )
        # Set raw headers directly so repeated headers (Set-Cookie) survive
        streaming.raw_headers = [
            (key.lower().encode("latin-1"), value.encode("latin-1"))
            for key, value in self._headers.filter_response_headers(response.headers.multi_items())
        ]
        return streaming

    async def _send(self, rewritten: RewrittenRequest) -> httpx.Response:
        try:
            request = self._client.build_request(
                rewritten.method,
                rewritten.url,
                headers=encode_headers(rewritten.headers),
                content=rewritten.body,
                # URL parsing collapses dot segments; send the path as rewritten
                extensions={"target": rewritten.target.encode("latin-1")},
            )
            return await self._client.send(request, stream=True)
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError("Upstream timeout", route=rewritten.route_name) from e
        except httpx.RequestError as e:
            raise UpstreamConnectionError(
                f"Upstream connection error: {e}", route=rewritten.route_name
            ) from e

    async def _cleanup_streaming(self, response: httpx.Response) -> None:
        """Clean up streaming resources."""
        await response.aclose()
