"""FastAPI route handlers."""

from fastapi import Request, Response
from fastapi.responses import StreamingResponse
from starlette.types import Receive, Scope, Send

from core.config import Config
from core.protocols import RequestLogger
from core.request_types import InboundRequest
from ui.log_utils import write_incoming_log


async def snapshot_request(request: Request) -> InboundRequest:
    """Buffer the body and capture the request exactly as received."""
    body = await request.body()
    raw_path = request.scope.get("raw_path") or request.url.path.encode("utf-8")
    return InboundRequest(
        method=request.method,
        path=raw_path.split(b"?", 1)[0].decode("latin-1"),
        raw_query=request.scope.get("query_string", b"").decode("latin-1"),
        headers=tuple(request.headers.items()),
        body=body,
        client_ip=request.client.host if request.client else None,
    )


async def handle_proxy(
    request: Request,
    config: Config,
    logger: RequestLogger,
) -> Response | StreamingResponse:
    """Route any request to the CDN or the Tracking API."""
    inbound = await snapshot_request(request)
    if config.proxy.debug:
        write_incoming_log(
            inbound.method,
            inbound.request_uri,
            dict(inbound.headers),
            inbound.body.decode("utf-8", errors="replace"),
        )

    routing_service = request.app.state.routing_service
    rewritten = await routing_service.direct(inbound)
    upstream = request.app.state.upstream_client

    return await upstream.forward(rewritten, logger)


class ProxyEndpoint:
    """ASGI endpoint for the catch-all route.

    Registered as a plain ASGI app so Starlette does not restrict the methods
    it accepts; extension methods (PROPFIND, TRACE, ...) are proxied too.
    """

    def __init__(self, config: Config, logger: RequestLogger) -> None:
        self._config = config
        self._logger = logger

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)
        response = await handle_proxy(request, self._config, self._logger)
        await response(scope, receive, send)
