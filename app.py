"""FastAPI application factory."""

import time
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from starlette.routing import Route

from api.handlers import ProxyEndpoint
from core.config import Config, resolve_targets
from core.headers import HeaderBuilder
from core.protocols import RequestLogger
from core.router import RouteDecider
from core.transform import RequestTransformer
from services.mirror import MirrorClient
from services.routing_service import RoutingService
from services.upstream import UpstreamClient


def create_app(
    config: Config,
    logger: RequestLogger,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    targets = resolve_targets(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        limits = httpx.Limits(
            max_connections=config.limits.max_connections,
            max_keepalive_connections=config.limits.max_keepalive_connections,
        )
        # One pool shared by primary forwards and mirror copies
        client = httpx.AsyncClient(
            timeout=config.limits.upstream_timeout,
            limits=limits,
            transport=transport,
            follow_redirects=False,
        )
        header_builder = HeaderBuilder()
        mirror = None
        if targets.mirror_url:
            mirror = MirrorClient(client, targets.mirror_url, logger, header_builder)

        app.state.upstream_client = UpstreamClient(client, header_builder)
        app.state.routing_service = RoutingService(
            targets=targets,
            logger=logger,
            decider=RouteDecider(),
            transformer=RequestTransformer(header_builder),
            mirror=mirror,
            detach_mirror=config.mirror.detached,
        )
        try:
            yield
        finally:
            await app.state.routing_service.drain()
            await client.aclose()

    app = FastAPI(
        title="Segment Proxy",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    if config.proxy.debug:

        @app.middleware("http")
        async def access_log(request: Request, call_next):
            start = time.perf_counter()
            response = await call_next(request)
            logger.log_access(
                request.method,
                request.url.path,
                response.status_code,
                (time.perf_counter() - start) * 1000,
                client=request.client.host if request.client else None,
            )
            return response

    # No method list: every method, including extension methods, is proxied
    app.router.routes.append(Route("/{path:path}", ProxyEndpoint(config, logger)))

    return app
