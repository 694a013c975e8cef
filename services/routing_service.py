"""Routing orchestration for proxy requests."""

import asyncio

from core.config import Targets
from core.protocols import RequestLogger
from core.request_types import InboundRequest, MirrorResult, RewrittenRequest, RouteTarget
from core.router import CDN, RouteDecider
from core.transform import RequestTransformer
from services.mirror import MirrorClient


class RoutingService:
    """Direct requests to the CDN or the Tracking API, mirroring when configured."""

    def __init__(
        self,
        targets: Targets,
        logger: RequestLogger,
        decider: RouteDecider,
        transformer: RequestTransformer,
        mirror: MirrorClient | None = None,
        *,
        detach_mirror: bool = False,
    ) -> None:
        self._targets = targets
        self._logger = logger
        self._decider = decider
        self._transformer = transformer
        self._mirror = mirror
        self._detach_mirror = detach_mirror
        self._pending: set[asyncio.Task[MirrorResult]] = set()

    async def direct(self, inbound: InboundRequest) -> RewrittenRequest:
        """Classify, mirror and rewrite ``inbound`` for its upstream."""
        decision = self._decider.decide(inbound.request_uri)
        if decision.is_attribution:
            self._logger.log_attribution(inbound.request_uri)

        rewritten = self._transformer.rewrite(inbound, self._target_for(decision.route), decision.route)

        if self._mirror is not None:
            await self._dispatch_mirror(inbound)

        self._logger.log_route(rewritten.route_name, rewritten.method, rewritten.url)
        return rewritten

    async def drain(self) -> None:
        """Wait for detached mirror dispatches still in flight."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def _dispatch_mirror(self, inbound: InboundRequest) -> None:
        if not self._detach_mirror:
            await self._mirror.mirror(inbound)
            return

        task = asyncio.create_task(self._mirror.mirror(inbound))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _target_for(self, route: str) -> RouteTarget:
        if route == CDN:
            return self._targets.cdn
        return self._targets.tracking_api
