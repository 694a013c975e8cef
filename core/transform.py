"""Request rewriting: retarget an inbound request at an upstream."""

from core.headers import HeaderBuilder
from core.request_types import InboundRequest, RewrittenRequest, RouteTarget


def single_joining_slash(a: str, b: str) -> str:
    """Join two path segments with exactly one slash between them."""
    a_slash = a.endswith("/")
    b_slash = b.startswith("/")
    if a_slash and b_slash:
        return a + b[1:]
    if not a_slash and not b_slash:
        return a + "/" + b
    return a + b


def merge_query(target_query: str, request_query: str) -> str:
    """Combine the target's fixed query with the incoming one."""
    if not target_query or not request_query:
        return target_query + request_query
    return f"{target_query}&{request_query}"


class RequestTransformer:
    """Build the outbound request for a chosen upstream."""

    def __init__(self, header_builder: HeaderBuilder | None = None) -> None:
        self._headers = header_builder or HeaderBuilder()

    def rewrite(
        self,
        inbound: InboundRequest,
        target: RouteTarget,
        route_name: str,
    ) -> RewrittenRequest:
        """Return a new request pointing at ``target``; ``inbound`` is untouched."""
        return RewrittenRequest(
            route_name=route_name,
            method=inbound.method,
            scheme=target.scheme,
            host=target.host,
            path=single_joining_slash(target.path, inbound.path),
            raw_query=merge_query(target.raw_query, inbound.raw_query),
            # Upstream virtual hosting and SNI resolve on the target host
            headers=self._headers.build_upstream_headers(
                inbound.headers, target.host, client_ip=inbound.client_ip
            ),
            body=inbound.body,
        )
