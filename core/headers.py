"""Header construction for upstream and mirror requests."""

from collections.abc import Iterable

# Hop-by-hop headers that a reverse proxy does not forward (RFC 7230 6.1)
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "proxy-connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)

# Recomputed by the HTTP client for every outbound message
FRAMING_HEADERS = frozenset({"host", "content-length", "transfer-encoding"})


class HeaderBuilder:
    """Build outbound headers for the primary forward and the mirror."""

    def build_upstream_headers(
        self,
        headers: Iterable[tuple[str, str]],
        host: str,
        client_ip: str | None = None,
    ) -> list[tuple[str, str]]:
        """Drop hop-by-hop headers, point Host at the upstream, record the client."""
        headers = list(headers)
        dropped = HOP_BY_HOP_HEADERS | _connection_tokens(headers) | {"host"}
        upstream = [(key, value) for key, value in headers if key.lower() not in dropped]
        upstream.insert(0, ("host", host))

        if client_ip:
            prior = [value for key, value in upstream if key.lower() == "x-forwarded-for"]
            upstream = [(key, value) for key, value in upstream if key.lower() != "x-forwarded-for"]
            upstream.append(("x-forwarded-for", ", ".join([*prior, client_ip])))
        return upstream

    def build_mirror_headers(self, headers: Iterable[tuple[str, str]]) -> list[tuple[str, str]]:
        """Copy headers verbatim, leaving message framing to the client."""
        return [(key, value) for key, value in headers if key.lower() not in FRAMING_HEADERS]

    def filter_response_headers(self, headers: Iterable[tuple[str, str]]) -> list[tuple[str, str]]:
        """Pass upstream response headers through, minus hop-by-hop ones."""
        headers = list(headers)
        dropped = HOP_BY_HOP_HEADERS | _connection_tokens(headers)
        return [(key, value) for key, value in headers if key.lower() not in dropped]


def _connection_tokens(headers: list[tuple[str, str]]) -> set[str]:
    """Header names listed in Connection are hop-by-hop too."""
    tokens: set[str] = set()
    for key, value in headers:
        if key.lower() == "connection":
            tokens.update(token.strip().lower() for token in value.split(",") if token.strip())
    return tokens


def encode_headers(headers: Iterable[tuple[str, str]]) -> list[tuple[bytes, bytes]]:
    """Back to wire bytes. ASGI servers decode header bytes as latin-1."""
    return [(key.encode("latin-1"), value.encode("latin-1")) for key, value in headers]
