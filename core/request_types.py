"""Shared request data types."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RouteTarget:
    """One upstream (or mirror) destination."""

    scheme: str
    host: str
    path: str = ""
    raw_query: str = ""

    @property
    def base_url(self) -> str:
        """Scheme, host and base path, without the fixed query."""
        return f"{self.scheme}://{self.host}{self.path}"


@dataclass(frozen=True)
class InboundRequest:
    """Snapshot of a request as received, with its body fully buffered."""

    method: str
    path: str
    raw_query: str = ""
    headers: tuple[tuple[str, str], ...] = ()
    body: bytes = b""
    client_ip: str | None = None

    @property
    def request_uri(self) -> str:
        """Path and query exactly as received."""
        if self.raw_query:
            return f"{self.path}?{self.raw_query}"
        return self.path


@dataclass(frozen=True)
class RewrittenRequest:
    """Request retargeted at an upstream, ready to be sent."""

    route_name: str
    method: str
    scheme: str
    host: str
    path: str
    raw_query: str
    headers: list[tuple[str, str]] = field(default_factory=list)
    body: bytes = b""

    @property
    def target(self) -> str:
        """Request target (path and query) to put on the wire unchanged."""
        if self.raw_query:
            return f"{self.path}?{self.raw_query}"
        return self.path

    @property
    def url(self) -> str:
        return f"{self.scheme}://{self.host}{self.target}"


@dataclass(frozen=True)
class MirrorResult:
    """Outcome of a mirror dispatch. Failures are recorded here, never raised."""

    url: str
    ok: bool
    status_code: int | None = None
    error: str | None = None
