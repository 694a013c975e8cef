"""Custom exception hierarchy for the Segment proxy."""


class ProxyError(Exception):
    """Base exception for all proxy errors."""


class ConfigurationError(ProxyError):
    """Raised when configuration is missing or invalid."""


class UpstreamError(ProxyError):
    """Raised when forwarding to an upstream fails.

    Attributes:
        message: Error message
        status_code: HTTP status code returned to the caller (optional)
        route: Upstream route name (e.g., 'CDN', 'Tracking API')
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        route: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.route = route


class UpstreamTimeoutError(UpstreamError):
    """Raised when an upstream request times out."""

    def __init__(
        self,
        message: str,
        route: str | None = None,
    ) -> None:
        super().__init__(message, status_code=504, route=route)


class UpstreamConnectionError(UpstreamError):
    """Raised when unable to reach an upstream."""

    def __init__(
        self,
        message: str,
        route: str | None = None,
    ) -> None:
        super().__init__(message, status_code=502, route=route)


class MirrorError(ProxyError):
    """Mirror dispatch failed. Contained by the mirror client, never propagated."""

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url
