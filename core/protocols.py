"""Shared protocol definitions."""

from typing import Protocol


class RequestLogger(Protocol):
    """Protocol for request logging (Dashboard)."""

    def log_route(self, route: str, method: str, url: str) -> None: ...
    def log_attribution(self, request_uri: str) -> None: ...
    def log_mirror(self, url: str, status: int) -> None: ...
    def log_mirror_error(self, url: str, error: str) -> None: ...
    def log_error(self, route: str, status: int, message: str) -> None: ...
    def log_access(
        self,
        method: str,
        path: str,
        status: int,
        duration_ms: float,
        *,
        client: str | None = None,
    ) -> None: ...
