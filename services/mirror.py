"""Best-effort duplication of inbound requests to an observer host."""

from urllib.parse import urlsplit

import httpx

from core.exceptions import MirrorError
from core.headers import HeaderBuilder, encode_headers
from core.protocols import RequestLogger
from core.request_types import InboundRequest, MirrorResult


class MirrorClient:
    """Send a copy of each request to the mirror host and discard the reply."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        logger: RequestLogger,
        header_builder: HeaderBuilder | None = None,
    ) -> None:
        self._client = client
        self._base_url = base_url
        self._base_path = urlsplit(base_url).path
        self._logger = logger
        self._headers = header_builder or HeaderBuilder()

    @property
    def base_url(self) -> str:
        return self._base_url

    async def mirror(self, inbound: InboundRequest) -> MirrorResult:
        """Mirror ``inbound`` as received. Never raises."""
        url = f"{self._base_url}{inbound.request_uri}"
        try:
            status = await self._send(url, inbound)
        except MirrorError as e:
            result = MirrorResult(url=url, ok=False, error=str(e))
        else:
            result = MirrorResult(url=url, ok=200 <= status < 300, status_code=status)

        self._report(result)
        return result

    async def _send(self, url: str, inbound: InboundRequest) -> int:
        try:
            request = self._client.build_request(
                inbound.method,
                url,
                headers=encode_headers(self._headers.build_mirror_headers(inbound.headers)),
                content=inbound.body,
                extensions={"target": f"{self._base_path}{inbound.request_uri}".encode("latin-1")},
            )
            response = await self._client.send(request, stream=True)
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError, ValueError) as e:
            raise MirrorError(f"{type(e).__name__}: {e}", url) from e

        # Body is never read
        await response.aclose()
        return response.status_code

    def _report(self, result: MirrorResult) -> None:
        # A failing log sink must not reach the primary request either
        try:
            if result.ok:
                self._logger.log_mirror(result.url, result.status_code)
            elif result.error is not None:
                self._logger.log_mirror_error(self._base_url, result.error)
            else:
                self._logger.log_mirror_error(
                    self._base_url, f"mirror responded with status {result.status_code}"
                )
        except OSError:
            pass
