"""Shared async HTTP plumbing for the external venue clients.

Maps transport failures and non-2xx responses onto UpstreamHttpError and
undecodable bodies onto DataShapeError, so each concrete client only deals
with its own envelope.
"""

from typing import Any

import httpx

from pairwatch.exceptions import DataShapeError, UpstreamHttpError
from pairwatch.logging import get_logger

logger = get_logger(__name__)


class HttpVenueClient:
    """Base class owning (or borrowing) an httpx.AsyncClient.

    Args:
        base_url: Prefix for relative request paths ("" for absolute URLs).
        timeout: Request timeout in seconds when the client is created here.
        client: Optional pre-built client (tests inject one backed by
            httpx.MockTransport). A borrowed client is not closed by close().
    """

    service_name = "upstream"

    def __init__(
        self,
        base_url: str = "",
        timeout: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        """Release the underlying connection pool if this instance created it."""
        if self._owns_client:
            await self._client.aclose()
            logger.debug("http_client_closed", service=self.service_name)

    async def _request(
        self,
        method: str,
        path_or_url: str,
        *,
        headers: dict[str, str] | None = None,
        content: str | bytes | None = None,
        json: Any = None,
    ) -> httpx.Response:
        """Send a request and return the response, raising on non-2xx."""
        url = (
            path_or_url
            if path_or_url.startswith(("http://", "https://"))
            else f"{self._base_url}{path_or_url}"
        )
        try:
            response = await self._client.request(
                method, url, headers=headers, content=content, json=json
            )
        except httpx.HTTPError as e:
            raise UpstreamHttpError(self.service_name, None, str(e)) from e

        if not response.is_success:
            raise UpstreamHttpError(
                self.service_name, response.status_code, response.text
            )
        return response

    def _decode_json(self, response: httpx.Response) -> Any:
        """Decode a JSON body, mapping decode errors onto DataShapeError."""
        try:
            return response.json()
        except ValueError as e:
            raise DataShapeError(
                f"{self.service_name} returned a non-JSON body: {response.text[:200]}"
            ) from e
