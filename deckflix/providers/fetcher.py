"""Single GET against one provider endpoint."""

import logging
import time
from typing import Any

import httpx

from deckflix.exceptions import MalformedResponse, NetworkError, UpstreamHttpError

log = logging.getLogger(__name__)

HEADERS = {
    "User-Agent": "DeckFlix/1.0",
    "Accept": "application/json",
}

DEFAULT_TIMEOUT = 10.0


class ProviderFetcher:
    """
    Thin async JSON client shared by the aggregator and the stream resolver.

    Every request is bounded by `timeout`; a slow provider just times out on
    its own and the caller moves on to the next one.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, client: httpx.AsyncClient | None = None):
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers=HEADERS,
                follow_redirects=True,
            )
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        """Close the underlying client if we created it."""
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()

    async def get_json(self, url: str) -> Any:
        """
        Fetch `url` and decode its JSON body.

        Raises:
            NetworkError: transport failure, timeout or an unusable URL.
            UpstreamHttpError: non-2xx status.
            MalformedResponse: body is not JSON.
        """
        client = self._get_client()
        start = time.monotonic()
        try:
            res = await client.get(url, timeout=self.timeout)
        except httpx.TimeoutException as e:
            raise NetworkError(f"Timed out after {self.timeout:g}s: {url}") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Network error: {e}") from e
        except httpx.InvalidURL as e:
            raise NetworkError(f"Invalid URL {url}: {e}") from e

        log.debug("GET %s -> %s in %.2fs", url, res.status_code, time.monotonic() - start)

        if not res.is_success:
            raise UpstreamHttpError(res.status_code, url)

        try:
            return res.json()
        except ValueError as e:
            raise MalformedResponse(f"JSON parse error: {e}") from e
