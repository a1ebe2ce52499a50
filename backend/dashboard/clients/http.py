"""Generic "fetch JSON from URL" client for market-data providers."""

from typing import Any

import httpx


class JsonFetcher:
    """Async JSON-over-HTTP client with a lazily created connection pool."""

    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def fetch_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        """
        GET a URL and decode its JSON body.

        Raises:
            httpx.HTTPStatusError: non-2xx response
            httpx.HTTPError: transport failure
        """
        client = await self._get_client()
        response = await client.get(url, params=params)
        response.raise_for_status()
        return response.json()
