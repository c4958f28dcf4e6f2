"""HTTP adapter for the Bunny.net account API."""
from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from ..models import CdnConfig


class HTTPAPIClient:
    """
    HTTP client adapter for API calls.

    Sends the ``AccessKey`` header on every request. Requests are not
    retried: callers decide what a failed status means.
    """

    def __init__(
        self,
        config: CdnConfig,
        timeout: float = 60,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._config = config
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        self._client = httpx.AsyncClient(
            base_url=self._config.api_url,
            timeout=self._timeout,
            transport=self._transport,
            headers={
                "AccessKey": self._config.api_key,
                "Content-Type": "application/json",
                "accept": "application/json",
            },
        )
        return self

    async def __aexit__(self, *args):
        if self._client:
            await self._client.aclose()
            self._client = None

    async def post(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        if not self._client:
            raise RuntimeError("HTTPAPIClient not initialized. Use 'async with' context.")
        return await self._client.post(endpoint, params=params)
