"""
CDN Service - Single Responsibility: invalidate Bunny.net pull zone caches.

Doc: https://docs.bunny.net/reference/pullzonepublic_purgecachepostbytag
API: https://api.bunny.net/pullzone/{id}/purgeCache
"""
import logging
from typing import Iterable, List

from ..errors import PurgeError
from .api_client import HTTPAPIClient

logger = logging.getLogger(__name__)

# Older API versions answer 204, newer ones 200.
PURGE_OK_STATUSES = (200, 204)


class CdnService:
    """Purges pull zone caches. Implements ICachePurger."""

    def __init__(self, api_client: HTTPAPIClient):
        self._api = api_client

    async def purge_pull_zone(self, pull_zone_id: str) -> None:
        """
        Purge the full cache of a pull zone.

        Raises:
            PurgeError: the API answered anything but 200/204.
        """
        logger.debug(f"Purging full cache for pull zone {pull_zone_id}")
        response = await self._api.post(f"/pullzone/{pull_zone_id}/purgeCache")
        if response.status_code not in PURGE_OK_STATUSES:
            raise PurgeError("failed to purge cache", response.status_code, response.text)
        logger.info(f"Purged cache for pull zone {pull_zone_id}")

    async def purge_url(self, url: str) -> None:
        """Purge a single cached URL (wildcards allowed by the API)."""
        logger.debug(f"Purging URL {url}")
        response = await self._api.post("/purge", params={"url": url, "async": "false"})
        if response.status_code not in PURGE_OK_STATUSES:
            raise PurgeError(f"failed to purge {url}", response.status_code, response.text)
        logger.info(f"Purged {url}")

    async def purge_urls(self, urls: Iterable[str]) -> List[str]:
        """Purge each URL in turn; stops at the first failure. Returns purged URLs."""
        purged = []
        for url in urls:
            await self.purge_url(url)
            purged.append(url)
        return purged
