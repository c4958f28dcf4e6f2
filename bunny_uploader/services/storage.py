"""
Storage Service - Single Responsibility: upload files to a Bunny.net storage zone.

Doc: https://docs.bunny.net/reference/put_-storagezonename-path-filename
API: https://{region}.storage.bunnycdn.com/{STORAGE_ZONE_NAME}/{path}/{fileName}

Missing directories on the remote side are created by the API.
"""
import asyncio
import logging
from pathlib import Path
from urllib.parse import quote

import httpx

from ..errors import StorageAPIError, UploadCanceled
from ..models import StorageConfig
from ..utils.cancellation import CancellationToken

logger = logging.getLogger(__name__)


class StorageService:
    """
    Service for uploading files to a storage zone.

    Implements IUploader. The httpx client is owned by the caller so one
    connection pool is shared by every worker.
    """

    def __init__(self, client: httpx.AsyncClient, config: StorageConfig):
        """
        Initialize storage service.

        Args:
            client: Shared async HTTP client
            config: Storage zone credentials and host
        """
        self._client = client
        self._config = config

    def url_for(self, relative_path: str) -> str:
        """Remote URL of ``relative_path`` inside the storage zone."""
        key = quote(relative_path.replace("\\", "/").lstrip("/"), safe="/")
        return f"{self._config.base_url}/{key}"

    async def upload(
        self,
        token: CancellationToken,
        local_path: Path,
        relative_path: str,
    ) -> None:
        """
        PUT one file into the storage zone.

        Cancellation is delivered by cancelling this coroutine; the token is
        checked before any I/O starts.

        Raises:
            OSError: the local file could not be read
            httpx.HTTPError: transport failure
            StorageAPIError: the API did not answer 201 Created
        """
        if token.is_cancelled:
            raise UploadCanceled(f"upload of {relative_path} cancelled")

        data = await asyncio.to_thread(Path(local_path).read_bytes)
        url = self.url_for(relative_path)

        response = await self._client.put(
            url,
            content=data,
            headers={
                "Content-Type": "application/octet-stream",
                "accept": "application/json",
                "AccessKey": self._config.access_key,
            },
        )

        if response.status_code != httpx.codes.CREATED:
            raise StorageAPIError(
                f"failed to upload {local_path}", response.status_code, response.text
            )

        logger.info(f"Successfully uploaded file: {local_path}")
