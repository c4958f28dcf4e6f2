"""Core orchestrator - wires configuration, HTTP clients and upload workflows."""
import logging
from pathlib import Path
from typing import Iterable, List, Optional

import httpx

from ..errors import ConfigError, UploadError
from ..models import (
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_RETRY_DELAY,
    CdnConfig,
    OrchestratorConfig,
    RunResult,
    StorageConfig,
    UploadOutcome,
    WorkItem,
)
from ..services.api_client import HTTPAPIClient
from ..services.cdn import CdnService
from ..services.storage import StorageService
from ..utils.cancellation import CancellationToken
from ..utils.events import EventEmitter
from .file_collector import TreeEnumerator
from .folder_upload import FolderUploadOrchestrator
from .retry import RetryPolicy

logger = logging.getLogger(__name__)


class UploadOrchestrator:
    """
    Orchestrates Bunny.net uploads and cache purges using injected config.

    Usage:
        storage = StorageConfig(access_key, "my-zone")
        async with UploadOrchestrator(storage_config=storage) as bunny:
            result = await bunny.upload_folder(OrchestratorConfig("./public"))

        async with UploadOrchestrator(cdn_config=CdnConfig.from_env()) as bunny:
            await bunny.purge_cache_full("12345")
    """

    def __init__(
        self,
        storage_config: Optional[StorageConfig] = None,
        cdn_config: Optional[CdnConfig] = None,
        timeout: float = 60,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize orchestrator with dependencies.

        Args:
            storage_config: Storage zone credentials (needed for uploads)
            cdn_config: Account API credentials (needed for purges)
            timeout: Transport-level HTTP timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self._storage_config = storage_config
        self._cdn_config = cdn_config
        self._timeout = timeout
        self._transport = transport

        # Initialized in __aenter__
        self._http: Optional[httpx.AsyncClient] = None
        self._api_client: Optional[HTTPAPIClient] = None
        self._storage: Optional[StorageService] = None
        self._cdn: Optional[CdnService] = None

    async def __aenter__(self):
        """Initialize services."""
        if self._storage_config is not None:
            self._http = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
            self._storage = StorageService(self._http, self._storage_config)

        if self._cdn_config is not None:
            self._api_client = HTTPAPIClient(
                self._cdn_config, timeout=self._timeout, transport=self._transport
            )
            await self._api_client.__aenter__()
            self._cdn = CdnService(self._api_client)

        return self

    async def __aexit__(self, *args):
        """Cleanup resources."""
        if self._api_client:
            await self._api_client.__aexit__(*args)
            self._api_client = None
        if self._http:
            await self._http.aclose()
            self._http = None

    @property
    def storage(self) -> StorageService:
        if self._storage is None:
            raise ConfigError("storage zone is not configured")
        return self._storage

    @property
    def cdn(self) -> CdnService:
        if self._cdn is None:
            raise ConfigError("CDN API key is not configured")
        return self._cdn

    async def upload_folder(
        self,
        config: OrchestratorConfig,
        events: Optional[EventEmitter] = None,
        token: Optional[CancellationToken] = None,
    ) -> RunResult:
        """Upload every file under ``config.root_path`` preserving the tree layout."""
        return await FolderUploadOrchestrator(config, self.storage, events).run(token)

    async def upload_file(
        self,
        path: Path,
        dest: Optional[str] = None,
        attempt_timeout: float = 10.0,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        token: Optional[CancellationToken] = None,
    ) -> UploadOutcome:
        """
        Upload a single file with the same retry policy as folder uploads.

        Args:
            path: Local file
            dest: Remote path inside the zone (default: the file name);
                a trailing slash keeps the file name under that folder
        """
        path = Path(path)
        if not path.is_file():
            raise UploadError(f"not a file: {path}")

        enumerator = TreeEnumerator(path.parent)
        item = enumerator.make_item(path)
        if dest:
            remote = dest.lstrip("/")
            if remote.endswith("/"):
                remote += path.name
            item = WorkItem(absolute_path=item.absolute_path, relative_path=remote)

        logger.info(f"Uploading file: {path} -> {item.relative_path}")
        token = token or CancellationToken()
        policy = RetryPolicy(attempt_timeout, max_attempts=max_attempts, retry_delay=retry_delay)
        storage = self.storage
        return await policy.run(
            item,
            lambda: storage.upload(token, item.absolute_path, item.relative_path),
            token,
        )

    async def purge_cache_full(self, pull_zone_id: str) -> None:
        await self.cdn.purge_pull_zone(pull_zone_id)

    async def purge_cache_urls(self, urls: Iterable[str]) -> List[str]:
        return await self.cdn.purge_urls(urls)
