"""
bunny_uploader - concurrent folder uploads and cache purges for Bunny.net.

Usage:
    from bunny_uploader import UploadOrchestrator, OrchestratorConfig, StorageConfig

    async with UploadOrchestrator(storage_config=StorageConfig.from_env()) as bunny:
        result = await bunny.upload_folder(
            OrchestratorConfig("./public", concurrency_limit=5, fail_fast=True)
        )
        result.raise_for_error()

    # Any uploader works with the core, not just Bunny storage
    from bunny_uploader import run_upload
    result = await run_upload("./public", 3, 10.0, True, my_uploader)
"""
from .errors import (
    BunnyError,
    ConfigError,
    UploadError,
    EnumerationError,
    PathError,
    TransientUploadError,
    AttemptTimeoutError,
    FatalUploadError,
    UploadCanceled,
    APIError,
    StorageAPIError,
    PurgeError,
)
from .models import (
    WorkItem,
    OutcomeKind,
    UploadOutcome,
    RunState,
    RunResult,
    OrchestratorConfig,
    StorageConfig,
    CdnConfig,
)
from .orchestrator import (
    UploadOrchestrator,
    FolderUploadOrchestrator,
    RetryPolicy,
    TreeEnumerator,
    run_upload,
)
from .protocols import IUploader, ICachePurger
from .services import CdnService, HTTPAPIClient, StorageService
from .utils import CancellationToken, EventEmitter

__version__ = "0.3.0"
__all__ = [
    # Main
    "UploadOrchestrator",
    "FolderUploadOrchestrator",
    "RetryPolicy",
    "TreeEnumerator",
    "run_upload",
    "CancellationToken",
    "EventEmitter",
    # Models
    "WorkItem",
    "OutcomeKind",
    "UploadOutcome",
    "RunState",
    "RunResult",
    "OrchestratorConfig",
    "StorageConfig",
    "CdnConfig",
    # Protocols
    "IUploader",
    "ICachePurger",
    # Services
    "StorageService",
    "CdnService",
    "HTTPAPIClient",
    # Errors
    "BunnyError",
    "ConfigError",
    "UploadError",
    "EnumerationError",
    "PathError",
    "TransientUploadError",
    "AttemptTimeoutError",
    "FatalUploadError",
    "UploadCanceled",
    "APIError",
    "StorageAPIError",
    "PurgeError",
]
