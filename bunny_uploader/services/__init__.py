"""Services for bunny_uploader."""
from .api_client import HTTPAPIClient
from .cdn import CdnService
from .storage import StorageService

__all__ = [
    "HTTPAPIClient",
    "CdnService",
    "StorageService",
]
