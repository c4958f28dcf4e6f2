"""
Error taxonomy for bunny_uploader.

Core failures derive from UploadError; HTTP failures from APIError.
"""
from pathlib import Path
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .models import WorkItem


class BunnyError(Exception):
    """Base class for all bunny_uploader errors."""


class ConfigError(BunnyError):
    """Raised when configuration is missing or invalid."""


class UploadError(BunnyError):
    """Base class for folder-upload failures."""


class EnumerationError(UploadError):
    """The tree walk failed (root missing, not a directory, permission denied)."""

    def __init__(self, root: Path, cause: Optional[BaseException] = None):
        self.root = Path(root)
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"error walking directory {self.root}{detail}")


class PathError(UploadError):
    """Relative path of an entry could not be computed against the root."""

    def __init__(self, path: Path, root: Path, cause: Optional[BaseException] = None):
        self.path = Path(path)
        self.root = Path(root)
        self.cause = cause
        super().__init__(f"cannot compute path of {self.path} relative to {self.root}")


class TransientUploadError(UploadError):
    """A single upload attempt failed and may be retried."""


class AttemptTimeoutError(TransientUploadError):
    """A single upload attempt exceeded its timeout."""

    def __init__(self, relative_path: str, timeout: float):
        self.relative_path = relative_path
        self.timeout = timeout
        super().__init__(f"upload of {relative_path} timed out after {timeout:g}s")


class FatalUploadError(UploadError):
    """All attempts for one file failed."""

    def __init__(self, item: "WorkItem", cause: Optional[BaseException], attempts: int):
        self.item = item
        self.cause = cause
        self.attempts = attempts
        super().__init__(
            f"failed to upload {item.relative_path} after {attempts} attempt(s): {cause}"
        )


class UploadCanceled(UploadError):
    """Cancellation was observed while waiting or uploading."""


class APIError(BunnyError):
    """Bunny.net answered with an unexpected HTTP status."""

    def __init__(self, message: str, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"{message}: status={status_code} body={body}")


class StorageAPIError(APIError):
    """Storage zone rejected an upload."""


class PurgeError(APIError):
    """CDN cache purge request failed."""
