"""
Models for bunny_uploader.

Immutable dataclasses shared by the orchestrator, services and CLI.
"""
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from .errors import ConfigError


DEFAULT_ZONE_HOST = "sg.storage.bunnycdn.com"
DEFAULT_API_URL = "https://api.bunny.net"
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_DELAY = 2.0


@dataclass(frozen=True)
class WorkItem:
    """One file queued for upload: where it lives and where it goes."""
    absolute_path: Path
    relative_path: str  # always forward slashes

    @property
    def name(self) -> str:
        return self.absolute_path.name


class OutcomeKind(Enum):
    """Final state of one file after the retry policy ran."""
    SUCCESS = "success"
    TRANSIENT_FAILURE = "transient_failure"
    FATAL_FAILURE = "fatal_failure"
    CANCELED = "canceled"


@dataclass(frozen=True)
class UploadOutcome:
    """Immutable result of uploading one WorkItem."""
    item: WorkItem
    kind: OutcomeKind = OutcomeKind.SUCCESS
    cause: Optional[BaseException] = None
    attempts: int = 0

    @property
    def success(self) -> bool:
        return self.kind == OutcomeKind.SUCCESS

    @classmethod
    def ok(cls, item: WorkItem, attempts: int = 1):
        return cls(item=item, kind=OutcomeKind.SUCCESS, attempts=attempts)

    @classmethod
    def transient(cls, item: WorkItem, cause: BaseException, attempts: int):
        return cls(item=item, kind=OutcomeKind.TRANSIENT_FAILURE, cause=cause, attempts=attempts)

    @classmethod
    def fatal(cls, item: WorkItem, cause: BaseException, attempts: int):
        return cls(item=item, kind=OutcomeKind.FATAL_FAILURE, cause=cause, attempts=attempts)

    @classmethod
    def canceled(cls, item: WorkItem, attempts: int = 0):
        return cls(item=item, kind=OutcomeKind.CANCELED, attempts=attempts)


class RunState(Enum):
    """Terminal state of a folder upload run."""
    ALL_DONE = "all_done"
    ABORTED = "aborted"


@dataclass(frozen=True)
class RunResult:
    """
    Result of one folder upload run.

    Carries at most one error (the first one reported) plus aggregate
    counters. Individual file outcomes are not kept.
    """
    error: Optional[BaseException] = None
    state: RunState = RunState.ALL_DONE
    enumerated: int = 0
    uploaded: int = 0
    failed: int = 0

    @property
    def success(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


@dataclass(frozen=True)
class OrchestratorConfig:
    """Immutable configuration for one folder upload run."""
    root_path: Path
    concurrency_limit: int = 10
    attempt_timeout: float = 10.0  # seconds
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    retry_delay: float = DEFAULT_RETRY_DELAY  # seconds
    fail_fast: bool = True

    def __post_init__(self):
        object.__setattr__(self, "root_path", Path(self.root_path))
        if self.concurrency_limit <= 0:
            raise ConfigError(f"concurrency limit must be > 0, got {self.concurrency_limit}")
        if self.attempt_timeout <= 0:
            raise ConfigError(f"timeout must be > 0, got {self.attempt_timeout}")
        if self.max_attempts <= 0:
            raise ConfigError(f"max attempts must be > 0, got {self.max_attempts}")
        if self.retry_delay < 0:
            raise ConfigError(f"retry delay must be >= 0, got {self.retry_delay}")


@dataclass(frozen=True)
class StorageConfig:
    """Credentials and location of a Bunny.net storage zone."""
    access_key: str
    zone_name: str
    zone_host: str = DEFAULT_ZONE_HOST

    def __post_init__(self):
        if not self.access_key:
            raise ConfigError("storage access key is not set")
        if not self.zone_name:
            raise ConfigError("storage zone name is not set")
        if not self.zone_host:
            raise ConfigError("storage zone host is not set")

    @property
    def base_url(self) -> str:
        return f"https://{self.zone_host}/{self.zone_name}"

    @classmethod
    def from_env(
        cls,
        access_key: Optional[str] = None,
        zone_name: Optional[str] = None,
        zone_host: Optional[str] = None,
    ) -> "StorageConfig":
        """
        Build from STORAGE_ACCESS_KEY, STORAGE_ZONE_NAME and STORAGE_ZONE_HOSTNAME.

        Non-empty arguments take precedence over the environment.
        """
        return cls(
            access_key=access_key or os.getenv("STORAGE_ACCESS_KEY", ""),
            zone_name=zone_name or os.getenv("STORAGE_ZONE_NAME", ""),
            zone_host=zone_host or os.getenv("STORAGE_ZONE_HOSTNAME") or DEFAULT_ZONE_HOST,
        )


@dataclass(frozen=True)
class CdnConfig:
    """Credentials for the Bunny.net account API (pull zones, purges)."""
    api_key: str
    api_url: str = DEFAULT_API_URL

    def __post_init__(self):
        if not self.api_key:
            raise ConfigError("CDN API key is not set (BUNNYCDN_API_KEY)")

    @classmethod
    def from_env(cls, api_key: Optional[str] = None) -> "CdnConfig":
        return cls(
            api_key=api_key or os.getenv("BUNNYCDN_API_KEY", ""),
            api_url=os.getenv("BUNNYCDN_API_URL") or DEFAULT_API_URL,
        )
