"""Tests for bunny_uploader models."""
from pathlib import Path

import pytest

from bunny_uploader.errors import ConfigError, FatalUploadError
from bunny_uploader.models import (
    DEFAULT_API_URL,
    DEFAULT_ZONE_HOST,
    CdnConfig,
    OrchestratorConfig,
    OutcomeKind,
    RunResult,
    RunState,
    StorageConfig,
    UploadOutcome,
    WorkItem,
)


class TestUploadOutcome:
    def test_ok_outcome(self):
        item = WorkItem(Path("/data/a.txt"), "a.txt")
        outcome = UploadOutcome.ok(item, attempts=2)
        assert outcome.success is True
        assert outcome.kind == OutcomeKind.SUCCESS
        assert outcome.attempts == 2
        assert outcome.cause is None

    def test_transient_outcome(self):
        item = WorkItem(Path("/data/a.txt"), "a.txt")
        cause = RuntimeError("boom")
        outcome = UploadOutcome.transient(item, cause, attempts=3)
        assert outcome.success is False
        assert outcome.kind == OutcomeKind.TRANSIENT_FAILURE
        assert outcome.cause is cause

    def test_canceled_outcome(self):
        outcome = UploadOutcome.canceled(WorkItem(Path("/data/a.txt"), "a.txt"))
        assert outcome.kind == OutcomeKind.CANCELED
        assert outcome.success is False

    def test_immutable(self):
        outcome = UploadOutcome.ok(WorkItem(Path("/data/a.txt"), "a.txt"))
        with pytest.raises(Exception):
            outcome.attempts = 5


class TestWorkItem:
    def test_name(self):
        item = WorkItem(Path("/data/sub/b.txt"), "sub/b.txt")
        assert item.name == "b.txt"


class TestRunResult:
    def test_success(self):
        result = RunResult(uploaded=3, enumerated=3)
        assert result.success is True
        assert result.state == RunState.ALL_DONE
        result.raise_for_error()

    def test_raise_for_error(self):
        item = WorkItem(Path("/data/a.txt"), "a.txt")
        error = FatalUploadError(item, RuntimeError("boom"), 3)
        result = RunResult(error=error, state=RunState.ABORTED)
        assert result.success is False
        with pytest.raises(FatalUploadError, match="a.txt after 3 attempt"):
            result.raise_for_error()


class TestOrchestratorConfig:
    def test_defaults(self):
        config = OrchestratorConfig("./public")
        assert config.root_path == Path("./public")
        assert config.concurrency_limit == 10
        assert config.attempt_timeout == 10.0
        assert config.max_attempts == 3
        assert config.retry_delay == 2.0
        assert config.fail_fast is True

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"concurrency_limit": 0},
            {"attempt_timeout": 0},
            {"max_attempts": 0},
            {"retry_delay": -1},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ConfigError):
            OrchestratorConfig("./public", **kwargs)


class TestStorageConfig:
    def test_base_url(self):
        config = StorageConfig("key", "my-zone")
        assert config.zone_host == DEFAULT_ZONE_HOST
        assert config.base_url == f"https://{DEFAULT_ZONE_HOST}/my-zone"

    def test_missing_access_key(self):
        with pytest.raises(ConfigError, match="access key"):
            StorageConfig("", "my-zone")

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("STORAGE_ACCESS_KEY", "env-key")
        monkeypatch.setenv("STORAGE_ZONE_NAME", "env-zone")
        monkeypatch.setenv("STORAGE_ZONE_HOSTNAME", "ny.storage.bunnycdn.com")
        config = StorageConfig.from_env()
        assert config.access_key == "env-key"
        assert config.zone_name == "env-zone"
        assert config.zone_host == "ny.storage.bunnycdn.com"

    def test_from_env_arguments_win(self, monkeypatch):
        monkeypatch.setenv("STORAGE_ACCESS_KEY", "env-key")
        monkeypatch.setenv("STORAGE_ZONE_NAME", "env-zone")
        monkeypatch.delenv("STORAGE_ZONE_HOSTNAME", raising=False)
        config = StorageConfig.from_env(access_key="flag-key")
        assert config.access_key == "flag-key"
        assert config.zone_name == "env-zone"
        assert config.zone_host == DEFAULT_ZONE_HOST

    def test_from_env_missing(self, monkeypatch):
        monkeypatch.delenv("STORAGE_ACCESS_KEY", raising=False)
        monkeypatch.delenv("STORAGE_ZONE_NAME", raising=False)
        with pytest.raises(ConfigError):
            StorageConfig.from_env()


class TestCdnConfig:
    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("BUNNYCDN_API_KEY", "api-key")
        monkeypatch.delenv("BUNNYCDN_API_URL", raising=False)
        config = CdnConfig.from_env()
        assert config.api_key == "api-key"
        assert config.api_url == DEFAULT_API_URL

    def test_missing_key(self, monkeypatch):
        monkeypatch.delenv("BUNNYCDN_API_KEY", raising=False)
        with pytest.raises(ConfigError, match="BUNNYCDN_API_KEY"):
            CdnConfig.from_env()
