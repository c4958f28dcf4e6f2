"""Tests for bunny_uploader services."""
import httpx
import pytest

from bunny_uploader.errors import ConfigError, PurgeError, StorageAPIError, UploadCanceled
from bunny_uploader.models import CdnConfig, OrchestratorConfig, OutcomeKind, StorageConfig
from bunny_uploader.orchestrator import UploadOrchestrator
from bunny_uploader.services.api_client import HTTPAPIClient
from bunny_uploader.services.cdn import CdnService
from bunny_uploader.services.storage import StorageService
from bunny_uploader.utils.cancellation import CancellationToken


STORAGE = StorageConfig("storage-key", "my-zone", "ny.storage.bunnycdn.com")
CDN = CdnConfig("api-key", "https://api.example.test")


class Recorder:
    """httpx.MockTransport handler that records requests."""

    def __init__(self, status_code: int = 201, body: str = ""):
        self.status_code = status_code
        self.body = body
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, text=self.body)


class TestStorageService:
    @pytest.mark.asyncio
    async def test_upload_puts_file(self, tmp_path):
        local = tmp_path / "a.txt"
        local.write_bytes(b"hello")
        recorder = Recorder(201)

        async with httpx.AsyncClient(transport=httpx.MockTransport(recorder)) as client:
            await StorageService(client, STORAGE).upload(CancellationToken(), local, "sub/a.txt")

        request = recorder.requests[0]
        assert request.method == "PUT"
        assert str(request.url) == "https://ny.storage.bunnycdn.com/my-zone/sub/a.txt"
        assert request.headers["AccessKey"] == "storage-key"
        assert request.headers["Content-Type"] == "application/octet-stream"
        assert request.headers["accept"] == "application/json"
        assert request.content == b"hello"

    @pytest.mark.asyncio
    async def test_upload_rejects_non_created_status(self, tmp_path):
        local = tmp_path / "a.txt"
        local.write_bytes(b"hello")
        recorder = Recorder(401, body="Unauthorized")

        async with httpx.AsyncClient(transport=httpx.MockTransport(recorder)) as client:
            with pytest.raises(StorageAPIError) as exc_info:
                await StorageService(client, STORAGE).upload(CancellationToken(), local, "a.txt")

        assert exc_info.value.status_code == 401
        assert "Unauthorized" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_upload_with_cancelled_token(self, tmp_path):
        local = tmp_path / "a.txt"
        local.write_bytes(b"hello")
        recorder = Recorder(201)
        token = CancellationToken()
        token.cancel()

        async with httpx.AsyncClient(transport=httpx.MockTransport(recorder)) as client:
            with pytest.raises(UploadCanceled):
                await StorageService(client, STORAGE).upload(token, local, "a.txt")

        assert recorder.requests == []

    def test_url_for_quotes_path(self):
        service = StorageService(None, STORAGE)
        assert (
            service.url_for("dir name/file #1.txt")
            == "https://ny.storage.bunnycdn.com/my-zone/dir%20name/file%20%231.txt"
        )
        assert service.url_for("\\win\\path.txt").endswith("/my-zone/win/path.txt")


class TestCdnService:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [200, 204])
    async def test_purge_pull_zone(self, status):
        recorder = Recorder(status)

        async with HTTPAPIClient(CDN, transport=httpx.MockTransport(recorder)) as api:
            await CdnService(api).purge_pull_zone("12345")

        request = recorder.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://api.example.test/pullzone/12345/purgeCache"
        assert request.headers["AccessKey"] == "api-key"

    @pytest.mark.asyncio
    async def test_purge_pull_zone_failure(self):
        recorder = Recorder(404, body="not found")

        async with HTTPAPIClient(CDN, transport=httpx.MockTransport(recorder)) as api:
            with pytest.raises(PurgeError, match="status=404"):
                await CdnService(api).purge_pull_zone("12345")

    @pytest.mark.asyncio
    async def test_purge_urls(self):
        recorder = Recorder(200)
        urls = ["https://cdn.example.test/a.css", "https://cdn.example.test/img/*"]

        async with HTTPAPIClient(CDN, transport=httpx.MockTransport(recorder)) as api:
            purged = await CdnService(api).purge_urls(urls)

        assert purged == urls
        assert [r.url.path for r in recorder.requests] == ["/purge", "/purge"]
        assert recorder.requests[1].url.params["url"] == "https://cdn.example.test/img/*"

    @pytest.mark.asyncio
    async def test_api_client_requires_context(self):
        with pytest.raises(RuntimeError, match="not initialized"):
            await HTTPAPIClient(CDN).post("/purge")


class TestUploadOrchestrator:
    @pytest.mark.asyncio
    async def test_upload_folder(self, sample_tree):
        recorder = Recorder(201)

        async with UploadOrchestrator(
            storage_config=STORAGE, transport=httpx.MockTransport(recorder)
        ) as bunny:
            result = await bunny.upload_folder(OrchestratorConfig(sample_tree, concurrency_limit=2))

        assert result.success is True
        assert sorted(r.url.path for r in recorder.requests) == [
            "/my-zone/a.txt",
            "/my-zone/b.txt",
            "/my-zone/sub/fail.txt",
        ]

    @pytest.mark.asyncio
    async def test_upload_file_with_dest_folder(self, tmp_path):
        local = tmp_path / "report.pdf"
        local.write_bytes(b"%PDF")
        recorder = Recorder(201)

        async with UploadOrchestrator(
            storage_config=STORAGE, transport=httpx.MockTransport(recorder)
        ) as bunny:
            outcome = await bunny.upload_file(local, dest="/docs/")

        assert outcome.success is True
        assert outcome.item.relative_path == "docs/report.pdf"
        assert recorder.requests[0].url.path == "/my-zone/docs/report.pdf"

    @pytest.mark.asyncio
    async def test_upload_file_exhausts_retries(self, tmp_path):
        local = tmp_path / "a.txt"
        local.write_bytes(b"x")
        recorder = Recorder(500)

        async with UploadOrchestrator(
            storage_config=STORAGE, transport=httpx.MockTransport(recorder)
        ) as bunny:
            outcome = await bunny.upload_file(local, max_attempts=2, retry_delay=0)

        assert outcome.kind == OutcomeKind.TRANSIENT_FAILURE
        assert isinstance(outcome.cause, StorageAPIError)
        assert len(recorder.requests) == 2

    @pytest.mark.asyncio
    async def test_purge_cache_full(self):
        recorder = Recorder(204)

        async with UploadOrchestrator(
            cdn_config=CDN, transport=httpx.MockTransport(recorder)
        ) as bunny:
            await bunny.purge_cache_full("777")

        assert recorder.requests[0].url.path == "/pullzone/777/purgeCache"

    @pytest.mark.asyncio
    async def test_unconfigured_services(self):
        async with UploadOrchestrator() as bunny:
            with pytest.raises(ConfigError):
                bunny.storage
            with pytest.raises(ConfigError):
                bunny.cdn


def test_services_satisfy_protocols():
    from bunny_uploader.protocols import ICachePurger, IUploader

    assert isinstance(StorageService(None, STORAGE), IUploader)
    assert isinstance(CdnService(HTTPAPIClient(CDN)), ICachePurger)
