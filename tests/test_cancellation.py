"""Tests for CancellationToken and FirstErrorSlot."""
import asyncio

import pytest

from bunny_uploader.errors import AttemptTimeoutError, TransientUploadError, UploadCanceled
from bunny_uploader.orchestrator.error_slot import FirstErrorSlot
from bunny_uploader.utils.cancellation import CancellationToken


class TestCancellationToken:
    @pytest.mark.asyncio
    async def test_cancel_is_idempotent(self):
        token = CancellationToken()
        assert token.is_cancelled is False

        token.cancel("first")
        token.cancel("second")

        assert token.is_cancelled is True
        assert token.reason == "first"

    @pytest.mark.asyncio
    async def test_race_returns_result(self):
        token = CancellationToken()

        async def work():
            return 42

        assert await token.race(work()) == 42

    @pytest.mark.asyncio
    async def test_race_propagates_errors(self):
        token = CancellationToken()

        async def work():
            raise ValueError("bad")

        with pytest.raises(ValueError, match="bad"):
            await token.race(work())

    @pytest.mark.asyncio
    async def test_race_timeout_cancels_operation(self):
        token = CancellationToken()
        cancelled = asyncio.Event()

        async def slow():
            try:
                await asyncio.sleep(30)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        with pytest.raises(AttemptTimeoutError, match="timed out"):
            await token.race(slow(), timeout=0.05, label="a.txt")
        assert cancelled.is_set()

    @pytest.mark.asyncio
    async def test_race_interrupted_by_cancel(self):
        token = CancellationToken()
        asyncio.get_running_loop().call_later(0.05, token.cancel, "stop")

        with pytest.raises(UploadCanceled, match="stop"):
            await token.race(asyncio.sleep(30), timeout=10)

    @pytest.mark.asyncio
    async def test_race_on_cancelled_token_fails_immediately(self):
        token = CancellationToken()
        token.cancel()
        started = []

        async def work():
            started.append(True)

        with pytest.raises(UploadCanceled):
            await token.race(work())
        assert started == []

    @pytest.mark.asyncio
    async def test_race_self_cancelled_operation_is_transient(self):
        token = CancellationToken()

        async def work():
            raise asyncio.CancelledError()

        with pytest.raises(TransientUploadError, match="cancelled unexpectedly"):
            await token.race(work(), timeout=1.0, label="a.txt")
        assert token.is_cancelled is False

    @pytest.mark.asyncio
    async def test_sleep(self):
        token = CancellationToken()
        assert await token.sleep(0.01) is True

        asyncio.get_running_loop().call_later(0.05, token.cancel)
        assert await token.sleep(30) is False
        assert await token.sleep(30) is False


class TestFirstErrorSlot:
    def test_first_offer_wins(self):
        slot = FirstErrorSlot()
        first = RuntimeError("first")

        assert slot.offer(first) is True
        assert slot.offer(RuntimeError("second")) is False
        assert slot.error is first
