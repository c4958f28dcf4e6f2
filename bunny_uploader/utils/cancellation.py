"""Cancellation token shared by every suspension point of a run."""
import asyncio
import logging
from typing import Any, Awaitable, Optional

from ..errors import AttemptTimeoutError, TransientUploadError, UploadCanceled

logger = logging.getLogger(__name__)


class CancellationToken:
    """
    One-way, idempotent cancellation broadcast.

    Level-triggered: once cancelled, ``is_cancelled`` stays True and every
    later ``wait``/``race``/``sleep`` returns immediately.

    Usage:
        token = CancellationToken()
        item = await token.race(queue.get())     # raises UploadCanceled
        if not await token.sleep(2.0):           # False when cancelled
            return
        token.cancel("first failure")
    """

    def __init__(self):
        self._event = asyncio.Event()
        self._reason: Optional[str] = None

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: str = "cancelled") -> None:
        """Fire the token. Calling it again has no effect."""
        if self._event.is_set():
            return
        self._reason = reason
        logger.debug(f"Cancellation requested: {reason}")
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    async def sleep(self, delay: float) -> bool:
        """
        Sleep for ``delay`` seconds unless cancelled first.

        Returns:
            True if the full delay elapsed, False if the token fired.
        """
        if self.is_cancelled:
            return False
        try:
            await asyncio.wait_for(self._event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return True
        return False

    async def race(self, awaitable: Awaitable[Any], timeout: Optional[float] = None,
                   label: str = "operation") -> Any:
        """
        Await ``awaitable`` unless the token fires or ``timeout`` elapses first.

        The losing operation is cancelled and awaited before returning.

        Raises:
            UploadCanceled: the token fired first.
            TransientUploadError: the operation cancelled itself while the
                token was still live.
            AttemptTimeoutError: ``timeout`` elapsed first.
        """
        task = asyncio.ensure_future(awaitable)
        if self.is_cancelled:
            await _cancel_and_wait(task)
            raise UploadCanceled(f"{label} cancelled: {self._reason}")

        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter},
                timeout=timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            waiter.cancel()
            await _cancel_and_wait(task)
            raise
        waiter.cancel()

        if task in done:
            if task.cancelled():
                if self.is_cancelled:
                    raise UploadCanceled(f"{label} cancelled: {self._reason}")
                raise TransientUploadError(f"{label} was cancelled unexpectedly")
            return task.result()

        await _cancel_and_wait(task)
        if self.is_cancelled:
            raise UploadCanceled(f"{label} cancelled: {self._reason}")
        raise AttemptTimeoutError(label, timeout)


async def _cancel_and_wait(task: "asyncio.Future") -> None:
    task.cancel()
    await asyncio.gather(task, return_exceptions=True)
