"""Folder upload - bounded worker pool fed by a lazy tree walk."""
import asyncio
import logging
from pathlib import Path
from typing import List, Optional

from ..errors import EnumerationError, FatalUploadError, PathError, UploadCanceled
from ..models import (
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_RETRY_DELAY,
    OrchestratorConfig,
    OutcomeKind,
    RunResult,
    RunState,
    UploadOutcome,
    WorkItem,
)
from ..protocols import IUploader
from ..utils import events as ev
from ..utils.cancellation import CancellationToken
from ..utils.events import EventEmitter, RetryNotice
from .error_slot import FirstErrorSlot
from .file_collector import TreeEnumerator
from .retry import RetryPolicy

logger = logging.getLogger(__name__)

# One per worker, pushed after the last WorkItem.
_END_OF_QUEUE = object()


class FolderUploadOrchestrator:
    """
    Uploads every file under ``config.root_path`` through ``uploader``.

    A producer task walks the tree into a bounded queue; ``concurrency_limit``
    worker tasks drain it, each wrapping the uploader in the retry policy.
    With ``fail_fast`` the first file that exhausts its attempts cancels the
    whole run; without it, workers keep going and the first failure is
    reported at the end.

    Usage:
        orchestrator = FolderUploadOrchestrator(config, storage, events)
        result = await orchestrator.run()
        result.raise_for_error()
    """

    def __init__(
        self,
        config: OrchestratorConfig,
        uploader: IUploader,
        events: Optional[EventEmitter] = None,
    ):
        self._config = config
        self._uploader = uploader
        self._events = events
        self._policy = RetryPolicy(
            attempt_timeout=config.attempt_timeout,
            max_attempts=config.max_attempts,
            retry_delay=config.retry_delay,
        )

    @property
    def config(self) -> OrchestratorConfig:
        return self._config

    async def run(self, token: Optional[CancellationToken] = None) -> RunResult:
        """
        Run one upload over the whole tree and wait for a terminal state.

        Args:
            token: Optional caller-owned token; firing it aborts the run.

        Returns:
            RunResult holding the first reported error, if any.
        """
        run = _FolderRun(self._config, self._uploader, self._policy, self._events)
        return await run.execute(token)


class _FolderRun:
    """State of a single run. Never shared between runs."""

    def __init__(
        self,
        config: OrchestratorConfig,
        uploader: IUploader,
        policy: RetryPolicy,
        events: Optional[EventEmitter],
    ):
        self._config = config
        self._uploader = uploader
        self._policy = policy
        self._events = events
        self._token = CancellationToken()
        self._slot = FirstErrorSlot()
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=config.concurrency_limit)
        self._admission = asyncio.Semaphore(config.concurrency_limit)
        self._enumeration_error: Optional[EnumerationError] = None
        self._enumerated = 0
        self._uploaded = 0
        self._failed = 0

    async def execute(self, parent: Optional[CancellationToken]) -> RunResult:
        config = self._config
        logger.info(
            f"Uploading folder: {config.root_path} "
            f"(concurrency={config.concurrency_limit}, timeout={config.attempt_timeout:g}s, "
            f"fail_fast={config.fail_fast})"
        )

        link = asyncio.ensure_future(self._follow(parent)) if parent is not None else None
        tasks: List[asyncio.Task] = [asyncio.ensure_future(self._produce())]
        tasks += [
            asyncio.ensure_future(self._work(worker_id))
            for worker_id in range(1, config.concurrency_limit + 1)
        ]

        try:
            await asyncio.gather(*tasks)
        except BaseException:
            self._token.cancel("run interrupted")
            await self._cancel_remaining_tasks(tasks)
            raise
        finally:
            if link is not None:
                link.cancel()
                await asyncio.gather(link, return_exceptions=True)

        result = self._build_result()
        logger.info(
            f"Folder upload finished ({result.state.value}): {result.uploaded} uploaded, "
            f"{result.failed} failed, {result.enumerated} queued"
        )
        if self._events:
            await self._events.emit(ev.FINISH, result)
        return result

    def _build_result(self) -> RunResult:
        error: Optional[BaseException] = self._slot.error
        if error is None:
            error = self._enumeration_error
        if error is None and self._token.is_cancelled:
            error = UploadCanceled(f"upload cancelled: {self._token.reason}")

        return RunResult(
            error=error,
            state=RunState.ABORTED if self._token.is_cancelled else RunState.ALL_DONE,
            enumerated=self._enumerated,
            uploaded=self._uploaded,
            failed=self._failed,
        )

    async def _follow(self, parent: CancellationToken) -> None:
        await parent.wait()
        self._token.cancel(parent.reason or "cancelled by caller")

    def _report(self, error: BaseException) -> None:
        """Record a per-item failure and apply the fail-fast policy."""
        self._slot.offer(error)
        if self._config.fail_fast:
            self._token.cancel(f"fail-fast: {error}")

    # Producer

    async def _produce(self) -> None:
        enumerator = TreeEnumerator(self._config.root_path)
        try:
            for item in enumerator.iter_items(on_path_error=self._on_path_error):
                if self._token.is_cancelled:
                    break
                await self._token.race(self._queue.put(item), label="enqueue")
                self._enumerated += 1
        except UploadCanceled:
            logger.debug("Enumeration stopped: run cancelled")
            return
        except EnumerationError as e:
            logger.error(f"Enumeration failed: {e}")
            self._enumeration_error = e
            self._token.cancel(str(e))
            return

        if self._token.is_cancelled:
            return
        logger.debug(f"Enumeration complete: {self._enumerated} file(s) queued")
        await self._close_queue()

    def _on_path_error(self, error: PathError) -> None:
        self._failed += 1
        self._report(error)

    async def _close_queue(self) -> None:
        try:
            for _ in range(self._config.concurrency_limit):
                await self._token.race(self._queue.put(_END_OF_QUEUE), label="close queue")
        except UploadCanceled:
            logger.debug("Queue not closed: run cancelled")

    # Workers

    async def _work(self, worker_id: int) -> None:
        logger.debug(f"Worker {worker_id} started")
        while True:
            try:
                item = await self._token.race(self._queue.get(), label="dequeue")
            except UploadCanceled:
                break
            if item is _END_OF_QUEUE:
                break

            outcome = await self._upload(worker_id, item)

            if outcome.kind == OutcomeKind.CANCELED:
                break
            if outcome.kind == OutcomeKind.SUCCESS:
                self._uploaded += 1
                continue

            self._failed += 1
            error = FatalUploadError(item, outcome.cause, outcome.attempts)
            logger.error(f"[worker {worker_id}] {error}")
            if self._events:
                await self._events.emit(
                    ev.FILE_FAIL, UploadOutcome.fatal(item, outcome.cause, outcome.attempts)
                )
            self._report(error)
            if self._config.fail_fast:
                break
        logger.debug(f"Worker {worker_id} finished")

    async def _upload(self, worker_id: int, item: WorkItem) -> UploadOutcome:
        async with self._admission:
            logger.info(f"[worker {worker_id}] Uploading: {item.relative_path}")
            if self._events:
                await self._events.emit(ev.FILE_START, item)

            outcome = await self._policy.run(
                item,
                lambda: self._uploader.upload(self._token, item.absolute_path, item.relative_path),
                self._token,
                on_retry=self._on_retry,
            )

        if outcome.success:
            logger.info(f"[worker {worker_id}] Uploaded: {item.relative_path}")
            if self._events:
                await self._events.emit(ev.FILE_COMPLETE, outcome)
        return outcome

    async def _on_retry(self, item: WorkItem, attempt: int, error: BaseException) -> None:
        if self._events:
            notice = RetryNotice(
                relative_path=item.relative_path,
                attempt=attempt,
                max_attempts=self._config.max_attempts,
                error=str(error),
            )
            await self._events.emit(ev.FILE_RETRY, notice)

    async def _cancel_remaining_tasks(self, tasks: List[asyncio.Task]) -> None:
        """Cancel all remaining tasks gracefully."""
        for task in tasks:
            if not task.done():
                task.cancel()

        await asyncio.gather(*tasks, return_exceptions=True)


async def run_upload(
    root_path: Path,
    concurrency_limit: int,
    attempt_timeout: float,
    fail_fast: bool,
    uploader: IUploader,
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    retry_delay: float = DEFAULT_RETRY_DELAY,
    token: Optional[CancellationToken] = None,
    events: Optional[EventEmitter] = None,
) -> RunResult:
    """
    Upload a folder tree concurrently and return once the run is over.

    Example:
        result = await run_upload("./public", 3, 10.0, True, storage)
        if not result.success:
            print(result.error)
    """
    config = OrchestratorConfig(
        root_path=Path(root_path),
        concurrency_limit=concurrency_limit,
        attempt_timeout=attempt_timeout,
        max_attempts=max_attempts,
        retry_delay=retry_delay,
        fail_fast=fail_fast,
    )
    return await FolderUploadOrchestrator(config, uploader, events).run(token)
