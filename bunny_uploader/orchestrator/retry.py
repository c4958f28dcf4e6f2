"""Bounded retry around a single upload attempt."""
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from ..errors import ConfigError
from ..models import DEFAULT_MAX_ATTEMPTS, DEFAULT_RETRY_DELAY, UploadOutcome, WorkItem
from ..utils.cancellation import CancellationToken

logger = logging.getLogger(__name__)

AttemptFn = Callable[[], Awaitable[Any]]
RetryHook = Callable[[WorkItem, int, BaseException], Any]


@dataclass(frozen=True)
class RetryPolicy:
    """
    Runs an upload attempt up to ``max_attempts`` times.

    Every attempt is bounded by ``attempt_timeout`` and raced against the
    cancellation token. Failed attempts are followed by a fixed
    ``retry_delay`` (no exponential growth), except after the last one.
    """
    attempt_timeout: float
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    retry_delay: float = DEFAULT_RETRY_DELAY

    def __post_init__(self):
        if self.attempt_timeout <= 0:
            raise ConfigError(f"timeout must be > 0, got {self.attempt_timeout}")
        if self.max_attempts <= 0:
            raise ConfigError(f"max attempts must be > 0, got {self.max_attempts}")
        if self.retry_delay < 0:
            raise ConfigError(f"retry delay must be >= 0, got {self.retry_delay}")

    async def run(
        self,
        item: WorkItem,
        attempt: AttemptFn,
        token: CancellationToken,
        on_retry: Optional[RetryHook] = None,
    ) -> UploadOutcome:
        """
        Execute ``attempt`` with retries.

        Returns:
            SUCCESS on the first successful attempt, CANCELED as soon as the
            token is observed, otherwise TRANSIENT_FAILURE carrying the last
            error once all attempts are spent.
        """
        last_error: Optional[BaseException] = None

        for number in range(1, self.max_attempts + 1):
            if token.is_cancelled:
                return UploadOutcome.canceled(item, attempts=number - 1)

            try:
                await token.race(attempt(), timeout=self.attempt_timeout, label=item.relative_path)
                if number > 1:
                    logger.info(f"{item.relative_path} uploaded on attempt {number}")
                return UploadOutcome.ok(item, attempts=number)
            except Exception as e:
                # an uploader may raise UploadCanceled on its own; only the token decides
                if token.is_cancelled:
                    logger.warning(f"Upload canceled: {item.relative_path} (attempt {number})")
                    return UploadOutcome.canceled(item, attempts=number)
                last_error = e

            if number == self.max_attempts:
                logger.warning(
                    f"Upload failed: {item.relative_path} "
                    f"(attempt {number}/{self.max_attempts}): {last_error}"
                )
                break

            logger.warning(
                f"Upload failed, retrying: {item.relative_path} "
                f"(attempt {number}/{self.max_attempts}): {last_error}"
            )
            if on_retry is not None:
                result = on_retry(item, number, last_error)
                if inspect.isawaitable(result):
                    await result

            if not await token.sleep(self.retry_delay):
                return UploadOutcome.canceled(item, attempts=number)

        return UploadOutcome.transient(item, last_error, attempts=self.max_attempts)
