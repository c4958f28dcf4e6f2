"""Write-once holder for the first error of a run."""
import logging
from typing import Optional

logger = logging.getLogger(__name__)


class FirstErrorSlot:
    """
    Single-slot, non-blocking error report.

    The first ``offer`` wins; later offers are dropped. Only touched from
    the event loop thread, and ``offer`` never awaits, so check-and-set
    cannot interleave.
    """

    def __init__(self):
        self._error: Optional[BaseException] = None

    def offer(self, error: BaseException) -> bool:
        """Store ``error`` if the slot is empty. Returns True if it was stored."""
        if self._error is not None:
            logger.debug(f"Dropping error, slot already holds one: {error}")
            return False
        self._error = error
        return True

    @property
    def error(self) -> Optional[BaseException]:
        return self._error
