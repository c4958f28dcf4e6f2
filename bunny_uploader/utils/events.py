from dataclasses import dataclass
from typing import Dict, List, Callable, Optional
import asyncio
import inspect
import logging
logger = logging.getLogger(__name__)


FILE_START = "file_start"
FILE_RETRY = "file_retry"
FILE_COMPLETE = "file_complete"
FILE_FAIL = "file_fail"
FINISH = "finish"


@dataclass
class RetryNotice:
    """Emitted after a failed attempt that will be retried."""
    relative_path: str
    attempt: int
    max_attempts: int
    error: Optional[str] = None


class EventEmitter:
    """Simple event emitter for upload events."""

    def __init__(self):
        self._listeners: Dict[str, List[Callable]] = {}
        self._lock = asyncio.Lock()

    def on(self, event_name: str, callback: Callable):
        """Subscribe to an event."""
        if event_name not in self._listeners:
            self._listeners[event_name] = []
        if callback not in self._listeners[event_name]:
            self._listeners[event_name].append(callback)

    def off(self, event_name: str, callback: Callable):
        """Unsubscribe from an event."""
        if event_name in self._listeners:
            if callback in self._listeners[event_name]:
                self._listeners[event_name].remove(callback)

    async def emit(self, event_name: str, *args, **kwargs):
        """Emit an event to all listeners. Listener errors are logged, never raised."""
        if event_name not in self._listeners:
            return

        async with self._lock:
            for callback in self._listeners[event_name][:]:  # listeners may unsubscribe while we iterate
                try:
                    if inspect.iscoroutinefunction(callback):
                        await callback(*args, **kwargs)
                    else:
                        callback(*args, **kwargs)
                except Exception as e:
                    logger.error(f"Error in event listener for {event_name}: {e}")
