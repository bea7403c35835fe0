"""
Completion tracking and cancellation for concurrent push operations.
"""
import logging
import threading
from typing import Callable, List, Optional

from .config import TRACKER_POLL_INTERVAL
from .utils.prompt import display_progress

logger = logging.getLogger(__name__)


class CancellationToken:
    """Signals an interrupt to a running push.

    Callbacks registered with `add_callback` run synchronously, once, in
    the thread that calls `cancel`.
    """

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.RLock()
        self._callbacks: List[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def add_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []

        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception("Cancellation callback failed")

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout)


class CompletionTracker:
    """Counts outstanding operations of a batch down to zero."""

    def __init__(self, total: int, show_progress: bool = False, message: str = "Pushing"):
        self.total = total
        self.show_progress = show_progress
        self.message = message
        self._completed = 0
        self._cond = threading.Condition()

    @property
    def outstanding(self) -> int:
        with self._cond:
            return self.total - self._completed

    def done(self, count: int = 1) -> None:
        """Mark `count` operations finished, successfully or not."""
        with self._cond:
            self._completed = min(self.total, self._completed + count)
            completed = self._completed
            self._cond.notify_all()

        if self.show_progress and self.total:
            display_progress(completed, self.total, self.message)

    def wait(
        self,
        cancel_token: Optional[CancellationToken] = None,
        poll_interval: float = TRACKER_POLL_INTERVAL,
    ) -> bool:
        """
        Block until every operation is marked done.

        Returns:
            True when the batch drained, False if cancelled first
        """
        with self._cond:
            while self._completed < self.total:
                if cancel_token is not None and cancel_token.cancelled:
                    return False
                self._cond.wait(poll_interval)
        return True
