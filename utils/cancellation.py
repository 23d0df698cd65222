# utils/cancellation.py
import threading
import logging
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class RequestCancelled(Exception):
    """Raised when work is abandoned because its token was cancelled."""


class CancellationToken:
    def __init__(self):
        self._cancelled = False
        self._callbacks: List[Callable[[], None]] = []
        self._lock = threading.Lock()

    @property
    def cancelled(self) -> bool:
        with self._lock:
            return self._cancelled

    def add_callback(self, callback: Callable[[], None]):
        """Run `callback` on cancel (immediately if already cancelled)."""
        with self._lock:
            if not self._cancelled:
                self._callbacks.append(callback)
                return
        callback()

    def cancel(self):
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            callbacks, self._callbacks = self._callbacks, []

        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                logger.warning(f"Cancellation callback failed: {e}")

    def raise_if_cancelled(self):
        if self.cancelled:
            raise RequestCancelled()


class RequestSlot:
    """
    Single in-flight slot. Starting a new request cancels the previous one,
    so only the latest token is ever current.
    """

    def __init__(self):
        self._current: Optional[CancellationToken] = None
        self._lock = threading.Lock()

    def begin(self) -> CancellationToken:
        token = CancellationToken()
        with self._lock:
            previous, self._current = self._current, token
        if previous is not None:
            previous.cancel()
        return token

    def is_current(self, token: CancellationToken) -> bool:
        with self._lock:
            return token is self._current and not token.cancelled

    def cancel(self):
        with self._lock:
            previous, self._current = self._current, None
        if previous is not None:
            previous.cancel()
