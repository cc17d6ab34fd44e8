"""
Cooperative cancellation for swap flows

A CancelToken is threaded through pool fetches, quoting, route search,
submission and the confirmation poll. Each step checks it before going to the
network, and the poll loop waits on it instead of sleeping.
"""

import threading
import time
from typing import Optional

from ..errors import OperationCancelled


class CancelToken:
    """
    Thread-safe cancellation flag with an optional deadline

    Usage:
        token = CancelToken(timeout_seconds=120)
        # from another thread: token.cancel()
        client.swap.execute_single_swap(..., cancel=token)
    """

    def __init__(self, timeout_seconds: Optional[float] = None):
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout_seconds if timeout_seconds is not None else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self._event.set()
            return True
        return False

    def check(self, stage: Optional[str] = None) -> None:
        """Raise OperationCancelled if the token was cancelled or its deadline passed"""
        if self.cancelled:
            raise OperationCancelled(stage)

    def wait(self, seconds: float) -> bool:
        """
        Sleep up to `seconds`, waking early on cancellation

        Returns:
            True if cancelled
        """
        if self._deadline is not None:
            seconds = max(0.0, min(seconds, self._deadline - time.monotonic()))
        self._event.wait(seconds)
        return self.cancelled


def check_cancelled(cancel: Optional[CancelToken], stage: str) -> None:
    """check() for an optional token"""
    if cancel is not None:
        cancel.check(stage)
