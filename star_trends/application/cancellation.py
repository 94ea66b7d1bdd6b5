"""Cancellation tokens shared by concurrent fetch units."""

import threading
from typing import List, Optional

from star_trends.domain.errors import CancelledError


class CancelToken:
    """
    Thread-safe cancellation flag.

    Tokens form a tree: cancelling a token cancels every child created from
    it, so a request-level cancellation reaches all nested fan-outs. A child
    can be cancelled on its own without touching its parent.
    """

    def __init__(self, parent: Optional["CancelToken"] = None):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._children: List["CancelToken"] = []
        self.reason: Optional[str] = None
        if parent is not None:
            parent._adopt(self)

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled") -> None:
        with self._lock:
            if self._event.is_set():
                return
            self.reason = reason
            self._event.set()
            children, self._children = self._children, []
        for child in children:
            child.cancel(reason)

    def child(self) -> "CancelToken":
        return CancelToken(parent=self)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancelled or timeout elapses; returns True if cancelled."""
        return self._event.wait(timeout)

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise CancelledError(f"Operation aborted: {self.reason}")

    def _adopt(self, child: "CancelToken") -> None:
        with self._lock:
            if not self._event.is_set():
                self._children.append(child)
                return
            reason = self.reason
        child.cancel(reason)
