"""
Cancellation and deadline propagation for blocking API calls.

A QueryContext is created by the caller and handed down through the paginator,
the retry executor and the transport. Every suspension point consults it:
waits go through an interruptible ``threading.Event.wait`` and network calls
are bounded by the remaining time.
"""

import threading
import time
from typing import Optional


class QueryCancelledError(Exception):
    """Raised when a query is cancelled or its deadline has passed."""

    error_category = "cancelled"

    def __init__(self, message: str = "query cancelled", deadline_exceeded: bool = False) -> None:
        super().__init__(message)
        self.message = message
        self.deadline_exceeded = deadline_exceeded

    def is_retryable(self) -> bool:
        return False


class QueryContext:
    """Cancellation signal with an optional monotonic deadline.

    Example:
        ctx = QueryContext.with_timeout(5.0)
        client.query("daily", {"ts_code": "000001.SZ"}, ctx=ctx)
    """

    def __init__(self, deadline: Optional[float] = None, parent: Optional["QueryContext"] = None) -> None:
        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self.deadline = deadline
        self._parent = parent
        self._cancelled = threading.Event()

    @classmethod
    def background(cls) -> "QueryContext":
        """A context that is never cancelled and has no deadline"""
        return cls()

    @classmethod
    def with_timeout(cls, seconds: float, parent: Optional["QueryContext"] = None) -> "QueryContext":
        return cls(deadline=time.monotonic() + seconds, parent=parent)

    def cancel(self) -> None:
        self._cancelled.set()

    def _explicitly_cancelled(self) -> bool:
        if self._cancelled.is_set():
            return True
        return self._parent is not None and self._parent._explicitly_cancelled()

    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    def is_cancelled(self) -> bool:
        return self._explicitly_cancelled() or self.expired()

    def remaining(self) -> Optional[float]:
        """Seconds until the deadline, ``None`` without one, never negative"""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def error(self) -> QueryCancelledError:
        if self._explicitly_cancelled():
            return QueryCancelledError("query cancelled")
        return QueryCancelledError("query deadline exceeded", deadline_exceeded=True)

    def raise_if_cancelled(self) -> None:
        if self.is_cancelled():
            raise self.error()

    def wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; return True if cancelled before or during the wait."""
        if self.is_cancelled():
            return True

        end = time.monotonic() + max(0.0, seconds)
        while True:
            now = time.monotonic()
            if now >= end:
                return self.is_cancelled()
            timeout = end - now
            remaining = self.remaining()
            if remaining is not None:
                if remaining <= 0:
                    return True
                timeout = min(timeout, remaining)
            # Parent cancellation is polled; own cancellation wakes the wait.
            if self._parent is not None:
                timeout = min(timeout, 0.05)
            if self._cancelled.wait(timeout):
                return True
            if self.is_cancelled():
                return True

    def __repr__(self) -> str:
        remaining = self.remaining()
        deadline = "none" if remaining is None else f"{remaining:.3f}s"
        return f"QueryContext(cancelled={self._explicitly_cancelled()}, remaining={deadline})"
