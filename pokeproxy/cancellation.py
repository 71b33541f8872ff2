"""
Cancellation and deadline propagation for blocking calls.

A CallContext is created by the boundary layer for each inbound request
and handed down through the service into the fetch client. Both places
where a fetch can block (the HTTP call and the backoff wait) consult it.
"""

import threading
import time
from concurrent.futures import Future
from typing import Callable, List, Optional


class CallContext:
    """
    Carries a cancellation flag and an optional absolute deadline.

    Args:
        timeout: Seconds from now until the deadline (None = no deadline)
    """

    def __init__(self, timeout: Optional[float] = None):
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []
        self.deadline: Optional[float] = None
        if timeout is not None:
            self.deadline = time.monotonic() + timeout

    def cancel(self) -> None:
        """Signal cancellation; wakes up any pending wait() or wait_for()."""
        with self._lock:
            self._cancelled.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None if there is none."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    @property
    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    @property
    def done(self) -> bool:
        """True once the context is cancelled or past its deadline."""
        return self._cancelled.is_set() or self.expired

    def reason(self) -> str:
        if self._cancelled.is_set():
            return "context cancelled"
        if self.deadline is not None:
            return "context deadline exceeded"
        return ""

    def wait(self, delay: float) -> bool:
        """
        Sleep for ``delay`` seconds unless the context finishes first.

        Returns:
            True if the full delay elapsed, False if the context was
            cancelled or its deadline passed during the wait.
        """
        if self.done:
            return False

        remaining = self.remaining()
        if remaining is not None and remaining < delay:
            # Deadline lands inside the wait: sleep until it, then report it
            self._cancelled.wait(remaining)
            return False

        if self._cancelled.wait(delay):
            return False
        return not self.done

    def wait_for(self, future: Future) -> bool:
        """
        Block until ``future`` finishes or the context is done.

        Returns:
            True if the future finished.
        """
        woken = threading.Event()
        future.add_done_callback(lambda _: woken.set())
        with self._lock:
            if self._cancelled.is_set():
                return future.done()
            self._callbacks.append(woken.set)
        try:
            woken.wait(self.remaining())
        finally:
            with self._lock:
                if woken.set in self._callbacks:
                    self._callbacks.remove(woken.set)
        return future.done()

    def timeout_for(self, limit: float) -> float:
        """Per-call timeout: ``limit`` capped by the time left on the deadline."""
        remaining = self.remaining()
        if remaining is None:
            return limit
        # urllib3 rejects a zero timeout
        return max(min(limit, remaining), 0.001)
