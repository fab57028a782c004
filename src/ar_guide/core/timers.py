"""
Timer Service - cancellable one-shot timers for overlay TTLs.

Every scheduled callback returns a TimerHandle (a cancellation token).
The overlay store keeps one handle per element so that re-insertion
reschedules instead of stacking, and teardown can cancel everything.

Two implementations:
    ThreadingTimerService - wall clock, daemon threading.Timer per timer
    ManualTimerService    - virtual clock advanced explicitly (replay, tests)
"""

import heapq
import itertools
import logging
import threading
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger(__name__)


class TimerHandle:
    """Cancellation token for a scheduled callback."""

    def __init__(self, cancel_fn: Callable[[], None] | None = None):
        self._cancel_fn = cancel_fn
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Cancel the callback. Safe to call more than once."""
        if self._cancelled:
            return
        self._cancelled = True
        if self._cancel_fn is not None:
            self._cancel_fn()


class TimerService(Protocol):
    """Protocol for timer services used by the overlay store."""

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle:
        """
        Run callback once after delay_ms milliseconds.

        Returns:
            Handle that cancels the callback if it has not yet run
        """
        ...


class ThreadingTimerService:
    """Timer service backed by daemon threading.Timer objects."""

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay_ms / 1000.0, callback)
        timer.daemon = True  # Dies with parent process
        handle = TimerHandle(timer.cancel)
        timer.start()
        return handle


class ManualTimerService:
    """
    Timer service driven by a virtual millisecond clock.

    Nothing fires until advance() moves the clock past a deadline.
    Callbacks fire in deadline order (ties in scheduling order).

    Example:
        timers = ManualTimerService()
        timers.schedule(1000, lambda: print("expired"))
        timers.advance(999)   # nothing
        timers.advance(2)     # prints "expired"
    """

    def __init__(self):
        self.now_ms = 0
        self._queue: list[tuple[int, int, TimerHandle, Callable[[], None]]] = []
        self._seq = itertools.count()
        self._lock = threading.Lock()

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle()
        with self._lock:
            heapq.heappush(
                self._queue, (self.now_ms + delay_ms, next(self._seq), handle, callback)
            )
        return handle

    def advance(self, ms: int) -> int:
        """
        Move the clock forward, firing every timer that comes due.

        Args:
            ms: Milliseconds to advance

        Returns:
            Number of callbacks fired
        """
        target = self.now_ms + ms
        fired = 0
        while True:
            with self._lock:
                if not self._queue or self._queue[0][0] > target:
                    break
                due, _, handle, callback = heapq.heappop(self._queue)
                self.now_ms = due
            if handle.cancelled:
                continue
            handle.cancel()  # Spent
            callback()
            fired += 1
        self.now_ms = target
        return fired

    def pending(self) -> int:
        """Number of scheduled timers that have not fired or been cancelled."""
        with self._lock:
            return sum(1 for _, _, handle, _ in self._queue if not handle.cancelled)
