"""
Tick Scheduler - cancellable periodic callback.

start() returns a TickHandle; cancelling the handle stops the loop
deterministically. No callback runs after cancel() returns (unless
cancel() is called from within the callback itself).
"""

import logging
import threading
import time
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger(__name__)


class TickHandle:
    """Stop handle for a running tick loop."""

    def __init__(self, thread: threading.Thread | None = None, join_timeout: float = 2.0):
        self._stop = threading.Event()
        self._thread = thread
        self._join_timeout = join_timeout

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()

    def wait(self, timeout: float) -> bool:
        """Sleep up to timeout; returns True if cancelled meanwhile."""
        return self._stop.wait(timeout)

    def cancel(self) -> None:
        """Stop the loop and wait for the in-flight tick to finish."""
        self._stop.set()  # Wakes thread immediately from wait()
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return
        thread.join(timeout=self._join_timeout)
        if thread.is_alive():
            logger.warning(f"Tick loop '{thread.name}' did not stop cleanly")


class Scheduler(Protocol):
    def start(self, callback: Callable[[], None]) -> TickHandle:
        ...


class TickScheduler:
    """
    Runs a callback at a fixed rate on a daemon thread.

    Uses threading.Event for pacing so cancellation wakes the loop
    immediately - no polling, no hanging.
    """

    def __init__(self, interval: float, name: str = "TickLoop"):
        """
        Args:
            interval: Seconds between tick starts
            name: Thread name
        """
        self._interval = interval
        self._name = name

    def start(self, callback: Callable[[], None]) -> TickHandle:
        handle = TickHandle()
        thread = threading.Thread(
            target=self._run,
            args=(callback, handle),
            name=self._name,
            daemon=True,  # Dies with parent process
        )
        handle._thread = thread
        thread.start()
        return handle

    def _run(self, callback: Callable[[], None], handle: TickHandle) -> None:
        logger.debug(f"{self._name} started ({1 / self._interval:.0f} Hz)")
        while not handle.cancelled:
            started = time.monotonic()
            try:
                callback()
            except Exception as e:
                logger.error(f"Error in {self._name} tick: {e}", exc_info=True)

            remaining = self._interval - (time.monotonic() - started)
            if handle.wait(max(0.0, remaining)):
                break
        logger.debug(f"{self._name} exited")


class ManualScheduler:
    """Scheduler whose ticks are driven explicitly with tick()."""

    def __init__(self):
        self._callback: Callable[[], None] | None = None
        self._handle: TickHandle | None = None

    def start(self, callback: Callable[[], None]) -> TickHandle:
        self._callback = callback
        self._handle = TickHandle()
        return self._handle

    @property
    def running(self) -> bool:
        return self._handle is not None and not self._handle.cancelled

    def tick(self, count: int = 1) -> int:
        """
        Run up to count ticks.

        Returns:
            Number of ticks actually run (0 once cancelled)
        """
        ran = 0
        for _ in range(count):
            if not self.running:
                break
            self._callback()
            ran += 1
        return ran
