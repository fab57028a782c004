"""
Overlay Store - active overlay elements and animations for one session.

Elements are keyed by id and kept in insertion order. Re-inserting an
id replaces the element in place and reschedules its expiry. Elements
with a TTL remove themselves when the TTL elapses, provided the owning
session is still active; elements without a TTL persist until removed
or until the store is cleared at session teardown.

All methods are thread safe. Detection replies are applied inside
batch() so a renderer taking snapshot() never sees a partial update.
"""

import itertools
import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from ..models import ARAnimation, OverlayElement, RenderSnapshot
from .timers import TimerHandle, TimerService

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    element: OverlayElement
    generation: int
    timer: TimerHandle | None = None


class OverlayStore:
    """
    Holds overlay elements with optional time-to-live.

    Example:
        store = OverlayStore(ThreadingTimerService(), is_active=lambda: session.active)
        store.insert(element)          # expires after element.ttl_ms
        store.snapshot()               # -> (element,)
        store.clear()                  # teardown: cancels every pending expiry
    """

    def __init__(
        self,
        timers: TimerService,
        is_active: Callable[[], bool] | None = None,
    ):
        """
        Args:
            timers: Timer service used to schedule expiries
            is_active: Returns False once the owning session has stopped;
                       expiries that fire after that are ignored
        """
        self._timers = timers
        self._is_active = is_active or (lambda: True)
        self._entries: dict[str, _Entry] = {}
        self._animations: dict[str, ARAnimation] = {}
        self._generation = itertools.count(1)
        self._lock = threading.RLock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @contextmanager
    def batch(self) -> Iterator["OverlayStore"]:
        """Hold the store lock across several mutations."""
        with self._lock:
            yield self

    def insert(self, element: OverlayElement) -> None:
        """
        Add an element, or replace the element with the same id.

        Replacing keeps the element's position in the snapshot and
        cancels its previous expiry before scheduling the new one.
        """
        with self._lock:
            if self._closed:
                logger.debug(f"Ignoring insert of '{element.id}' into closed store")
                return

            previous = self._entries.get(element.id)
            if previous is not None and previous.timer is not None:
                previous.timer.cancel()

            entry = _Entry(element=element, generation=next(self._generation))
            self._entries[element.id] = entry

            if element.ttl_ms is not None:
                generation = entry.generation
                entry.timer = self._timers.schedule(
                    element.ttl_ms,
                    lambda: self._expire(element.id, generation),
                )

    def remove(self, element_id: str) -> bool:
        """
        Remove an element and cancel its expiry.

        Returns:
            True if an element was removed, False if none had this id
        """
        with self._lock:
            entry = self._entries.pop(element_id, None)
            if entry is None:
                return False
            if entry.timer is not None:
                entry.timer.cancel()
            return True

    def clear(self) -> None:
        """Remove everything, cancel all pending expiries and close the store."""
        with self._lock:
            cancelled = 0
            for entry in self._entries.values():
                if entry.timer is not None and not entry.timer.cancelled:
                    entry.timer.cancel()
                    cancelled += 1
            count = len(self._entries)
            self._entries.clear()
            self._animations.clear()
            self._closed = True
        logger.debug(f"Overlay store cleared ({count} element(s), {cancelled} timer(s))")

    def get(self, element_id: str) -> OverlayElement | None:
        with self._lock:
            entry = self._entries.get(element_id)
            return entry.element if entry else None

    def snapshot(self) -> tuple[OverlayElement, ...]:
        """Active elements in insertion order."""
        with self._lock:
            return tuple(entry.element for entry in self._entries.values())

    def add_animation(self, animation: ARAnimation) -> None:
        with self._lock:
            if self._closed:
                return
            self._animations[animation.id] = animation

    def remove_animation(self, animation_id: str) -> bool:
        with self._lock:
            return self._animations.pop(animation_id, None) is not None

    def animations(self) -> tuple[ARAnimation, ...]:
        with self._lock:
            return tuple(self._animations.values())

    def render_snapshot(self) -> RenderSnapshot:
        """Elements and animations taken under a single lock."""
        with self._lock:
            return RenderSnapshot(
                elements=tuple(entry.element for entry in self._entries.values()),
                animations=tuple(self._animations.values()),
            )

    def _expire(self, element_id: str, generation: int) -> None:
        """Timer callback: drop the element if it is still the one that scheduled us."""
        with self._lock:
            if self._closed or not self._is_active():
                return
            entry = self._entries.get(element_id)
            if entry is None or entry.generation != generation:
                return
            del self._entries[element_id]
        logger.debug(f"Overlay '{element_id}' expired")

    def __contains__(self, element_id: str) -> bool:
        with self._lock:
            return element_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
