"""
Detection Pipeline - capture -> detect -> ingest.

Each tick (while the session is active) the pipeline:
  1. drains detector replies that have arrived and applies them
  2. captures a frame and sends it to the detector without waiting

Replies are applied by overwrite: the latest objects_detected replaces
the session's object list, the latest bins_detected replaces its bin
list. Out-of-order or duplicate replies therefore only make overlays
briefly stale; they never corrupt state.

State machine: IDLE -> RUNNING -> IDLE.
"""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from ..errors import MalformedMessage
from ..models import (
    ARSession,
    DetectedBin,
    DetectedObject,
    OverlayElement,
    SuggestionPopup,
)
from ..utils.constants import STATUS_REPORT_INTERVAL
from ..utils.protocol import (
    MSG_BINS_DETECTED,
    MSG_OBJECTS_DETECTED,
    detect_frame_request,
)
from .guidance import bin_label, guide, should_guide
from .overlay_store import OverlayStore
from .resources import ResourceAdapter
from .scheduler import Scheduler, TickHandle

logger = logging.getLogger(__name__)


class PipelineState(Enum):
    IDLE = "idle"
    RUNNING = "running"


@dataclass
class PipelineStats:
    """Counters for one pipeline run."""

    ticks: int = 0
    frames_captured: int = 0
    frames_sent: int = 0
    frames_dropped: int = 0
    replies_applied: int = 0
    replies_ignored: int = 0
    replies_malformed: int = 0


def log_suggestions(popup: SuggestionPopup) -> None:
    """Default suggestions handler."""
    logger.info(f"Suggestions for {popup.item_id}: {', '.join(popup.suggestions)}")


class DetectionPipeline:
    """
    Drives the detection cycle for one session at a time.

    The pipeline never owns the session or store; it borrows them
    between start() and stop() and drops every reference on stop.
    """

    def __init__(
        self,
        resources: ResourceAdapter,
        scheduler: Scheduler,
        on_suggestions: Callable[[SuggestionPopup], None] | None = None,
        clock: Callable[[], int] | None = None,
    ):
        """
        Args:
            resources: Adapter used for frame capture and teardown
            scheduler: Tick source (TickScheduler live, ManualScheduler in replay)
            on_suggestions: Receives suggestion popups (default: logged)
            clock: Millisecond timestamp source for detect_frame requests
        """
        self._resources = resources
        self._scheduler = scheduler
        self._on_suggestions = on_suggestions or log_suggestions
        self._clock = clock or (lambda: int(time.time() * 1000))

        self._state = PipelineState.IDLE
        self._lock = threading.RLock()
        self._tick_handle: TickHandle | None = None
        self._session: ARSession | None = None
        self._store: OverlayStore | None = None
        self._camera: Any = None
        self._worker: Any = None
        self.stats = PipelineStats()

        self._handlers: dict[str, Callable[[dict], None]] = {
            MSG_OBJECTS_DETECTED: self._on_objects_detected,
            MSG_BINS_DETECTED: self._on_bins_detected,
        }

    @property
    def state(self) -> PipelineState:
        return self._state

    def start(self, session: ARSession, store: OverlayStore, camera: Any, worker: Any) -> None:
        """
        Begin ticking for a session.

        Raises:
            RuntimeError: If the pipeline is already running
        """
        with self._lock:
            if self._state is PipelineState.RUNNING:
                raise RuntimeError("Detection pipeline already running")

            self._session = session
            self._store = store
            self._camera = camera
            self._worker = worker
            self.stats = PipelineStats()
            self._state = PipelineState.RUNNING

        try:
            self._tick_handle = self._scheduler.start(self.tick)
        except Exception:
            # Back to IDLE without touching resources; the caller owns them still
            with self._lock:
                self._session = self._store = self._camera = self._worker = None
                self._state = PipelineState.IDLE
            raise
        logger.info(f"Detection started for {session.id} ({session.mode})")

    def stop(self) -> None:
        """
        Cancel ticking and tear the session's resources down.

        Order: tick schedule, overlay timers, detector, camera. Calling
        stop() while idle is a no-op.
        """
        with self._lock:
            if self._state is PipelineState.IDLE:
                return
            self._state = PipelineState.IDLE

        if self._tick_handle is not None:
            self._tick_handle.cancel()
            self._tick_handle = None

        with self._lock:
            store, camera, worker = self._store, self._camera, self._worker
            session = self._session
            self._session = self._store = self._camera = self._worker = None

        try:
            if store is not None:
                store.clear()
            self._resources.terminate_detector(worker)
        finally:
            self._resources.release_camera(camera)
            self._log_final_stats(session)

    def tick(self) -> None:
        """One scheduling tick: apply arrived replies, then capture and send."""
        with self._lock:
            session, worker = self._session, self._worker
            if session is None or not session.active:
                return

            self.stats.ticks += 1
            for message in worker.poll():
                # One bad reply must not cost the rest of the batch
                try:
                    self.handle_message(message)
                except Exception as e:
                    logger.error(f"Error applying detector reply: {e}", exc_info=True)
                    self.stats.replies_malformed += 1

            frame = self._resources.capture_frame(self._camera)
            if frame is None:
                # Video not producing frames yet
                return
            self.stats.frames_captured += 1

            if worker.send(detect_frame_request(frame, self._clock())):
                self.stats.frames_sent += 1
            else:
                self.stats.frames_dropped += 1
                logger.debug("Detector busy, frame dropped")

            if self.stats.ticks % STATUS_REPORT_INTERVAL == 0:
                self._log_status()

    def handle_message(self, message: Any) -> bool:
        """
        Dispatch one detector reply by its type tag.

        Returns:
            True if the reply was applied
        """
        with self._lock:
            if self._session is None or not self._session.active:
                self.stats.replies_ignored += 1
                return False

            if not isinstance(message, dict):
                self.stats.replies_ignored += 1
                return False

            handler = self._handlers.get(message.get("type"))
            if handler is None:
                logger.debug(f"Ignoring detector message: {message.get('type')}")
                self.stats.replies_ignored += 1
                return False

            data = message.get("data")
            try:
                if data is None:
                    data = {}
                elif not isinstance(data, dict):
                    raise MalformedMessage(
                        f"Reply data must be an object, got {type(data).__name__}"
                    )
                handler(data)
            except MalformedMessage as e:
                logger.warning(f"Dropping malformed detector reply: {e}")
                self.stats.replies_malformed += 1
                return False

            self.stats.replies_applied += 1
            return True

    def _on_objects_detected(self, data: dict) -> None:
        objects = [DetectedObject.from_dict(o) for o in _payload_list(data, "objects")]
        self.apply_objects(objects)

    def _on_bins_detected(self, data: dict) -> None:
        bins = [DetectedBin.from_dict(b) for b in _payload_list(data, "bins")]
        self.apply_bins(bins)

    def apply_objects(self, objects: list[DetectedObject]) -> None:
        """Replace the object list and guide every confident waste item."""
        session, store = self._session, self._store
        if session is None or store is None:
            return

        accuracy = sum(o.confidence for o in objects) / len(objects) if objects else 0.0
        session.tracking = replace(session.tracking, objects=tuple(objects), accuracy=accuracy)

        known_bins = list(session.tracking.bins)
        popups: list[SuggestionPopup] = []
        with store.batch():
            for item in objects:
                if not should_guide(item):
                    continue
                for directive in guide(item, known_bins):
                    if isinstance(directive, OverlayElement):
                        store.insert(directive)
                    else:
                        popups.append(directive)

        for popup in popups:
            self._on_suggestions(popup)

    def apply_bins(self, bins: list[DetectedBin]) -> None:
        """Replace the bin list and (re)label every bin."""
        session, store = self._session, self._store
        if session is None or store is None:
            return

        session.tracking = replace(session.tracking, bins=tuple(bins))
        with store.batch():
            for detected_bin in bins:
                store.insert(bin_label(detected_bin))

    def _log_status(self) -> None:
        """Log periodic status."""
        s = self.stats
        logger.info(
            f"Tick {s.ticks} | Frames: {s.frames_sent} sent, {s.frames_dropped} dropped | "
            f"Replies: {s.replies_applied}"
        )

    def _log_final_stats(self, session: ARSession | None) -> None:
        """Log final statistics."""
        s = self.stats
        session_id = session.id if session else "session"
        logger.info(f"Detection stopped for {session_id}")
        logger.info(f"Ticks: {s.ticks}")
        logger.info(
            f"Frames: {s.frames_captured} captured, {s.frames_sent} sent, {s.frames_dropped} dropped"
        )
        logger.info(
            f"Replies: {s.replies_applied} applied, {s.replies_ignored} ignored, "
            f"{s.replies_malformed} malformed"
        )


def _payload_list(data: dict, key: str) -> list:
    """The list under key, or MalformedMessage if it is something else."""
    items = data.get(key)
    if items is None:
        return []
    if not isinstance(items, list):
        raise MalformedMessage(f"'{key}' must be a list, got {type(items).__name__}")
    return items
