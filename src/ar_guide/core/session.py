"""
Session Manager - owns the AR session and everything scoped to it.

start() acquires the camera and detector (all-or-nothing), creates a
fresh overlay store, starts the detection pipeline and seeds the
welcome overlay. stop() tears all of it down. Mode-specific entry
points (education, game, assessment) are thin wrappers that start a
session in that mode and seed overlays from the content catalog.
"""

import logging
import threading
from collections.abc import Callable

from ..content import ContentCatalog
from ..errors import Unsupported
from ..models import (
    SESSION_MODES,
    ARAnimation,
    ARSession,
    ARStep,
    CameraDescriptor,
    EducationContent,
    OverlayElement,
    OverlayStyle,
    Point,
    RenderSnapshot,
    SuggestionPopup,
)
from ..utils.constants import (
    DEFAULT_CAMERA_HEIGHT,
    DEFAULT_CAMERA_WIDTH,
    DEFAULT_FACING,
    HINT_COLOR,
    TITLE_COLOR,
    WELCOME_MESSAGE,
)
from .overlay_store import OverlayStore
from .pipeline import DetectionPipeline
from .resources import ResourceAdapter
from .scheduler import Scheduler
from .timers import TimerService

logger = logging.getLogger(__name__)


class SessionManager:
    """
    Single entry point for external callers.

    Exactly one session is live at a time. The session, its overlay
    store and tracking snapshot are exposed read-only; all mutation
    goes through this class or the pipeline's reply handlers.

    Example:
        manager = SessionManager(DeviceResources(config), ThreadingTimerService(),
                                 TickScheduler(1 / 30))
        session = manager.start("sorting")
        frame_overlays = manager.overlay_snapshot()
        manager.stop()
    """

    def __init__(
        self,
        resources: ResourceAdapter,
        timers: TimerService,
        scheduler: Scheduler,
        catalog: ContentCatalog | None = None,
        on_suggestions: Callable[[SuggestionPopup], None] | None = None,
        facing: str = DEFAULT_FACING,
    ):
        """
        Args:
            resources: Camera/worker adapter
            timers: Timer service for overlay TTLs
            scheduler: Tick source for the detection pipeline
            catalog: Education and game content (built-in default if None)
            on_suggestions: Receives suggestion popups from guidance
            facing: Preferred camera facing
        """
        self._resources = resources
        self._timers = timers
        self._catalog = catalog or ContentCatalog.default()
        self._facing = facing
        self._pipeline = DetectionPipeline(resources, scheduler, on_suggestions)

        self._lock = threading.RLock()
        self._session: ARSession | None = None
        self._store: OverlayStore | None = None

        # Mode-specific state
        self._lesson: EducationContent | None = None
        self._step_index = -1
        self.score = 0

    @property
    def session(self) -> ARSession | None:
        return self._session

    @property
    def pipeline(self) -> DetectionPipeline:
        return self._pipeline

    @property
    def catalog(self) -> ContentCatalog:
        return self._catalog

    @property
    def is_active(self) -> bool:
        return self._session is not None and self._session.active

    def start(self, mode: str = "sorting") -> ARSession:
        """
        Start a new session.

        Raises:
            Unsupported: If the device lacks camera, worker or graphics support
            PermissionDenied: If camera access is declined
            DeviceUnavailable: If no camera can be opened
            DetectorUnavailable: If the detector worker cannot be spawned
        """
        if mode not in SESSION_MODES:
            raise ValueError(f"Unknown session mode: {mode!r}")

        with self._lock:
            if self._session is not None:
                logger.info(f"Replacing live session {self._session.id}")
                self.stop()

            capabilities = self._resources.probe()
            if not capabilities.supported:
                raise Unsupported(capabilities.missing())

            camera = self._resources.acquire_camera(self._facing)
            worker = None
            try:
                worker = self._resources.spawn_detector()

                descriptor = CameraDescriptor(
                    facing=getattr(camera, "facing", self._facing),
                    width=getattr(camera, "width", DEFAULT_CAMERA_WIDTH),
                    height=getattr(camera, "height", DEFAULT_CAMERA_HEIGHT),
                )
                session = ARSession.create(mode, descriptor)
                store = OverlayStore(self._timers, is_active=lambda: session.active)
                self._pipeline.start(session, store, camera, worker)
            except Exception as e:
                logger.error(f"AR session start failed, releasing resources: {e}")
                if worker is not None:
                    self._resources.terminate_detector(worker)
                self._resources.release_camera(camera)
                raise

            session.bind_overlay(store.render_snapshot)
            self._session = session
            self._store = store

            self.add_overlay(
                OverlayElement(
                    id="welcome",
                    kind="label",
                    position=Point(50, 10),
                    content=WELCOME_MESSAGE,
                    style=OverlayStyle(color=TITLE_COLOR, size=18, opacity=0.9),
                )
            )
            logger.info(f"AR session started: {session.id} ({mode})")
            return session

    def stop(self) -> None:
        """Stop the live session. No-op when there is none."""
        with self._lock:
            session = self._session
            if session is None:
                return

            session.active = False
            try:
                self._pipeline.stop()  # Clears the store and releases resources
            finally:
                session.bind_overlay(None)
                self._session = None
                self._store = None
                self._lesson = None
                self._step_index = -1
                logger.info(f"AR session stopped: {session.id}")

    def add_overlay(self, element: OverlayElement) -> bool:
        """Insert an element into the live session's store."""
        store = self._store
        if store is None or not self.is_active:
            return False
        store.insert(element)
        return True

    def remove_overlay(self, element_id: str) -> bool:
        store = self._store
        if store is None:
            return False
        return store.remove(element_id)

    def add_animation(self, animation: ARAnimation) -> bool:
        store = self._store
        if store is None or not self.is_active:
            return False
        store.add_animation(animation)
        return True

    def overlay_snapshot(self) -> RenderSnapshot:
        """Everything the renderer should draw right now."""
        store = self._store
        if store is None:
            return RenderSnapshot()
        return store.render_snapshot()

    # Mode-specific entry points

    def start_education(self, content_id: str) -> ARSession:
        """
        Start an education session for a lesson and show its first step.

        Raises:
            ContentNotFound: If the lesson is not in the catalog
        """
        lesson = self._catalog.education(content_id)
        session = self.start("education")
        self._lesson = lesson
        self._step_index = -1

        self.add_overlay(
            OverlayElement(
                id="education-title",
                kind="label",
                position=Point(50, 5),
                content=lesson.title,
                style=OverlayStyle(color=TITLE_COLOR, size=20, opacity=0.9),
            )
        )
        self.next_education_step()
        return session

    def next_education_step(self) -> bool:
        """
        Replace the current step's overlays with the next step's.

        Returns:
            False when there is no lesson running or no further step
        """
        lesson = self._lesson
        if lesson is None or not self.is_active:
            return False
        if self._step_index + 1 >= len(lesson.steps):
            return False

        if self._step_index >= 0:
            self._clear_step(lesson.steps[self._step_index])
        self._step_index += 1
        self._show_step(lesson.steps[self._step_index])
        return True

    def _show_step(self, step: ARStep) -> None:
        self.add_overlay(
            OverlayElement(
                id=f"step-{step.id}",
                kind="tutorial",
                position=Point(10, 80),
                content=step.instruction,
                style=OverlayStyle(color=TITLE_COLOR, size=16, opacity=0.9),
            )
        )
        for index, hint in enumerate(step.hints):
            self.add_overlay(
                OverlayElement(
                    id=f"hint-{step.id}-{index}",
                    kind="label",
                    position=Point(10, 85 + index * 5),
                    content=f"💡 {hint}",
                    style=OverlayStyle(color=HINT_COLOR, size=14, opacity=0.8),
                )
            )

    def _clear_step(self, step: ARStep) -> None:
        self.remove_overlay(f"step-{step.id}")
        for index in range(len(step.hints)):
            self.remove_overlay(f"hint-{step.id}-{index}")

    def start_game(self, game_id: str) -> ARSession:
        """
        Start a game session with title, score and rule overlays.

        Raises:
            ContentNotFound: If the game is not in the catalog
        """
        game = self._catalog.game(game_id)
        session = self.start("game")
        self.score = 0

        self.add_overlay(
            OverlayElement(
                id="game-title",
                kind="label",
                position=Point(50, 5),
                content=game.name,
                style=OverlayStyle(color=TITLE_COLOR, size=22, opacity=0.9),
            )
        )
        self.set_score(0)
        for index, rule in enumerate(game.rules):
            self.add_overlay(
                OverlayElement(
                    id=f"rule-{index}",
                    kind="tutorial",
                    position=Point(10, 85 + index * 5),
                    content=rule,
                    style=OverlayStyle(color=TITLE_COLOR, size=14, opacity=0.8),
                )
            )

        if game.type in ("speed_sorting", "accuracy_challenge"):
            logger.info(f"Starting {game.type.replace('_', ' ')} game: {game.name}")
        else:
            logger.warning(f"Game mode not implemented: {game.type}")
        return session

    def set_score(self, score: int) -> None:
        """Show a new score; the score label is replaced, not duplicated."""
        self.score = score
        self.add_overlay(
            OverlayElement(
                id="score",
                kind="label",
                position=Point(85, 5),
                content=f"Score: {score}",
                style=OverlayStyle(color=HINT_COLOR, size=18, opacity=0.9),
            )
        )

    def start_assessment(self) -> ARSession:
        return self.start("assessment")
