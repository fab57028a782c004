"""
Tests for the session manager (start/stop lifecycle and mode entry points)
"""

import unittest

from ar_guide.content import ContentCatalog
from ar_guide.core.pipeline import PipelineState
from ar_guide.core.replay import ReplayResources
from ar_guide.core.resources import Capabilities
from ar_guide.core.scheduler import ManualScheduler
from ar_guide.core.session import SessionManager
from ar_guide.core.timers import ManualTimerService
from ar_guide.errors import (
    ContentNotFound,
    DetectorUnavailable,
    PermissionDenied,
    Unsupported,
)
from ar_guide.models import OverlayElement, OverlayStyle, Point
from ar_guide.utils.protocol import bins_detected, objects_detected


class RecordingResources(ReplayResources):
    """Replay resources that log every call and can be told to fail."""

    def __init__(
        self, capabilities=None, camera_error=None, detector_error=None, terminate_error=None
    ):
        super().__init__()
        self.calls = []
        self.capabilities = capabilities or Capabilities(True, True, True)
        self.camera_error = camera_error
        self.detector_error = detector_error
        self.terminate_error = terminate_error

    def probe(self):
        self.calls.append("probe")
        return self.capabilities

    def acquire_camera(self, preferred_facing="environment"):
        self.calls.append("acquire_camera")
        if self.camera_error is not None:
            raise self.camera_error
        return super().acquire_camera(preferred_facing)

    def release_camera(self, handle):
        self.calls.append("release_camera")
        super().release_camera(handle)

    def spawn_detector(self):
        self.calls.append("spawn_detector")
        if self.detector_error is not None:
            raise self.detector_error
        return super().spawn_detector()

    def terminate_detector(self, handle):
        self.calls.append("terminate_detector")
        super().terminate_detector(handle)
        if self.terminate_error is not None:
            raise self.terminate_error


class BrokenScheduler(ManualScheduler):
    """Scheduler that cannot start a tick loop."""

    def start(self, callback):
        raise RuntimeError("can't start new thread")


def make_manager(resources=None, catalog=None, scheduler=None):
    resources = resources or RecordingResources()
    timers = ManualTimerService()
    scheduler = scheduler or ManualScheduler()
    manager = SessionManager(resources, timers, scheduler, catalog=catalog)
    return manager, resources, timers, scheduler


def waste_item(item_id="i1", category="recyclable", confidence=0.9):
    return {
        "id": item_id,
        "type": "waste_item",
        "wasteCategory": category,
        "confidence": confidence,
        "boundingBox": {"x": 10, "y": 50, "width": 20, "height": 20},
    }


def recycling_bin(bin_id="b1"):
    return {"id": bin_id, "type": "recyclable", "position": {"x": 300, "y": 200, "z": 0}}


class TestSessionStart(unittest.TestCase):
    """Test session start."""

    def test_start_seeds_welcome(self):
        manager, resources, _, scheduler = make_manager()

        session = manager.start("sorting")

        self.assertTrue(manager.is_active)
        self.assertEqual(session.mode, "sorting")
        self.assertTrue(session.id.startswith("ar-session-"))
        self.assertEqual(manager.overlay_snapshot().element_ids(), ["welcome"])
        self.assertTrue(scheduler.running)
        self.assertEqual(resources.calls, ["probe", "acquire_camera", "spawn_detector"])

    def test_unknown_mode_rejected(self):
        manager, resources, _, _ = make_manager()

        with self.assertRaises(ValueError):
            manager.start("karaoke")
        self.assertEqual(resources.calls, [])

    def test_unsupported_touches_nothing(self):
        resources = RecordingResources(capabilities=Capabilities(True, False, True))
        manager, _, _, _ = make_manager(resources)

        with self.assertRaises(Unsupported) as ctx:
            manager.start("sorting")

        self.assertEqual(ctx.exception.missing, ["worker"])
        self.assertEqual(resources.calls, ["probe"])
        self.assertIsNone(manager.session)

    def test_permission_denied_spawns_no_worker(self):
        """Camera declined -> no worker, no session, empty overlay."""
        resources = RecordingResources(camera_error=PermissionDenied("declined"))
        manager, _, _, _ = make_manager(resources)

        with self.assertRaises(PermissionDenied):
            manager.start("sorting")

        self.assertNotIn("spawn_detector", resources.calls)
        self.assertIsNone(manager.session)
        self.assertFalse(manager.is_active)
        self.assertEqual(manager.overlay_snapshot().elements, ())

    def test_detector_failure_releases_camera(self):
        resources = RecordingResources(detector_error=DetectorUnavailable("no model"))
        manager, _, _, _ = make_manager(resources)

        with self.assertRaises(DetectorUnavailable):
            manager.start("sorting")

        self.assertEqual(
            resources.calls, ["probe", "acquire_camera", "spawn_detector", "release_camera"]
        )
        self.assertFalse(resources.camera_open)
        self.assertIsNone(manager.session)

    def test_unexpected_detector_failure_releases_camera(self):
        resources = RecordingResources(detector_error=OSError("Too many open files"))
        manager, _, _, _ = make_manager(resources)

        with self.assertRaises(OSError):
            manager.start("sorting")

        self.assertEqual(
            resources.calls, ["probe", "acquire_camera", "spawn_detector", "release_camera"]
        )
        self.assertFalse(resources.camera_open)
        self.assertIsNone(manager.session)

    def test_pipeline_failure_releases_camera_and_worker(self):
        resources = RecordingResources()
        manager, _, _, _ = make_manager(resources, scheduler=BrokenScheduler())

        with self.assertRaises(RuntimeError):
            manager.start("sorting")

        self.assertEqual(resources.calls[-2:], ["terminate_detector", "release_camera"])
        self.assertTrue(resources.worker.terminated)
        self.assertFalse(resources.camera_open)
        self.assertIsNone(manager.session)
        self.assertEqual(manager.overlay_snapshot().elements, ())

        self.assertIs(manager.pipeline.state, PipelineState.IDLE)

    def test_session_exposes_overlay_view(self):
        manager, _, _, _ = make_manager()
        session = manager.start("sorting")

        self.assertEqual(session.overlay.element_ids(), ["welcome"])
        self.assertEqual(session.overlay, manager.overlay_snapshot())

        manager.stop()
        self.assertEqual(session.overlay.elements, ())

    def test_second_start_replaces_first(self):
        manager, resources, _, _ = make_manager()
        first = manager.start("sorting")
        first_worker = resources.worker

        second = manager.start("assessment")

        self.assertFalse(first.active)
        self.assertTrue(first_worker.terminated)
        self.assertIs(manager.session, second)
        self.assertEqual(second.mode, "assessment")
        self.assertEqual(manager.overlay_snapshot().element_ids(), ["welcome"])


class TestSessionStop(unittest.TestCase):
    """Test teardown."""

    def test_stop_clears_overlays_and_releases(self):
        manager, resources, _, scheduler = make_manager()
        session = manager.start("sorting")

        manager.stop()

        self.assertFalse(session.active)
        self.assertIsNone(manager.session)
        self.assertEqual(manager.overlay_snapshot().elements, ())
        self.assertFalse(scheduler.running)
        self.assertFalse(resources.camera_open)
        self.assertTrue(resources.worker.terminated)
        self.assertEqual(resources.calls[-2:], ["terminate_detector", "release_camera"])

    def test_no_expiry_after_stop(self):
        """Guidance pending at stop never mutates anything afterwards."""
        manager, resources, timers, scheduler = make_manager()
        manager.start("sorting")
        resources.worker.enqueue(
            [bins_detected([recycling_bin()]), objects_detected([waste_item()])]
        )
        scheduler.tick()
        self.assertIn("arrow-i1-b1", manager.overlay_snapshot().element_ids())

        manager.stop()

        self.assertEqual(timers.advance(5000), 0)
        self.assertEqual(manager.overlay_snapshot().elements, ())
        self.assertEqual(scheduler.tick(), 0)

    def test_failed_teardown_still_discards_session(self):
        resources = RecordingResources(terminate_error=OSError("worker pipe broken"))
        manager, _, _, scheduler = make_manager(resources)
        manager.start("sorting")

        with self.assertRaises(OSError):
            manager.stop()

        self.assertIsNone(manager.session)
        self.assertFalse(manager.is_active)
        self.assertFalse(resources.camera_open)
        self.assertFalse(scheduler.running)
        self.assertEqual(manager.overlay_snapshot().elements, ())

        resources.terminate_error = None
        self.assertTrue(manager.start("sorting").active)

    def test_stop_without_session_is_noop(self):
        manager, resources, _, _ = make_manager()
        manager.stop()
        manager.stop()
        self.assertEqual(resources.calls, [])

    def test_overlay_calls_after_stop_refused(self):
        manager, _, _, _ = make_manager()
        manager.start("sorting")
        manager.stop()

        element = OverlayElement(
            id="late",
            kind="label",
            position=Point(0, 0),
            content="late",
            style=OverlayStyle(color="#ffffff", size=12, opacity=1.0),
        )
        self.assertFalse(manager.add_overlay(element))
        self.assertFalse(manager.remove_overlay("welcome"))


class TestEducation(unittest.TestCase):
    """Test education mode."""

    def setUp(self):
        self.catalog = ContentCatalog.from_dict(
            {
                "education": [
                    {
                        "id": "lesson",
                        "title": "Sorting 101",
                        "steps": [
                            {"id": "s1", "instruction": "Find a bottle", "hints": ["Check the label"]},
                            {"id": "s2", "instruction": "Find a can"},
                        ],
                    }
                ]
            }
        )
        self.manager, self.resources, _, _ = make_manager(catalog=self.catalog)

    def test_first_step_shown(self):
        session = self.manager.start_education("lesson")

        self.assertEqual(session.mode, "education")
        snapshot = self.manager.overlay_snapshot()
        self.assertEqual(
            snapshot.element_ids(), ["welcome", "education-title", "step-s1", "hint-s1-0"]
        )
        self.assertEqual(snapshot.get("education-title").content, "Sorting 101")
        self.assertEqual(snapshot.get("hint-s1-0").content, "💡 Check the label")

    def test_next_step_replaces_previous(self):
        self.manager.start_education("lesson")

        self.assertTrue(self.manager.next_education_step())
        ids = self.manager.overlay_snapshot().element_ids()
        self.assertIn("step-s2", ids)
        self.assertNotIn("step-s1", ids)
        self.assertNotIn("hint-s1-0", ids)

        self.assertFalse(self.manager.next_education_step())

    def test_unknown_content_touches_nothing(self):
        with self.assertRaises(ContentNotFound):
            self.manager.start_education("missing")
        self.assertEqual(self.resources.calls, [])
        self.assertIsNone(self.manager.session)


class TestGame(unittest.TestCase):
    """Test game mode."""

    def test_game_overlays(self):
        manager, _, _, _ = make_manager()

        session = manager.start_game("speed-sort-1")

        self.assertEqual(session.mode, "game")
        snapshot = manager.overlay_snapshot()
        self.assertEqual(snapshot.get("game-title").content, "Speed Sorting Challenge")
        self.assertEqual(snapshot.get("score").content, "Score: 0")
        self.assertIn("rule-0", snapshot.element_ids())
        self.assertIn("rule-1", snapshot.element_ids())

    def test_score_label_replaced(self):
        manager, _, _, _ = make_manager()
        manager.start_game("speed-sort-1")

        manager.set_score(30)

        snapshot = manager.overlay_snapshot()
        self.assertEqual(snapshot.element_ids().count("score"), 1)
        self.assertEqual(snapshot.get("score").content, "Score: 30")
        self.assertEqual(manager.score, 30)

    def test_unknown_game(self):
        manager, resources, _, _ = make_manager()
        with self.assertRaises(ContentNotFound):
            manager.start_game("nope")
        self.assertEqual(resources.calls, [])

    def test_assessment(self):
        manager, _, _, _ = make_manager()
        self.assertEqual(manager.start_assessment().mode, "assessment")


if __name__ == "__main__":
    unittest.main()
