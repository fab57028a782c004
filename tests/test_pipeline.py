"""
Tests for the detection pipeline (tick loop, reply ingestion, teardown)
"""

import unittest

from ar_guide.core.overlay_store import OverlayStore
from ar_guide.core.pipeline import DetectionPipeline, PipelineState
from ar_guide.core.replay import ReplayResources, ReplayWorker
from ar_guide.core.scheduler import ManualScheduler
from ar_guide.core.timers import ManualTimerService
from ar_guide.models import ARSession, CameraDescriptor
from ar_guide.utils.protocol import MSG_DETECT_FRAME, bins_detected, objects_detected


def item_payload(item_id="i1", category="recyclable", confidence=0.9, kind="waste_item", **extra):
    payload = {
        "id": item_id,
        "type": kind,
        "confidence": confidence,
        "boundingBox": {"x": 100, "y": 100, "width": 50, "height": 50},
        "suggestions": [],
    }
    if category:
        payload["wasteCategory"] = category
    payload.update(extra)
    return payload


def bin_payload(bin_id="b1", category="recyclable", x=400, y=300):
    return {
        "id": bin_id,
        "type": category,
        "color": "",
        "position": {"x": x, "y": y, "z": 0},
        "confidence": 0.95,
        "capacity": 0.5,
        "status": "available",
    }


class PipelineTestCase(unittest.TestCase):
    """Wires a pipeline to replay resources on a virtual clock."""

    def setUp(self):
        self.timers = ManualTimerService()
        self.scheduler = ManualScheduler()
        self.resources = ReplayResources()
        self.popups = []
        self.pipeline = DetectionPipeline(
            self.resources,
            self.scheduler,
            on_suggestions=self.popups.append,
            clock=lambda: 1234,
        )

        self.session = ARSession.create("sorting", CameraDescriptor())
        self.store = OverlayStore(self.timers, is_active=lambda: self.session.active)
        self.camera = self.resources.acquire_camera()
        self.worker = self.resources.spawn_detector()
        self.pipeline.start(self.session, self.store, self.camera, self.worker)

    def deliver(self, *messages):
        self.worker.enqueue(list(messages))
        self.scheduler.tick()

    def ids(self):
        return [e.id for e in self.store.snapshot()]


class TestPipelineTick(PipelineTestCase):
    """Test capture -> send."""

    def test_tick_sends_detect_frame(self):
        self.scheduler.tick()

        self.assertEqual(len(self.worker.sent), 1)
        request = self.worker.sent[0]
        self.assertEqual(request["type"], MSG_DETECT_FRAME)
        self.assertEqual(request["timestamp"], 1234)
        self.assertIsNotNone(request["imageData"])
        self.assertEqual(self.pipeline.stats.frames_sent, 1)

    def test_no_frame_is_skipped(self):
        """Video not producing frames yet -> nothing sent, no error."""
        self.resources.camera_open = False

        self.scheduler.tick(3)

        self.assertEqual(self.worker.sent, [])
        self.assertEqual(self.pipeline.stats.frames_captured, 0)
        self.assertEqual(self.pipeline.stats.ticks, 3)

    def test_busy_worker_drops_frame(self):
        class BusyWorker(ReplayWorker):
            def send(self, message):
                return False

        self.pipeline.stop()
        self.resources.camera_open = True
        session = ARSession.create("sorting", CameraDescriptor())
        store = OverlayStore(self.timers)
        self.pipeline.start(session, store, "camera", BusyWorker())

        self.scheduler.tick(2)

        self.assertEqual(self.pipeline.stats.frames_dropped, 2)
        self.assertEqual(self.pipeline.stats.frames_sent, 0)

    def test_inactive_session_does_not_tick(self):
        self.session.active = False
        self.scheduler.tick()
        self.assertEqual(self.worker.sent, [])


class TestPipelineIngest(PipelineTestCase):
    """Test reply handling."""

    def test_bins_then_objects_produce_guidance(self):
        self.deliver(
            bins_detected([bin_payload("b1", "biodegradable"), bin_payload("b2", "recyclable")]),
            objects_detected([item_payload("i1", "recyclable")]),
        )

        self.assertEqual(self.ids(), ["bin-b1", "bin-b2", "arrow-i1-b2", "info-i1"])
        self.assertEqual(self.store.get("bin-b2").content, "RECYCLABLE")
        self.assertEqual(self.store.get("bin-b2").style.color, "#3b82f6")

    def test_objects_before_bins_use_previous_bins(self):
        """Replies apply in arrival order; objects see whatever bins were known then."""
        self.deliver(
            objects_detected([item_payload("i1", "recyclable")]),
            bins_detected([bin_payload("b1", "recyclable")]),
        )

        self.assertIn("warning-i1", self.ids())
        self.assertNotIn("arrow-i1-b1", self.ids())

    def test_low_confidence_item_gets_no_directive(self):
        """Confidence 0.5 with a matching bin present -> nothing but the bin label."""
        self.deliver(
            bins_detected([bin_payload("b1", "recyclable")]),
            objects_detected([item_payload("i1", "recyclable", confidence=0.5)]),
        )

        self.assertEqual(self.ids(), ["bin-b1"])

    def test_confidence_gate_for_all_categories(self):
        self.deliver(bins_detected([]))
        items = [
            item_payload(f"i{n}", category, confidence=conf)
            for n, (category, conf) in enumerate(
                [("recyclable", 0.7), ("hazardous", 0.3), ("biodegradable", 0.0), (None, 0.69)]
            )
        ]
        self.deliver(objects_detected(items))

        self.assertEqual(self.ids(), [])
        self.assertEqual(len(self.session.tracking.objects), 4)

    def test_non_waste_items_ignored(self):
        self.deliver(objects_detected([item_payload("h1", "recyclable", kind="hand")]))
        self.assertEqual(self.ids(), [])

    def test_guidance_expires_with_ttl(self):
        self.deliver(
            bins_detected([bin_payload("b1", "recyclable")]),
            objects_detected([item_payload("i1", "recyclable")]),
        )

        self.timers.advance(2999)
        self.assertIn("arrow-i1-b1", self.ids())

        self.timers.advance(2)
        self.assertEqual(self.ids(), ["bin-b1"])

    def test_objects_replaced_not_merged(self):
        self.deliver(objects_detected([item_payload("i1"), item_payload("i2")]))
        self.deliver(objects_detected([item_payload("i3")]))

        self.assertEqual([o.id for o in self.session.tracking.objects], ["i3"])

    def test_bin_labels_overwritten_by_id(self):
        self.deliver(bins_detected([bin_payload("b1", "recyclable")]))
        self.deliver(bins_detected([bin_payload("b1", "hazardous")]))

        self.assertEqual(self.ids(), ["bin-b1"])
        self.assertEqual(self.store.get("bin-b1").content, "HAZARDOUS")
        self.assertEqual([b.category for b in self.session.tracking.bins], ["hazardous"])

    def test_duplicate_reply_is_idempotent(self):
        reply = bins_detected([bin_payload("b1", "recyclable")])
        self.deliver(reply, reply, reply)

        self.assertEqual(self.ids(), ["bin-b1"])
        self.assertEqual(len(self.session.tracking.bins), 1)

    def test_accuracy_is_mean_confidence(self):
        self.deliver(
            objects_detected([item_payload("i1", confidence=0.8), item_payload("i2", confidence=0.4)])
        )
        self.assertAlmostEqual(self.session.tracking.accuracy, 0.6)

    def test_unknown_message_ignored(self):
        self.assertFalse(self.pipeline.handle_message({"type": "model_loaded", "data": {}}))
        self.assertFalse(self.pipeline.handle_message("not a dict"))
        self.assertEqual(self.pipeline.stats.replies_ignored, 2)

    def test_malformed_reply_dropped(self):
        self.deliver(bins_detected([bin_payload("b1")]))
        before = self.session.tracking

        applied = self.pipeline.handle_message(
            objects_detected([{"id": "bad", "type": "waste_item"}])
        )

        self.assertFalse(applied)
        self.assertIs(self.session.tracking, before)
        self.assertEqual(self.pipeline.stats.replies_malformed, 1)

    def test_badly_shaped_replies_absorbed(self):
        """Wrong JSON types anywhere in a reply are dropped, never raised."""
        self.deliver(bins_detected([bin_payload("b1")]))
        for reply in (
            {"type": "bins_detected", "data": ["x"]},
            {"type": "objects_detected", "data": "objects"},
            objects_detected([None]),
            objects_detected([item_payload("i1", classification="plastic")]),
            {"type": "objects_detected", "data": {"objects": 5}},
            bins_detected([{"id": "b2", "type": "recyclable", "position": [1, 2]}]),
            bins_detected(["b3"]),
        ):
            with self.subTest(reply=reply):
                self.assertFalse(self.pipeline.handle_message(reply))

        self.assertEqual(self.pipeline.stats.replies_malformed, 7)
        self.assertEqual(self.ids(), ["bin-b1"])

    def test_bad_reply_does_not_drop_rest_of_batch(self):
        self.deliver(
            bins_detected([bin_payload("b1", "recyclable")]),
            objects_detected([item_payload("bad", classification="plastic")]),
            objects_detected([item_payload("good", "recyclable")]),
        )

        self.assertIn("arrow-good-b1", self.ids())
        self.assertEqual(self.pipeline.stats.replies_malformed, 1)
        self.assertEqual(self.pipeline.stats.frames_sent, 1)

    def test_failing_handler_isolated_per_reply(self):
        def broken(popup):
            raise RuntimeError("popup renderer gone")

        self.pipeline._on_suggestions = broken
        with self.assertLogs("ar_guide.core.pipeline", level="ERROR"):
            self.deliver(
                bins_detected([bin_payload("b1", "recyclable")]),
                objects_detected([item_payload("i1", "recyclable", suggestions=["Rinse"])]),
                bins_detected([bin_payload("b2", "hazardous")]),
            )

        self.assertIn("bin-b2", self.ids())

    def test_suggestions_forwarded(self):
        self.deliver(
            bins_detected([bin_payload("b1", "recyclable")]),
            objects_detected([item_payload("i1", "recyclable", suggestions=["Rinse it"])]),
        )

        self.assertEqual(len(self.popups), 1)
        self.assertEqual(self.popups[0].suggestions, ("Rinse it",))


class TestPipelineStop(PipelineTestCase):
    """Test teardown."""

    def test_stop_releases_everything(self):
        self.deliver(bins_detected([bin_payload("b1")]))

        self.pipeline.stop()

        self.assertIs(self.pipeline.state, PipelineState.IDLE)
        self.assertTrue(self.worker.terminated)
        self.assertFalse(self.resources.camera_open)
        self.assertTrue(self.store.closed)
        self.assertEqual(self.store.snapshot(), ())
        self.assertFalse(self.scheduler.running)

    def test_stop_twice_is_noop(self):
        self.pipeline.stop()
        self.pipeline.stop()
        self.assertIs(self.pipeline.state, PipelineState.IDLE)

    def test_reply_after_stop_is_absorbed(self):
        self.pipeline.stop()

        applied = self.pipeline.handle_message(bins_detected([bin_payload("b1")]))

        self.assertFalse(applied)
        self.assertEqual(self.store.snapshot(), ())

    def test_start_while_running_rejected(self):
        with self.assertRaises(RuntimeError):
            self.pipeline.start(self.session, self.store, self.camera, self.worker)

    def test_pending_ttls_cancelled_on_stop(self):
        self.deliver(
            bins_detected([bin_payload("b1", "recyclable")]),
            objects_detected([item_payload("i1", "recyclable")]),
        )

        self.pipeline.stop()

        self.assertEqual(self.timers.pending(), 0)
        self.assertEqual(self.timers.advance(10_000), 0)


if __name__ == "__main__":
    unittest.main()
