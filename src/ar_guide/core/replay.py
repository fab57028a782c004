"""
Replay - run recorded detector replies through the engine (dry run).

No camera, no worker process, no wall clock: frames are placeholders,
the detector is a script of replies, ticks and TTLs advance on a
virtual clock. Used by `python -m ar_guide --dry-run replay.json`.

Replay file format:
    {
      "mode": "sorting",
      "steps": [
        {"messages": [{"type": "bins_detected", "data": {"bins": [...]}}],
         "advance_ms": 500},
        {"messages": [{"type": "objects_detected", "data": {"objects": [...]}}],
         "advance_ms": 3100}
      ]
    }
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from ..config.loader import Colors
from ..models import RenderSnapshot
from .resources import Capabilities
from .scheduler import ManualScheduler
from .session import SessionManager
from .timers import ManualTimerService

logger = logging.getLogger(__name__)


@dataclass
class ReplayStep:
    messages: list[dict[str, Any]] = field(default_factory=list)
    advance_ms: int = 0


class ReplayWorker:
    """Detector stand-in that answers with scripted replies."""

    def __init__(self):
        self.sent: list[dict[str, Any]] = []
        self._pending: list[dict[str, Any]] = []
        self.terminated = False

    def enqueue(self, messages: list[dict[str, Any]]) -> None:
        self._pending.extend(messages)

    def send(self, message: dict[str, Any]) -> bool:
        if self.terminated:
            return False
        self.sent.append(message)
        return True

    def poll(self) -> list[dict[str, Any]]:
        messages, self._pending = self._pending, []
        return messages

    def terminate(self) -> None:
        self.terminated = True


class ReplayResources:
    """ResourceAdapter with a placeholder camera and a ReplayWorker."""

    def __init__(self):
        self.worker = ReplayWorker()
        self.camera_open = False

    def probe(self) -> Capabilities:
        return Capabilities(camera=True, worker=True, graphics=True)

    def acquire_camera(self, preferred_facing: str = "environment") -> str:
        self.camera_open = True
        return "replay-camera"

    def release_camera(self, handle) -> None:
        self.camera_open = False

    def spawn_detector(self) -> ReplayWorker:
        self.worker = ReplayWorker()
        return self.worker

    def terminate_detector(self, handle) -> None:
        if handle is not None:
            handle.terminate()

    def capture_frame(self, handle) -> np.ndarray | None:
        if not self.camera_open:
            return None
        return np.zeros((1, 1, 3), dtype=np.uint8)


def load_replay(path: str) -> tuple[str, list[ReplayStep]]:
    """
    Load a replay file.

    Returns:
        (mode, steps)

    Raises:
        ValueError: If the file has neither a steps array nor is one
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    # Handle both array and object with 'steps' key
    if isinstance(data, list):
        mode, raw_steps = "sorting", data
    elif isinstance(data, dict) and "steps" in data:
        mode, raw_steps = data.get("mode", "sorting"), data["steps"]
    else:
        raise ValueError("Replay file must contain an array or object with 'steps' key")

    steps = [
        ReplayStep(
            messages=list(step.get("messages", [])),
            advance_ms=int(step.get("advance_ms", 0)),
        )
        for step in raw_steps
    ]
    return mode, steps


def run_replay(mode: str, steps: list[ReplayStep], verbose: bool = True) -> list[RenderSnapshot]:
    """
    Replay steps through a session on a virtual clock.

    Each step delivers its replies on one tick, then advances the
    clock (firing any TTL expiries that come due).

    Returns:
        Overlay snapshot taken after each step
    """
    timers = ManualTimerService()
    scheduler = ManualScheduler()
    resources = ReplayResources()
    manager = SessionManager(resources, timers, scheduler)

    manager.start(mode)
    snapshots = []
    try:
        for index, step in enumerate(steps, 1):
            resources.worker.enqueue(step.messages)
            scheduler.tick()
            timers.advance(step.advance_ms)

            snapshot = manager.overlay_snapshot()
            snapshots.append(snapshot)
            if verbose:
                _print_step(index, step, timers.now_ms, snapshot)
    finally:
        manager.stop()

    if verbose:
        _print_summary(manager, snapshots)
    return snapshots


def _print_step(index: int, step: ReplayStep, now_ms: int, snapshot: RenderSnapshot) -> None:
    types = ", ".join(m.get("type", "?") for m in step.messages) or "no replies"
    print(f"  [{index}] t={now_ms}ms  {types}")
    for element in snapshot.elements:
        ttl = f"{element.ttl_ms}ms" if element.ttl_ms is not None else "persistent"
        print(
            f"      {Colors.GREEN}{element.kind:<9}{Colors.RESET} {element.id:<24} "
            f"{element.content!r} ({ttl})"
        )


def _print_summary(manager: SessionManager, snapshots: list[RenderSnapshot]) -> None:
    stats = manager.pipeline.stats
    print(f"\n{Colors.CYAN}Replay Summary:{Colors.RESET}")
    print(f"  Steps: {len(snapshots)}")
    print(f"  Replies applied: {stats.replies_applied}")
    print(f"  Replies ignored: {stats.replies_ignored}")
    print(f"  Replies malformed: {stats.replies_malformed}")
    print(f"  Overlay after stop: {len(manager.overlay_snapshot().elements)} element(s)")
    print()
