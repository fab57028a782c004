"""
Session data model.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Literal

from ..utils.constants import (
    DEFAULT_CAMERA_HEIGHT,
    DEFAULT_CAMERA_WIDTH,
    DEFAULT_FACING,
)
from .detection import TrackingSnapshot
from .overlay import RenderSnapshot

SessionMode = Literal["sorting", "education", "game", "assessment"]
SESSION_MODES = ("sorting", "education", "game", "assessment")


@dataclass(frozen=True)
class CameraDescriptor:
    facing: str = DEFAULT_FACING
    width: int = DEFAULT_CAMERA_WIDTH
    height: int = DEFAULT_CAMERA_HEIGHT


@dataclass
class ARSession:
    """
    One bounded lifetime of camera-driven guidance.

    Mutated only by the SessionManager and by DetectionPipeline reply
    handlers. The tracking snapshot is replaced wholesale on each
    detector reply; readers never observe a half-updated snapshot.

    Attributes:
        id: Session identifier (ar-session-<epoch ms>)
        mode: sorting, education, game or assessment
        camera: Facing and resolution of the acquired stream
        tracking: Latest objects/bins from the detector
        overlay: Read-only view of the session's overlay store (empty once stopped)
        active: False once stop() has begun
        started_at: Wall-clock start time (seconds)
    """

    id: str
    mode: str
    camera: CameraDescriptor = field(default_factory=CameraDescriptor)
    tracking: TrackingSnapshot = field(default_factory=TrackingSnapshot)
    active: bool = True
    started_at: float = field(default_factory=time.time)
    _overlay_source: Callable[[], RenderSnapshot] | None = field(
        default=None, init=False, repr=False, compare=False
    )

    @property
    def overlay(self) -> RenderSnapshot:
        source = self._overlay_source
        return source() if source is not None else RenderSnapshot()

    def bind_overlay(self, source: Callable[[], RenderSnapshot] | None) -> None:
        """Attach (or detach, with None) the store that backs `overlay`."""
        self._overlay_source = source

    @classmethod
    def create(cls, mode: str, camera: CameraDescriptor) -> "ARSession":
        if mode not in SESSION_MODES:
            raise ValueError(f"Unknown session mode: {mode!r}")
        return cls(id=f"ar-session-{int(time.time() * 1000)}", mode=mode, camera=camera)
