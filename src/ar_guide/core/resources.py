"""
Resource Adapter - camera stream and detector worker acquisition.

The session manager and pipeline only talk to devices through this
interface, so tests and replays can substitute their own adapter.
Release/terminate are idempotent and accept already-released handles.
"""

import logging
import multiprocessing
import os
import sys
from dataclasses import dataclass
from typing import Any, Protocol

import numpy as np

from ..config import GuideConfig
from ..errors import DeviceUnavailable
from ..utils.constants import DEFAULT_FACING
from .camera import CameraHandle, device_path, initialize_camera, read_frame
from .worker import DetectorWorker, spawn_detector_worker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Capabilities:
    """What the device can do."""

    camera: bool
    worker: bool
    graphics: bool

    @property
    def supported(self) -> bool:
        return self.camera and self.worker and self.graphics

    def missing(self) -> list[str]:
        return [
            name
            for name, present in (
                ("camera", self.camera),
                ("worker", self.worker),
                ("graphics", self.graphics),
            )
            if not present
        ]


class ResourceAdapter(Protocol):
    """Device-facing primitives used by the session manager and pipeline."""

    def probe(self) -> Capabilities:
        ...

    def acquire_camera(self, preferred_facing: str = DEFAULT_FACING) -> Any:
        """
        Raises:
            DeviceUnavailable: If no camera exists or it cannot be opened
            PermissionDenied: If camera access is declined
        """
        ...

    def release_camera(self, handle: Any) -> None:
        ...

    def spawn_detector(self) -> Any:
        """
        Raises:
            DetectorUnavailable: If the worker cannot be created
        """
        ...

    def terminate_detector(self, handle: Any) -> None:
        ...

    def capture_frame(self, handle: Any) -> np.ndarray | None:
        """Current frame, or None if the stream has not produced one yet."""
        ...


class DeviceResources:
    """ResourceAdapter backed by OpenCV cameras and a worker process."""

    def __init__(self, config: GuideConfig):
        self._config = config

    def probe(self) -> Capabilities:
        return Capabilities(
            camera=self._has_camera(),
            worker=bool(multiprocessing.get_all_start_methods()),
            graphics=self._has_graphics(),
        )

    def _has_camera(self) -> bool:
        sources = self._config.camera.sources
        if not sources:
            return False
        for source in sources.values():
            path = device_path(source)
            if path is None or path.exists():
                return True
        return False

    def _has_graphics(self) -> bool:
        if self._config.render.headless:
            return True
        if sys.platform in ("win32", "darwin"):
            return True
        return bool(os.environ.get("DISPLAY") or os.environ.get("WAYLAND_DISPLAY"))

    def acquire_camera(self, preferred_facing: str = DEFAULT_FACING) -> CameraHandle:
        camera = self._config.camera
        facing = preferred_facing
        source = camera.sources.get(facing)
        if source is None:
            if not camera.sources:
                raise DeviceUnavailable("No camera source configured")
            # Fall back to whatever camera exists, as a browser would
            facing, source = next(iter(camera.sources.items()))
            logger.warning(f"No {preferred_facing}-facing camera, using {facing}")

        return initialize_camera(
            source,
            facing,
            width=camera.width,
            height=camera.height,
            attempts=camera.reconnect_attempts,
            delay=camera.reconnect_delay,
        )

    def release_camera(self, handle: CameraHandle | None) -> None:
        if handle is not None:
            handle.release()

    def spawn_detector(self) -> DetectorWorker:
        detector = self._config.detector
        return spawn_detector_worker(
            detector.model_dump(),
            queue_size=detector.queue_size,
            spawn_timeout=detector.spawn_timeout,
        )

    def terminate_detector(self, handle: DetectorWorker | None) -> None:
        if handle is not None:
            handle.terminate()

    def capture_frame(self, handle: CameraHandle | None) -> np.ndarray | None:
        if handle is None:
            return None
        return read_frame(handle)
