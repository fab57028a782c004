"""
Detector backends and the worker service that hosts them.

The detector runs in its own process; the engine only sees the
objects_detected / bins_detected messages it sends back.
"""

from typing import Protocol, runtime_checkable

import numpy as np

from .registry import BACKEND_REGISTRY, build_backend, register
from .service import run_detector_service

__all__ = [
    "BACKEND_REGISTRY",
    "DetectorBackend",
    "build_backend",
    "register",
    "run_detector_service",
]


@runtime_checkable
class DetectorBackend(Protocol):
    """
    Protocol for detection algorithms hosted by the worker.

    Implementations turn one frame into payload dicts in the worker
    protocol's shape (see utils.protocol).
    """

    def detect(self, frame: np.ndarray) -> tuple[list[dict], list[dict]]:
        """
        Detect waste items and bins in a frame.

        Args:
            frame: BGR frame from camera (numpy array)

        Returns:
            (objects, bins) as lists of payload dicts
        """
        ...
