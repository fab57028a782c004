"""
Utility modules for constants, the worker protocol and snapshot output.
"""

from .constants import (
    BIN_COLORS,
    DEFAULT_BIN_COLOR,
    ENV_CAMERA_SOURCE,
    GUIDANCE_CONFIDENCE_THRESHOLD,
    GUIDANCE_TTL_MS,
    WARNING_TTL_MS,
)
from .protocol import (
    MSG_BINS_DETECTED,
    MSG_DETECT_FRAME,
    MSG_OBJECTS_DETECTED,
    MSG_WORKER_ERROR,
    MSG_WORKER_READY,
    MessageChannel,
    bins_detected,
    detect_frame_request,
    objects_detected,
)

__all__ = [
    "BIN_COLORS",
    "DEFAULT_BIN_COLOR",
    "ENV_CAMERA_SOURCE",
    "GUIDANCE_CONFIDENCE_THRESHOLD",
    "GUIDANCE_TTL_MS",
    "WARNING_TTL_MS",
    # Worker protocol
    "MSG_BINS_DETECTED",
    "MSG_DETECT_FRAME",
    "MSG_OBJECTS_DETECTED",
    "MSG_WORKER_ERROR",
    "MSG_WORKER_READY",
    "MessageChannel",
    "bins_detected",
    "detect_frame_request",
    "objects_detected",
]
