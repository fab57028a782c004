"""
Camera initialization and management.
"""

import logging
import os
import time
from pathlib import Path

import cv2
import numpy as np

from ..errors import DeviceUnavailable, PermissionDenied
from ..utils.constants import (
    CAMERA_OPEN_TIMEOUT_MS,
    CAMERA_READ_TIMEOUT_MS,
    CAMERA_RECONNECT_DELAY,
    DEFAULT_CAMERA_HEIGHT,
    DEFAULT_CAMERA_WIDTH,
    MAX_CAMERA_RECONNECT_ATTEMPTS,
)

logger = logging.getLogger(__name__)


class CameraHandle:
    """An opened camera stream. Release is idempotent."""

    def __init__(
        self,
        capture: cv2.VideoCapture,
        source: int | str,
        facing: str,
        width: int,
        height: int,
    ):
        self.capture = capture
        self.source = source
        self.facing = facing
        self.width = width
        self.height = height
        self.released = False

    def release(self) -> None:
        if self.released:
            return
        self.released = True
        self.capture.release()
        logger.info(f"Camera released: {self.source}")

    def __repr__(self) -> str:
        state = "released" if self.released else "open"
        return f"CameraHandle({self.source!r}, {self.facing}, {self.width}x{self.height}, {state})"


def parse_source(source: int | str) -> int | str:
    """Device indices may arrive as strings from YAML or the environment."""
    if isinstance(source, str) and source.strip().isdigit():
        return int(source.strip())
    return source


def device_path(source: int | str) -> Path | None:
    """
    Local device node for a camera source.

    Returns:
        /dev/videoN for integer indices, the path itself for /dev/...
        sources, None for URLs and files
    """
    source = parse_source(source)
    if isinstance(source, int):
        return Path(f"/dev/video{source}")
    if source.startswith("/dev/"):
        return Path(source)
    return None


def check_device_access(source: int | str) -> None:
    """
    Fail early for local devices that are missing or not accessible.

    Raises:
        DeviceUnavailable: If the device node does not exist
        PermissionDenied: If the device node exists but cannot be opened
    """
    path = device_path(source)
    if path is None:
        return
    if not path.exists():
        raise DeviceUnavailable(f"Camera not found: {path}")
    if not os.access(path, os.R_OK | os.W_OK):
        raise PermissionDenied(f"Camera access denied: {path}")


def _open_capture(source: int | str) -> cv2.VideoCapture:
    """Open a capture; URL and file sources get bounded open/read timeouts."""
    if isinstance(source, int):
        return cv2.VideoCapture(source)
    return cv2.VideoCapture(
        source,
        cv2.CAP_ANY,
        [
            cv2.CAP_PROP_OPEN_TIMEOUT_MSEC,
            CAMERA_OPEN_TIMEOUT_MS,
            cv2.CAP_PROP_READ_TIMEOUT_MSEC,
            CAMERA_READ_TIMEOUT_MS,
        ],
    )


def initialize_camera(
    source: int | str,
    facing: str,
    width: int = DEFAULT_CAMERA_WIDTH,
    height: int = DEFAULT_CAMERA_HEIGHT,
    attempts: int = MAX_CAMERA_RECONNECT_ATTEMPTS,
    delay: float = CAMERA_RECONNECT_DELAY,
) -> CameraHandle:
    """
    Open a camera with retry logic, requesting the given resolution.

    Args:
        source: Device index, device path or stream URL
        facing: Logical facing this source serves ("environment"/"user")
        width: Ideal frame width
        height: Ideal frame height
        attempts: Extra attempts after the first failure
        delay: Seconds between attempts

    Returns:
        Opened CameraHandle (actual resolution may differ from requested)

    Raises:
        DeviceUnavailable: If the camera cannot be opened after retries
        PermissionDenied: If the local device is not accessible
    """
    source = parse_source(source)
    check_device_access(source)

    for attempt in range(attempts + 1):
        logger.info(f"Connecting to camera: {source} (attempt {attempt + 1})")
        cap = _open_capture(source)

        if cap.isOpened():
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
            actual_w = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)) or width
            actual_h = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)) or height
            logger.info(f"Camera connected successfully ({actual_w}x{actual_h})")
            return CameraHandle(cap, source, facing, actual_w, actual_h)

        cap.release()
        if attempt < attempts:
            logger.warning(f"Failed to connect, retrying in {delay}s...")
            time.sleep(delay)

    logger.error(f"Failed to connect to camera after {attempts + 1} attempts")
    raise DeviceUnavailable(f"Cannot connect to camera: {source}")


def read_frame(handle: CameraHandle) -> np.ndarray | None:
    """
    Grab the current frame.

    Local devices return within one frame interval. Stream sources are
    opened with a read timeout (CAMERA_READ_TIMEOUT_MS) so a stalled
    network feed costs at most that long per tick.

    Returns:
        BGR frame, or None when the stream is released or has not
        produced a frame yet (read failure or zero-sized image)
    """
    if handle.released:
        return None
    ret, frame = handle.capture.read()
    if not ret or frame is None or frame.size == 0:
        return None
    height, width = frame.shape[:2]
    if width == 0 or height == 0:
        return None
    return frame
