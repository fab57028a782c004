"""
Detector Worker Protocol - message shapes and channel interface.

The detector runs in its own process and is reached only through
message passing. Requests and responses are plain dicts so they can
cross a multiprocessing.Queue:

    request:   {"type": "detect_frame", "imageData": ndarray, "timestamp": ms}
    responses: {"type": "objects_detected", "data": {"objects": [...]}}
               {"type": "bins_detected", "data": {"bins": [...]}}
    lifecycle: {"type": "worker_ready"}
               {"type": "worker_error", "data": {"error": "..."}}

Putting None on the request channel asks the worker to exit.
"""

import time
from typing import Any, Protocol, runtime_checkable

MSG_DETECT_FRAME = "detect_frame"
MSG_OBJECTS_DETECTED = "objects_detected"
MSG_BINS_DETECTED = "bins_detected"
MSG_WORKER_READY = "worker_ready"
MSG_WORKER_ERROR = "worker_error"


@runtime_checkable
class MessageChannel(Protocol):
    """
    Protocol for the transport between pipeline and detector.

    multiprocessing.Queue and queue.Queue both satisfy this interface,
    which lets the worker service be exercised in-process.
    """

    def put(self, message: dict[str, Any] | None) -> None:
        """Send a message (None = shutdown sentinel)."""
        ...

    def get(
        self,
        _block: bool = True,
        _timeout: float | None = None,
    ) -> dict[str, Any] | None:
        """
        Receive a message.

        Raises:
            Empty: If non-blocking and no message available
        """
        ...

    def put_nowait(self, message: dict[str, Any] | None) -> None:
        """
        Raises:
            Full: If the channel is bounded and full
        """
        ...

    def get_nowait(self) -> dict[str, Any] | None:
        """
        Raises:
            Empty: If no message available
        """
        ...


def detect_frame_request(frame, timestamp: int | None = None) -> dict[str, Any]:
    """Build a detect_frame request for a captured frame."""
    if timestamp is None:
        timestamp = int(time.time() * 1000)
    return {"type": MSG_DETECT_FRAME, "imageData": frame, "timestamp": timestamp}


def objects_detected(
    objects: list[dict[str, Any]], timestamp: int | None = None
) -> dict[str, Any]:
    """Build an objects_detected response, tagged with the request timestamp."""
    data: dict[str, Any] = {"objects": objects}
    if timestamp is not None:
        data["timestamp"] = timestamp
    return {"type": MSG_OBJECTS_DETECTED, "data": data}


def bins_detected(
    bins: list[dict[str, Any]], timestamp: int | None = None
) -> dict[str, Any]:
    """Build a bins_detected response, tagged with the request timestamp."""
    data: dict[str, Any] = {"bins": bins}
    if timestamp is not None:
        data["timestamp"] = timestamp
    return {"type": MSG_BINS_DETECTED, "data": data}


def worker_ready() -> dict[str, Any]:
    return {"type": MSG_WORKER_READY}


def worker_error(error: str) -> dict[str, Any]:
    return {"type": MSG_WORKER_ERROR, "data": {"error": error}}
