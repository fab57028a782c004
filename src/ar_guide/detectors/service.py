"""
Detector Worker Service - the loop that runs inside the worker process.

Receives detect_frame requests, runs the configured backend, and
replies with one objects_detected and one bins_detected message per
frame. Announces itself with worker_ready (or worker_error if the
backend cannot be built). A None request shuts it down.
"""

import logging

from ..utils.protocol import (
    MSG_DETECT_FRAME,
    MessageChannel,
    bins_detected,
    objects_detected,
    worker_error,
    worker_ready,
)
from .registry import build_backend

logger = logging.getLogger(__name__)


def run_detector_service(
    requests: MessageChannel,
    responses: MessageChannel,
    detector_config: dict,
    backend=None,
) -> int:
    """
    Serve detection requests until the shutdown sentinel arrives.

    Args:
        requests: Channel carrying detect_frame requests (None = stop)
        responses: Channel for detection results and lifecycle messages
        detector_config: Detector section of the config, as a dict
        backend: Pre-built backend (skips build_backend)

    Returns:
        Number of frames processed
    """
    if backend is None:
        try:
            backend = build_backend(detector_config)
        except Exception as e:
            logger.error(f"Detector backend failed to load: {e}", exc_info=True)
            responses.put(worker_error(str(e)))
            return 0

    responses.put(worker_ready())
    logger.info("Detector worker ready")

    processed = 0
    while True:
        try:
            message = requests.get()
        except (EOFError, OSError, KeyboardInterrupt):
            break

        if message is None:  # Shutdown signal
            break

        if message.get("type") != MSG_DETECT_FRAME:
            logger.debug(f"Ignoring request type: {message.get('type')}")
            continue

        try:
            objects, bins = backend.detect(message["imageData"])
        except Exception as e:
            logger.error(f"Detection failed: {e}", exc_info=True)
            continue

        timestamp = message.get("timestamp")
        responses.put(objects_detected(objects, timestamp))
        responses.put(bins_detected(bins, timestamp))
        processed += 1

    logger.info(f"Detector worker stopped after {processed} frame(s)")
    return processed
