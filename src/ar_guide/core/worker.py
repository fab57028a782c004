"""
Detector worker handle - the pipeline's side of the worker process.

The detector runs in a separate process and is reached exclusively
through two queues. Sending never blocks: when the request queue is
full the frame is dropped. Replies are drained without blocking.
"""

import logging
from multiprocessing import Process, Queue
from queue import Empty, Full
from typing import Any

from ..detectors.service import run_detector_service
from ..errors import DetectorUnavailable
from ..utils.constants import (
    DEFAULT_WORKER_QUEUE_SIZE,
    DEFAULT_WORKER_SPAWN_TIMEOUT,
    WORKER_JOIN_TIMEOUT,
)
from ..utils.protocol import MSG_WORKER_ERROR, MSG_WORKER_READY, MessageChannel

logger = logging.getLogger(__name__)


class DetectorWorker:
    """Request/response channel to a detector. Terminate is idempotent."""

    def __init__(
        self,
        requests: MessageChannel,
        responses: MessageChannel,
        process: Process | None = None,
    ):
        self._requests = requests
        self._responses = responses
        self._process = process
        self.terminated = False

    @property
    def alive(self) -> bool:
        if self.terminated:
            return False
        return self._process is None or self._process.is_alive()

    def send(self, message: dict[str, Any]) -> bool:
        """
        Queue a request without blocking.

        Returns:
            False if the worker is gone or the request queue is full
        """
        if self.terminated:
            return False
        try:
            self._requests.put_nowait(message)
            return True
        except Full:
            return False

    def poll(self) -> list[dict[str, Any]]:
        """Drain every reply that has already arrived."""
        messages = []
        while True:
            try:
                messages.append(self._responses.get_nowait())
            except Empty:
                break
            except (EOFError, OSError, ValueError):
                # Queue closed under us during teardown
                break
        return messages

    def wait_for(self, timeout: float) -> dict[str, Any] | None:
        """Block up to timeout for one reply."""
        try:
            return self._responses.get(timeout=timeout)
        except Empty:
            return None

    def terminate(self) -> None:
        """Ask the worker to exit, then force it if it does not."""
        if self.terminated:
            return
        self.terminated = True

        try:
            self._requests.put_nowait(None)  # Signal end to worker
        except (Full, OSError, ValueError):
            pass

        process = self._process
        if process is not None:
            process.join(timeout=WORKER_JOIN_TIMEOUT)
            if process.is_alive():
                logger.warning("Detector worker did not exit, terminating")
                process.terminate()
                process.join(timeout=WORKER_JOIN_TIMEOUT)

        for channel in (self._requests, self._responses):
            # Frames left in a multiprocessing feeder must not block interpreter exit
            cancel_join = getattr(channel, "cancel_join_thread", None)
            if cancel_join is not None:
                cancel_join()
            close = getattr(channel, "close", None)
            if close is not None:
                close()

        logger.info("Detector worker terminated")


def spawn_detector_worker(
    detector_config: dict,
    queue_size: int = DEFAULT_WORKER_QUEUE_SIZE,
    spawn_timeout: float = DEFAULT_WORKER_SPAWN_TIMEOUT,
) -> DetectorWorker:
    """
    Start the detector service in its own process and wait until it is ready.

    Args:
        detector_config: Detector section of the config, as a dict
        queue_size: Maximum outstanding detect_frame requests
        spawn_timeout: Seconds to wait for worker_ready

    Returns:
        Ready DetectorWorker

    Raises:
        DetectorUnavailable: If the process cannot start, reports an
                             error, or does not become ready in time
    """
    requests: Queue = Queue(maxsize=queue_size)
    responses: Queue = Queue()
    process = Process(
        target=run_detector_service,
        args=(requests, responses, detector_config),
        name="DetectorWorker",
        daemon=True,
    )

    try:
        process.start()
    except (OSError, RuntimeError) as e:
        raise DetectorUnavailable(f"Cannot start detector worker: {e}") from e

    worker = DetectorWorker(requests, responses, process)
    logger.info(f"Detector worker started (pid {process.pid}), waiting for ready...")

    first = worker.wait_for(spawn_timeout)
    if first is None or first.get("type") != MSG_WORKER_READY:
        worker.terminate()
        if first is not None and first.get("type") == MSG_WORKER_ERROR:
            reason = first.get("data", {}).get("error", "unknown error")
        else:
            reason = f"no ready signal within {spawn_timeout}s"
        raise DetectorUnavailable(f"Detector worker failed to start: {reason}")

    return worker
