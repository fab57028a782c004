"""
Snapshot writer - overlay snapshots as JSON lines for an external renderer.

The engine never draws. A renderer (or a recording for later review)
tails this file and draws each line's elements over the camera view.
"""

import json
import logging
import os
import time

from ..models import RenderSnapshot

logger = logging.getLogger(__name__)


class SnapshotWriter:
    """Appends one JSON object per snapshot: {"timestamp", "session", "elements", "animations"}."""

    def __init__(self, path: str):
        self.path = path
        self.count = 0
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self._file = open(path, "a", encoding="utf-8")
        logger.info(f"Snapshot writer started: {path}")

    def write(self, snapshot: RenderSnapshot, session_id: str | None = None) -> None:
        record = {"timestamp": time.time(), "session": session_id, **snapshot.to_dict()}
        self._file.write(json.dumps(record, ensure_ascii=False) + "\n")
        self._file.flush()
        self.count += 1

    def close(self) -> None:
        if self._file.closed:
            return
        self._file.close()
        logger.info(f"Snapshot writer closed: {self.count} snapshot(s) written")

    def __enter__(self) -> "SnapshotWriter":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
