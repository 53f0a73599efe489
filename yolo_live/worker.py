from __future__ import annotations

import logging
import threading
from queue import Empty, Full, Queue
from typing import Optional

import numpy as np

from .pipeline import Detector


logger = logging.getLogger(__name__)


class LatestFrameWorker:
    """
    Runs `Detector.detect` on a single background thread.

    Holds at most one pending frame: submitting while a frame is still waiting
    replaces it, so the detector always works on the newest frame and never
    builds a backlog.
    """

    def __init__(self, detector: Detector, *, bgr: bool = True, poll_seconds: float = 0.1):
        self.detector = detector
        self.bgr = bgr
        self.poll_seconds = poll_seconds
        self.dropped_frames = 0
        self.processed_frames = 0
        self.error: Optional[BaseException] = None

        self._queue: "Queue[np.ndarray]" = Queue(maxsize=1)
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name="yolo-live-detect", daemon=True)

    def start(self) -> "LatestFrameWorker":
        self._thread.start()
        return self

    @property
    def running(self) -> bool:
        return self._thread.is_alive()

    def submit(self, frame: np.ndarray) -> None:
        if self.error is not None:
            raise RuntimeError("Detection worker has failed") from self.error

        try:
            self._queue.put_nowait(frame)
            return
        except Full:
            pass

        try:
            self._queue.get_nowait()
            self.dropped_frames += 1
            logger.debug("Dropped stale frame (%d so far)", self.dropped_frames)
        except Empty:
            pass

        try:
            self._queue.put_nowait(frame)
        except Full:
            # The worker cannot refill the slot between our get and put; only
            # another producer could. Count the frame we failed to hand over.
            self.dropped_frames += 1

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the thread and re-raise any error the detector hit."""
        self._stop.set()
        if self._thread.is_alive():
            self._thread.join(timeout)
        if self.error is not None:
            raise self.error

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                frame = self._queue.get(timeout=self.poll_seconds)
            except Empty:
                continue
            try:
                self.detector.detect(frame, bgr=self.bgr)
            except Exception as exc:
                logger.exception("Detection failed; stopping worker")
                self.error = exc
                self._stop.set()
                return
            self.processed_frames += 1

    def __enter__(self) -> "LatestFrameWorker":
        return self.start()

    def __exit__(self, *exc) -> None:
        self.stop()
