"""
Frame source for the velocity tracker.
Reads a camera device or a video file and reports the time between frames.
"""

import logging
import time
from typing import Optional, Tuple, Union

import cv2
import numpy as np

from config import FRAME_WIDTH, FRAME_HEIGHT, TARGET_FPS

logger = logging.getLogger(__name__)


class FrameCapture:
    """
    Grayscale frame capture with per-frame time steps.

    For video files the time step comes from the stream position, so
    playback speed does not matter. For live cameras it is measured with
    a monotonic clock. If neither is usable, 1/fps is reported.
    """

    def __init__(self, source: Union[int, str] = 0, width: int = FRAME_WIDTH,
                 height: int = FRAME_HEIGHT, fps: int = TARGET_FPS):
        self.source = source
        self.width = width
        self.height = height
        self.fps = fps
        self._cap: Optional[cv2.VideoCapture] = None
        self._last_pos_ms: Optional[float] = None
        self._last_clock: Optional[float] = None

    @property
    def is_file(self) -> bool:
        return isinstance(self.source, str)

    def open(self) -> bool:
        """Open the source. Returns False if it cannot be read."""
        self._cap = cv2.VideoCapture(self.source)

        if not self._cap.isOpened():
            logger.error("Could not open video source %r", self.source)
            self._cap = None
            return False

        if not self.is_file:
            self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
            self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
            self._cap.set(cv2.CAP_PROP_FPS, self.fps)

        stream_fps = self._cap.get(cv2.CAP_PROP_FPS)
        if stream_fps and stream_fps > 0:
            self.fps = stream_fps

        self._last_pos_ms = None
        self._last_clock = None
        return True

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None

    def read(self) -> Optional[Tuple[np.ndarray, float]]:
        """
        Read the next frame.

        Returns:
            (grayscale frame, seconds since the previous frame), or None
            when the source is closed or exhausted. Files are timed by
            the stream position and cameras by the monotonic clock; the
            first frame, or a file position that does not advance,
            reports 1/fps.
        """
        if self._cap is None:
            return None

        ret, frame = self._cap.read()
        if not ret or frame is None:
            return None

        clock = time.monotonic()
        pos_ms = self._cap.get(cv2.CAP_PROP_POS_MSEC) if self.is_file else None
        delta_t = self._time_step(pos_ms, clock)
        self._last_pos_ms = pos_ms
        self._last_clock = clock

        if frame.ndim == 3:
            frame = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
        return frame, delta_t

    def _time_step(self, pos_ms: Optional[float], clock: float) -> float:
        if pos_ms is not None and self._last_pos_ms is not None:
            if pos_ms > self._last_pos_ms:
                return (pos_ms - self._last_pos_ms) / 1000.0
        elif not self.is_file and self._last_clock is not None:
            if clock > self._last_clock:
                return clock - self._last_clock
        return 1.0 / self.fps

    @property
    def is_opened(self) -> bool:
        return self._cap is not None and self._cap.isOpened()

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
