"""
Sparse Lucas-Kanade optical flow tracking.
Optional forward-backward error checking for stricter track validation.
"""

import cv2
import numpy as np
from typing import Optional
from dataclasses import dataclass

from config import LK_WIN_SIZE, LK_MAX_LEVEL, LK_CRITERIA
from errors import TrackingError


@dataclass
class FlowResult:
    """Result of optical flow computation."""
    prev_points: np.ndarray      # Seed points in previous frame, (N, 1, 2)
    curr_points: np.ndarray      # Tracked points in current frame, (N, 1, 2)
    motion_vectors: np.ndarray   # Displacement (curr - prev), (N, 2)
    valid_mask: np.ndarray       # Boolean mask of successful tracks
    tracking_quality: float      # Fraction of successfully tracked points

    @property
    def valid_count(self) -> int:
        return int(np.count_nonzero(self.valid_mask))

    @classmethod
    def empty(cls) -> "FlowResult":
        return cls(
            prev_points=np.empty((0, 1, 2), dtype=np.float32),
            curr_points=np.empty((0, 1, 2), dtype=np.float32),
            motion_vectors=np.empty((0, 2), dtype=np.float32),
            valid_mask=np.array([], dtype=bool),
            tracking_quality=0.0
        )


class SparseFlowTracker:
    """
    Sparse optical flow tracker using pyramidal Lucas-Kanade.

    A track is valid when OpenCV reports success for it. When
    fb_threshold is set, points are also tracked backward
    (curr -> prev) and rejected if they do not land within
    fb_threshold pixels of where they started.
    """

    def __init__(self,
                 win_size: tuple = LK_WIN_SIZE,
                 max_level: int = LK_MAX_LEVEL,
                 criteria: tuple = LK_CRITERIA,
                 fb_threshold: Optional[float] = None):
        self.win_size = win_size
        self.max_level = max_level
        self.criteria = criteria
        self.fb_threshold = fb_threshold

    def track(self, prev_frame: np.ndarray, curr_frame: np.ndarray,
              prev_points: np.ndarray) -> FlowResult:
        """
        Track points from prev_frame to curr_frame.

        Args:
            prev_frame: Previous grayscale frame
            curr_frame: Current grayscale frame
            prev_points: Points to track, shape (N, 1, 2)

        Returns:
            FlowResult with tracked points and motion vectors

        Raises:
            TrackingError: frames are incompatible or OpenCV fails
        """
        if prev_points is None or len(prev_points) == 0:
            return FlowResult.empty()

        if prev_frame is None or curr_frame is None:
            raise TrackingError("Both frames are required for tracking")
        if prev_frame.shape != curr_frame.shape:
            raise TrackingError(
                f"Frame size changed from {prev_frame.shape} to {curr_frame.shape}"
            )

        prev_points = prev_points.reshape(-1, 1, 2).astype(np.float32)

        try:
            curr_points, status, _ = cv2.calcOpticalFlowPyrLK(
                prev_frame, curr_frame, prev_points, None,
                winSize=self.win_size,
                maxLevel=self.max_level,
                criteria=self.criteria
            )
            valid_mask = status.ravel() == 1

            if self.fb_threshold is not None:
                back_points, status_bwd, _ = cv2.calcOpticalFlowPyrLK(
                    curr_frame, prev_frame, curr_points, None,
                    winSize=self.win_size,
                    maxLevel=self.max_level,
                    criteria=self.criteria
                )
                fb_error = np.linalg.norm(
                    prev_points.reshape(-1, 2) - back_points.reshape(-1, 2),
                    axis=1
                )
                valid_mask &= (status_bwd.ravel() == 1) & (fb_error < self.fb_threshold)
        except cv2.error as exc:
            raise TrackingError(f"Lucas-Kanade tracking failed: {exc}") from exc

        motion_vectors = (curr_points - prev_points).reshape(-1, 2)
        tracking_quality = float(np.mean(valid_mask)) if len(valid_mask) > 0 else 0.0

        return FlowResult(
            prev_points=prev_points,
            curr_points=curr_points.reshape(-1, 1, 2),
            motion_vectors=motion_vectors,
            valid_mask=valid_mask,
            tracking_quality=tracking_quality
        )
