"""
Shi-Tomasi ("good features to track") corner detection.
Produces seed points in the (N, 1, 2) layout used by Lucas-Kanade.
"""

import cv2
import numpy as np

from config import (
    MAX_FEATURES, FEATURE_QUALITY_LEVEL, FEATURE_MIN_DISTANCE,
    FEATURE_BLOCK_SIZE
)


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """
    Convert a frame to single-channel 8-bit grayscale.

    Single-channel frames are returned as a copy so callers can keep
    reusing their own buffers.
    """
    if image is None:
        raise ValueError("image is None")

    image = np.asarray(image)
    if image.ndim == 3 and image.shape[2] == 1:
        image = image[:, :, 0]

    if image.ndim == 2:
        return np.ascontiguousarray(image).copy()
    if image.ndim == 3 and image.shape[2] == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    if image.ndim == 3 and image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)

    raise ValueError(f"Unsupported image shape {image.shape}")


def empty_points() -> np.ndarray:
    return np.empty((0, 1, 2), dtype=np.float32)


class ShiTomasiDetector:
    """
    Selects well-separated, high-texture corners using the minimal
    eigenvalue criterion.

    Corners are ranked by response; weaker ones closer than min_distance
    to a stronger corner are discarded.
    """

    def __init__(self,
                 max_features: int = MAX_FEATURES,
                 quality_level: float = FEATURE_QUALITY_LEVEL,
                 min_distance: float = FEATURE_MIN_DISTANCE,
                 block_size: int = FEATURE_BLOCK_SIZE):
        self.max_features = max_features
        self.quality_level = quality_level
        self.min_distance = min_distance
        self.block_size = block_size

    def detect(self, gray: np.ndarray) -> np.ndarray:
        """
        Detect corners in a grayscale frame.

        Args:
            gray: Single-channel input frame

        Returns:
            Array of corner coordinates, shape (N, 1, 2), float32.
            N is zero for textureless or empty frames.
        """
        if gray is None or gray.size == 0:
            return empty_points()

        corners = cv2.goodFeaturesToTrack(
            gray,
            maxCorners=self.max_features,
            qualityLevel=self.quality_level,
            minDistance=self.min_distance,
            blockSize=self.block_size
        )

        # OpenCV returns None when no corner passes the quality threshold
        if corners is None or len(corners) == 0:
            return empty_points()

        return corners.reshape(-1, 1, 2).astype(np.float32)
