"""
Unit tests for Shi-Tomasi feature detection and grayscale conversion.
"""

import cv2
import numpy as np
import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from motion.feature_detector import ShiTomasiDetector, to_grayscale


class TestShiTomasiDetector:
    """Tests for ShiTomasiDetector."""

    @pytest.fixture
    def detector(self):
        return ShiTomasiDetector()

    def test_detects_corners_in_texture(self, detector, texture):
        points = detector.detect(texture)

        assert points.ndim == 3 and points.shape[1:] == (1, 2)
        assert points.dtype == np.float32
        assert 0 < len(points) <= 1000

    def test_points_inside_frame(self, detector, texture):
        points = detector.detect(texture).reshape(-1, 2)
        h, w = texture.shape

        assert np.all((points[:, 0] >= 0) & (points[:, 0] < w))
        assert np.all((points[:, 1] >= 0) & (points[:, 1] < h))

    def test_minimum_separation(self, detector, texture):
        points = detector.detect(texture).reshape(-1, 2)

        diffs = points[:, None, :] - points[None, :, :]
        dists = np.linalg.norm(diffs, axis=2)
        np.fill_diagonal(dists, np.inf)
        assert dists.min() >= 8.0 - 1e-3

    def test_max_features_respected(self, texture):
        detector = ShiTomasiDetector(max_features=10)

        assert len(detector.detect(texture)) <= 10

    def test_uniform_frame_has_no_features(self, detector):
        points = detector.detect(np.full((120, 160), 128, dtype=np.uint8))

        assert points.shape == (0, 1, 2)

    def test_empty_frame(self, detector):
        assert len(detector.detect(np.zeros((0, 0), dtype=np.uint8))) == 0


class TestToGrayscale:
    """Tests for to_grayscale."""

    def test_bgr_converted(self, texture):
        bgr = cv2.cvtColor(texture, cv2.COLOR_GRAY2BGR)

        gray = to_grayscale(bgr)

        assert gray.shape == texture.shape
        np.testing.assert_array_equal(gray, texture)

    def test_bgra_converted(self, texture):
        bgra = cv2.cvtColor(texture, cv2.COLOR_GRAY2BGRA)

        assert to_grayscale(bgra).shape == texture.shape

    def test_single_channel_is_copied(self, texture):
        gray = to_grayscale(texture)
        gray[0, 0] = 255 - texture[0, 0]

        assert gray[0, 0] != texture[0, 0]

    def test_trailing_channel_axis(self, texture):
        assert to_grayscale(texture[:, :, None]).shape == texture.shape

    def test_unsupported_shape(self):
        with pytest.raises(ValueError):
            to_grayscale(np.zeros((4, 4, 2), dtype=np.uint8))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
