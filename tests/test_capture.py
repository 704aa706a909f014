"""
Unit tests for the frame source.
OpenCV capture is replaced with an in-memory fake.
"""

import cv2
import numpy as np
import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from camera.capture import FrameCapture


class FakeVideoCapture:
    """Plays back a list of frames with fixed stream timestamps."""

    def __init__(self, frames, positions_ms, fps=25.0, opened=True):
        self.frames = list(frames)
        self.positions_ms = list(positions_ms)
        self.fps = fps
        self.opened = opened
        self.index = 0
        self.released = False
        self.props = {}

    def isOpened(self):
        return self.opened and not self.released

    def read(self):
        if self.index >= len(self.frames):
            return False, None
        frame = self.frames[self.index]
        self.index += 1
        return True, frame

    def get(self, prop):
        if prop == cv2.CAP_PROP_FPS:
            return self.fps
        if prop == cv2.CAP_PROP_POS_MSEC:
            return self.positions_ms[self.index - 1]
        return 0.0

    def set(self, prop, value):
        self.props[prop] = value
        return True

    def release(self):
        self.released = True


class TestFrameCapture:
    """Tests for FrameCapture."""

    def _install(self, monkeypatch, fake):
        monkeypatch.setattr(cv2, "VideoCapture", lambda source: fake)

    def test_file_time_steps_from_stream_position(self, monkeypatch, texture):
        frames = [texture] * 3
        fake = FakeVideoCapture(frames, [0.0, 50.0, 100.0], fps=25.0)
        self._install(monkeypatch, fake)

        with FrameCapture("flight.avi") as capture:
            steps = [capture.read()[1] for _ in range(3)]
            assert capture.read() is None

        assert steps == pytest.approx([0.04, 0.05, 0.05])
        assert fake.released

    def test_stalled_position_falls_back_to_fps(self, monkeypatch, texture):
        fake = FakeVideoCapture([texture] * 2, [40.0, 40.0], fps=20.0)
        self._install(monkeypatch, fake)

        with FrameCapture("flight.avi") as capture:
            capture.read()
            _, delta_t = capture.read()

        assert delta_t == pytest.approx(0.05)

    def test_color_frames_converted(self, monkeypatch, texture):
        bgr = cv2.cvtColor(texture, cv2.COLOR_GRAY2BGR)
        self._install(monkeypatch, FakeVideoCapture([bgr], [0.0]))

        with FrameCapture("flight.avi") as capture:
            frame, _ = capture.read()

        assert frame.shape == texture.shape

    def test_camera_measures_clock(self, monkeypatch, texture):
        fake = FakeVideoCapture([texture] * 2, [0.0, 0.0], fps=30.0)
        self._install(monkeypatch, fake)

        with FrameCapture(0) as capture:
            _, first = capture.read()
            _, second = capture.read()

        assert first == pytest.approx(1.0 / 30.0)
        assert second > 0
        assert fake.props[cv2.CAP_PROP_FRAME_WIDTH] == capture.width

    def test_open_failure(self, monkeypatch):
        self._install(monkeypatch, FakeVideoCapture([], [], opened=False))
        capture = FrameCapture("missing.avi")

        assert capture.open() is False
        assert not capture.is_opened
        assert capture.read() is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
