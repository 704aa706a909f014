"""
Ground velocity estimation from sparse optical flow.

A downward-facing camera at a known height sees the ground slide past.
Tracked feature displacement (pixels) is turned into an angular rate using
the field of view, and the angle swept during one time step is projected
onto the ground plane:

    v = height * tan(angular_rate * dt) / dt
"""

import logging
import math
from enum import IntEnum
from typing import List, NamedTuple, Optional, Tuple

import cv2
import numpy as np

from config import (
    OPTICAL_FLOW_LUCAS_KANADE, DEFAULT_TIME_STEP,
    FOCAL_LENGTH, SENSOR_WIDTH, SENSOR_HEIGHT
)
from errors import (
    ConfigurationError, InvalidHeightError, InvalidTimeStepError, TrackingError
)
from camera.optics import CameraModel
from motion.axis_transform import AxisTransform, UAV_DOWNWARD
from motion.feature_detector import ShiTomasiDetector, to_grayscale, empty_points
from motion.optical_flow import FlowResult, SparseFlowTracker

logger = logging.getLogger(__name__)


class TrackingMethod(IntEnum):
    LUCAS_KANADE = OPTICAL_FLOW_LUCAS_KANADE


class VelocityResult(NamedTuple):
    """Per-frame output; unpacks as (vx, vy, new, old, success)."""
    velocities_x: List[float]
    velocities_y: List[float]
    new_features: List[Tuple[float, float]]
    old_features: List[Tuple[float, float]]
    success: bool = True

    @classmethod
    def empty(cls) -> "VelocityResult":
        return cls([], [], [], [], True)

    @property
    def feature_count(self) -> int:
        return len(self.velocities_x)

    def median(self) -> Optional[Tuple[float, float]]:
        """Median (x, y) velocity over all tracked features, None if there are none."""
        if self.feature_count == 0:
            return None
        return float(np.median(self.velocities_x)), float(np.median(self.velocities_y))


def _positive_finite(value, error_cls, name: str) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError) as exc:
        raise error_cls(f"{name} must be a number, got {value!r}") from exc
    if not math.isfinite(value) or value <= 0:
        raise error_cls(f"{name} must be positive and finite, got {value!r}")
    return value


def pixel_velocities(old_points: np.ndarray, new_points: np.ndarray,
                     time_step: float,
                     axis_transform: AxisTransform = UAV_DOWNWARD) -> np.ndarray:
    """
    Body-frame pixel velocities for matched points.

    Args:
        old_points: Positions in the previous frame, (N, 2) or (N, 1, 2)
        new_points: Positions in the current frame, same layout
        time_step: Seconds between the two frames
        axis_transform: Image-to-body mapping

    Returns:
        (N, 2) array of (forward, lateral) pixel rates for the default
        UAV mounting
    """
    displacement = (np.asarray(new_points, dtype=np.float64).reshape(-1, 2) -
                    np.asarray(old_points, dtype=np.float64).reshape(-1, 2))
    return axis_transform.apply(displacement) / time_step


def angular_rate(pixel_rate, fov: float, pixels: int):
    """Pixels per second to radians per second along one image axis."""
    return np.asarray(pixel_rate, dtype=np.float64) * fov / float(pixels)


def ground_velocity(omega, height: float, time_step: float):
    """Project the angle swept in one time step onto the ground plane."""
    return height * np.tan(np.asarray(omega, dtype=np.float64) * time_step) / time_step


class VelocityTracker:
    """
    Frame-to-frame ground velocity estimator for one camera stream.

    The first frame only seeds features. Every following frame is tracked
    against the stored previous frame, then features are re-detected on
    the new frame so no point is tracked across more than two frames.

    Not thread-safe: each camera stream needs its own instance.

    Usage:
        tracker = VelocityTracker(TrackingMethod.LUCAS_KANADE, 1 / 30,
                                  3.6e-3, 3.68e-3, 2.76e-3)
        for frame, dt in frames:
            tracker.set_time_step(dt)
            vx, vy, new, old, ok = tracker.compute_velocity(frame, altitude)
    """

    def __init__(self,
                 method: int = TrackingMethod.LUCAS_KANADE,
                 time_step: float = DEFAULT_TIME_STEP,
                 focal_length: float = FOCAL_LENGTH,
                 sensor_width: float = SENSOR_WIDTH,
                 sensor_height: float = SENSOR_HEIGHT,
                 axis_transform: AxisTransform = UAV_DOWNWARD,
                 detector: Optional[ShiTomasiDetector] = None,
                 flow_tracker: Optional[SparseFlowTracker] = None):
        try:
            self.method = TrackingMethod(method)
        except ValueError as exc:
            raise ConfigurationError(f"Unsupported tracking method {method!r}") from exc

        self.camera = CameraModel(focal_length, sensor_width, sensor_height)
        self.axis_transform = axis_transform
        self._time_step = _positive_finite(time_step, ConfigurationError, "time_step")

        self._detector = detector if detector is not None else ShiTomasiDetector()
        self._flow = flow_tracker if flow_tracker is not None else SparseFlowTracker()

        self._previous_frame: Optional[np.ndarray] = None
        self._features: np.ndarray = empty_points()
        self._frame_size: Tuple[int, int] = (0, 0)  # (width, height)

    @property
    def time_step(self) -> float:
        return self._time_step

    @property
    def frame_size(self) -> Tuple[int, int]:
        return self._frame_size

    @property
    def feature_count(self) -> int:
        return len(self._features)

    @property
    def is_initialized(self) -> bool:
        """True once a previous frame is stored."""
        return self._previous_frame is not None

    def set_time_step(self, seconds: float) -> None:
        """
        Set the time step used by the next compute_velocity call.

        Raises:
            InvalidTimeStepError: seconds is zero, negative or not finite
        """
        self._time_step = _positive_finite(seconds, InvalidTimeStepError, "time_step")

    def has_features(self) -> bool:
        return len(self._features) > 0

    def extract_features(self, image: np.ndarray) -> None:
        """
        Replace the active features with corners detected in image.

        The image becomes the previous frame only if at least one corner
        was found, so a failed bootstrap leaves the tracker cold. A frame
        OpenCV cannot run corner detection on yields no features.
        """
        gray = to_grayscale(image)
        try:
            self._features = self._detector.detect(gray)
        except cv2.error as exc:
            logger.warning("Feature detection failed, no features this frame: %s", exc)
            self._features = empty_points()
            return

        if not self.has_features():
            logger.debug("No features found in %dx%d frame", gray.shape[1], gray.shape[0])
            return

        self._store_frame(gray)

    def compute_velocity(self, image: np.ndarray,
                         height_above_ground: float) -> VelocityResult:
        """
        Estimate ground velocity from the motion between the stored frame
        and image.

        Args:
            image: Current frame, grayscale or BGR
            height_above_ground: Camera height in meters, >= 0

        Returns:
            VelocityResult with one entry per successfully tracked feature.
            All lists are empty on the bootstrap call.

        Raises:
            InvalidHeightError: height is negative or not finite
        """
        height = self._validate_height(height_above_ground)

        if self._previous_frame is None:
            self.extract_features(image)
            logger.debug("Bootstrapped with %d features", self.feature_count)
            return VelocityResult.empty()

        time_step = self._time_step
        gray = to_grayscale(image)

        try:
            flow = self._flow.track(self._previous_frame, gray, self._features)
        except TrackingError as exc:
            logger.warning("Optical flow failed, no velocities this frame: %s", exc)
            flow = FlowResult.empty()

        self._reseed(gray)

        valid = flow.valid_mask
        old_points = flow.prev_points[valid].reshape(-1, 2)
        new_points = flow.curr_points[valid].reshape(-1, 2)
        if len(old_points) == 0:
            return VelocityResult.empty()

        rates = pixel_velocities(old_points, new_points, time_step, self.axis_transform)
        velocities = self.to_ground_velocity(rates, height, time_step,
                                             frame_size=(gray.shape[1], gray.shape[0]))

        return VelocityResult(
            velocities_x=velocities[:, 0].tolist(),
            velocities_y=velocities[:, 1].tolist(),
            new_features=[(float(x), float(y)) for x, y in new_points],
            old_features=[(float(x), float(y)) for x, y in old_points],
            success=True
        )

    def to_ground_velocity(self, pixel_rates: np.ndarray, height: float,
                           time_step: Optional[float] = None,
                           frame_size: Optional[Tuple[int, int]] = None) -> np.ndarray:
        """
        Convert (N, 2) body-frame pixel rates to metric ground velocity.

        frame_size is (width, height) in pixels and defaults to the size
        of the stored frame.
        """
        if time_step is None:
            time_step = self._time_step
        if frame_size is None:
            frame_size = self._frame_size
        rates = np.asarray(pixel_rates, dtype=np.float64).reshape(-1, 2)

        fovs = (self.camera.fov_horizontal, self.camera.fov_vertical)
        out = np.empty_like(rates)
        for body_axis, image_axis in enumerate(self.axis_transform.source_axes()):
            omega = angular_rate(rates[:, body_axis], fovs[image_axis],
                                 frame_size[image_axis])
            out[:, body_axis] = ground_velocity(omega, height, time_step)
        return out

    def reset(self) -> None:
        """Return to the bootstrap state."""
        self._previous_frame = None
        self._features = empty_points()
        self._frame_size = (0, 0)

    def _reseed(self, gray: np.ndarray) -> None:
        try:
            self._features = self._detector.detect(gray)
        except cv2.error as exc:
            logger.warning("Feature re-detection failed, resetting tracker: %s", exc)
            self.reset()
            return

        self._store_frame(gray)
        logger.debug("Re-seeded %d features", self.feature_count)

    def _store_frame(self, gray: np.ndarray) -> None:
        self._previous_frame = gray
        self._frame_size = (gray.shape[1], gray.shape[0])

    @staticmethod
    def _validate_height(height) -> float:
        try:
            value = float(height)
        except (TypeError, ValueError) as exc:
            raise InvalidHeightError(f"height_above_ground must be a number, got {height!r}") from exc
        if not math.isfinite(value) or value < 0:
            raise InvalidHeightError(
                f"height_above_ground must be non-negative and finite, got {height!r}"
            )
        return value
