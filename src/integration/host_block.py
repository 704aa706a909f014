"""
Host integration shim for block-diagram simulation frameworks.

The host hands over frames as normalized 0-1 samples in column-major
order plus the elapsed time, and expects a fixed-size velocity matrix
back. Several blocks can run in one model, each keyed by an instance id.
"""

import logging
import time
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

import numpy as np

from config import HOST_OUTPUT_CAPACITY, HOST_PARAM_COUNT, DEFAULT_TIME_STEP
from errors import ConfigurationError, InvalidTimeStepError
from motion.velocity import TrackingMethod, VelocityResult, VelocityTracker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HostBlockParams:
    """Block parameters, in the order the host supplies them."""
    focal_length: float
    sensor_height: float
    sensor_width: float
    instance_id: int
    image_height: int
    image_width: int

    def __post_init__(self):
        if self.image_height <= 0 or self.image_width <= 0:
            raise ConfigurationError(
                f"Image size must be positive, got {self.image_height}x{self.image_width}"
            )

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> "HostBlockParams":
        """
        Parse the positional parameter vector.

        Order: focal length, sensor height, sensor width, instance id,
        image height, image width.
        """
        if len(values) != HOST_PARAM_COUNT:
            raise ConfigurationError(
                f"Expected {HOST_PARAM_COUNT} block parameters, got {len(values)}"
            )
        return cls(
            focal_length=float(values[0]),
            sensor_height=float(values[1]),
            sensor_width=float(values[2]),
            instance_id=int(values[3]),
            image_height=int(values[4]),
            image_width=int(values[5])
        )


@dataclass
class HostOutput:
    """Values written to the host's output ports."""
    velocities: np.ndarray      # (2, capacity): row 0 = x, row 1 = y, zero padded
    computation_time: float     # Seconds spent in step()
    valid_count: int            # Columns of velocities holding real estimates


def marshal_frame(samples, image_height: int, image_width: int,
                  out: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Convert normalized 0-1 samples to an 8-bit intensity image.

    Args:
        samples: Flat column-major sequence of height*width values, or a
            (height, width) array
        image_height: Rows in the image
        image_width: Columns in the image
        out: Optional uint8 buffer of shape (height, width) to fill

    Returns:
        uint8 image of shape (height, width)
    """
    data = np.asarray(samples, dtype=np.float64)
    if data.ndim == 2:
        if data.shape != (image_height, image_width):
            raise ValueError(
                f"Expected a {image_height}x{image_width} frame, got {data.shape}"
            )
    elif data.size == image_height * image_width:
        data = data.reshape((image_height, image_width), order="F")
    else:
        raise ValueError(
            f"Expected {image_height * image_width} samples, got {data.size}"
        )

    if out is None:
        out = np.empty((image_height, image_width), dtype=np.uint8)
    # Truncate like an integer cast, after clamping to the 8-bit range
    np.copyto(out, np.clip(data * 255.0, 0.0, 255.0), casting="unsafe")
    return out


class HostBlock:
    """
    One velocity estimator instance as seen by the host.

    Owns its tracker and a reusable frame buffer. The host sets the time
    step and height every step; the tracker's unbounded output is capped
    to the fixed output capacity here.
    """

    def __init__(self, params: HostBlockParams,
                 capacity: int = HOST_OUTPUT_CAPACITY):
        self.params = params
        self.capacity = capacity
        self.tracker = VelocityTracker(
            TrackingMethod.LUCAS_KANADE, DEFAULT_TIME_STEP,
            params.focal_length, params.sensor_width, params.sensor_height
        )
        self._frame = np.zeros((params.image_height, params.image_width), dtype=np.uint8)

    def step(self, samples, delta_t: float, height_above_ground: float) -> HostOutput:
        """
        Run one host time step.

        Args:
            samples: Normalized frame samples, see marshal_frame
            delta_t: Seconds since the previous step
            height_above_ground: Camera height in meters

        Returns:
            HostOutput with the padded velocity matrix. An unusable delta_t
            yields no estimates; a cold tracker still bootstraps on the frame
            since the time step is not needed for that.
        """
        start_time = time.perf_counter()

        try:
            self.tracker.set_time_step(delta_t)
        except InvalidTimeStepError as exc:
            logger.warning("Instance %d: skipping velocity step: %s",
                           self.params.instance_id, exc)
            if self.tracker.is_initialized:
                return self._output(VelocityResult.empty(), start_time)

        marshal_frame(samples, self.params.image_height, self.params.image_width,
                      out=self._frame)
        result = self.tracker.compute_velocity(self._frame, height_above_ground)
        return self._output(result, start_time)

    def _output(self, result: VelocityResult, start_time: float) -> HostOutput:
        valid_count = min(result.feature_count, self.capacity)
        if result.feature_count > self.capacity:
            logger.debug("Instance %d: dropping %d estimates beyond capacity",
                         self.params.instance_id, result.feature_count - self.capacity)

        velocities = np.zeros((2, self.capacity), dtype=np.float64)
        velocities[0, :valid_count] = result.velocities_x[:valid_count]
        velocities[1, :valid_count] = result.velocities_y[:valid_count]

        return HostOutput(
            velocities=velocities,
            computation_time=time.perf_counter() - start_time,
            valid_count=valid_count
        )


class HostRegistry:
    """Lazily created HostBlock instances keyed by instance id."""

    def __init__(self, capacity: int = HOST_OUTPUT_CAPACITY):
        self.capacity = capacity
        self._blocks: Dict[int, HostBlock] = {}

    def get(self, params: HostBlockParams) -> HostBlock:
        block = self._blocks.get(params.instance_id)
        if block is None:
            logger.info("Creating velocity block for instance %d", params.instance_id)
            block = HostBlock(params, capacity=self.capacity)
            self._blocks[params.instance_id] = block
        return block

    def release(self, instance_id: int) -> None:
        """Drop an instance; unknown ids are ignored."""
        if self._blocks.pop(instance_id, None) is not None:
            logger.info("Released velocity block for instance %d", instance_id)

    def __contains__(self, instance_id: int) -> bool:
        return instance_id in self._blocks

    def __len__(self) -> int:
        return len(self._blocks)
