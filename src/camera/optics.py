"""
Pinhole camera optics.
Derives field of view from the physical sensor size and focal length.
"""

import math
from dataclasses import dataclass, field

from config import FOCAL_LENGTH, SENSOR_WIDTH, SENSOR_HEIGHT
from errors import ConfigurationError


def field_of_view(sensor_dimension: float, focal_length: float) -> float:
    """Angular extent (radians) covered by one sensor dimension."""
    return 2.0 * math.atan(sensor_dimension / (2.0 * focal_length))


@dataclass(frozen=True)
class CameraModel:
    """
    Immutable camera optics.

    All lengths are in meters. The horizontal and vertical field of view
    are computed once at construction.
    """
    focal_length: float = FOCAL_LENGTH
    sensor_width: float = SENSOR_WIDTH
    sensor_height: float = SENSOR_HEIGHT

    fov_horizontal: float = field(init=False)
    fov_vertical: float = field(init=False)

    def __post_init__(self):
        # Frozen dataclass: normalized and derived fields go through object.__setattr__
        for name in ("focal_length", "sensor_width", "sensor_height"):
            raw = getattr(self, name)
            try:
                value = float(raw)
            except (TypeError, ValueError) as exc:
                raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc
            if not math.isfinite(value) or value <= 0:
                raise ConfigurationError(f"{name} must be a positive finite number, got {raw!r}")
            object.__setattr__(self, name, value)

        object.__setattr__(self, "fov_horizontal",
                           field_of_view(self.sensor_width, self.focal_length))
        object.__setattr__(self, "fov_vertical",
                           field_of_view(self.sensor_height, self.focal_length))
