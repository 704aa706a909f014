"""Motion estimation module."""

from .feature_detector import ShiTomasiDetector, to_grayscale
from .optical_flow import SparseFlowTracker, FlowResult
from .axis_transform import AxisTransform, IDENTITY, UAV_DOWNWARD
from .velocity import (
    TrackingMethod, VelocityResult, VelocityTracker,
    pixel_velocities, angular_rate, ground_velocity
)

__all__ = [
    "ShiTomasiDetector",
    "to_grayscale",
    "SparseFlowTracker",
    "FlowResult",
    "AxisTransform",
    "IDENTITY",
    "UAV_DOWNWARD",
    "TrackingMethod",
    "VelocityResult",
    "VelocityTracker",
    "pixel_velocities",
    "angular_rate",
    "ground_velocity"
]
