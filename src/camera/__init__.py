"""Camera optics and frame capture module."""

from .optics import CameraModel, field_of_view
from .capture import FrameCapture

__all__ = [
    "CameraModel",
    "field_of_view",
    "FrameCapture"
]
