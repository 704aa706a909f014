"""
Configuration constants for the optical-flow ground velocity estimator.
Defaults match a downward-facing camera on a small UAV.
"""

import cv2

# =============================================================================
# Camera Settings
# =============================================================================
FRAME_WIDTH = 640
FRAME_HEIGHT = 480
TARGET_FPS = 30

# Default optics (meters), a typical 1/4" sensor with a 3.6mm lens
FOCAL_LENGTH = 3.6e-3
SENSOR_WIDTH = 3.68e-3
SENSOR_HEIGHT = 2.76e-3

# =============================================================================
# Tracking Method
# =============================================================================
OPTICAL_FLOW_LUCAS_KANADE = 100
DEFAULT_TIME_STEP = 1.0  # Seconds, replaced by the caller before each frame

# =============================================================================
# Feature Detection (Shi-Tomasi)
# =============================================================================
MAX_FEATURES = 1000
FEATURE_QUALITY_LEVEL = 0.1  # Relative to the strongest corner response
FEATURE_MIN_DISTANCE = 8.0  # Pixels between selected corners
FEATURE_BLOCK_SIZE = 2

# =============================================================================
# Optical Flow (Lucas-Kanade)
# =============================================================================
LK_WIN_SIZE = (16, 16)
LK_MAX_LEVEL = 2
LK_CRITERIA = (cv2.TERM_CRITERIA_EPS | cv2.TERM_CRITERIA_COUNT, 8, 0.03)

# =============================================================================
# Host Integration
# =============================================================================
HOST_OUTPUT_CAPACITY = 1000  # Columns in the fixed-size velocity output
HOST_PARAM_COUNT = 6
