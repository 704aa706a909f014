"""Exceptions raised by the velocity estimator."""


class VelocityEstimationError(Exception):
    """Base class for all estimator errors."""


class ConfigurationError(VelocityEstimationError, ValueError):
    """Invalid construction parameters (optics, method, time step)."""


class InvalidTimeStepError(VelocityEstimationError, ValueError):
    """Time step is zero, negative or not finite."""


class InvalidHeightError(VelocityEstimationError, ValueError):
    """Height above ground is negative or not finite."""


class TrackingError(VelocityEstimationError, RuntimeError):
    """The optical flow computation failed for a whole frame."""
