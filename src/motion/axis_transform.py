"""
Image-to-body axis mapping.

The image's vertical axis is the vehicle's forward axis for a camera
mounted looking down with its top edge towards the nose.
"""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class AxisTransform:
    """
    Fixed 2x2 sign/swap matrix mapping image displacement (dx, dy) to
    body displacement (forward, lateral).

    Each body axis must draw on exactly one image axis, so the matrix also
    says which frame dimension and FOV belong to which body axis.
    """
    matrix: tuple = ((1, 0), (0, 1))

    def __post_init__(self):
        m = np.asarray(self.matrix, dtype=np.float64)
        if m.shape != (2, 2):
            raise ValueError(f"Axis transform must be 2x2, got shape {m.shape}")
        if not np.all(np.isin(m, (-1.0, 0.0, 1.0))):
            raise ValueError("Axis transform entries must be -1, 0 or 1")
        if not np.array_equal(np.count_nonzero(m, axis=1), [1, 1]) or \
                not np.array_equal(np.count_nonzero(m, axis=0), [1, 1]):
            raise ValueError("Axis transform must be a signed permutation")
        object.__setattr__(self, "matrix", tuple(tuple(int(v) for v in row) for row in m))

    def apply(self, displacements: np.ndarray) -> np.ndarray:
        """Map (N, 2) image displacements to (N, 2) body displacements."""
        d = np.asarray(displacements, dtype=np.float64).reshape(-1, 2)
        return d @ np.asarray(self.matrix, dtype=np.float64).T

    def source_axes(self) -> tuple:
        """Image axis index (0 = x/width, 1 = y/height) feeding each body axis."""
        return tuple(int(np.flatnonzero(row)[0]) for row in self.matrix)


IDENTITY = AxisTransform(((1, 0), (0, 1)))

# forward = dy, lateral = -dx
UAV_DOWNWARD = AxisTransform(((0, 1), (-1, 0)))
