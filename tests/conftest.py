"""
Shared synthetic frames for tracker tests.
Textures are blocky random patterns so corners are plentiful and well defined.
"""

import cv2
import numpy as np
import pytest


def make_texture(height: int = 240, width: int = 320, seed: int = 0,
                 block: int = 8) -> np.ndarray:
    """Random block texture, lightly blurred so Lucas-Kanade converges."""
    rng = np.random.default_rng(seed)
    small = rng.integers(0, 256, size=(height // block + 1, width // block + 1),
                         dtype=np.uint8)
    texture = cv2.resize(small, (small.shape[1] * block, small.shape[0] * block),
                         interpolation=cv2.INTER_NEAREST)
    texture = cv2.GaussianBlur(texture, (5, 5), 1.5)
    return np.ascontiguousarray(texture[:height, :width])


def make_shifted_pair(dx: int, dy: int, height: int = 240, width: int = 320,
                      margin: int = 16, seed: int = 0):
    """
    Two crops of one larger texture such that scene content moves by
    (+dx, +dy) pixels from the first frame to the second.
    """
    canvas = make_texture(height + 2 * margin, width + 2 * margin, seed=seed)
    prev = canvas[margin:margin + height, margin:margin + width]
    curr = canvas[margin - dy:margin - dy + height, margin - dx:margin - dx + width]
    return np.ascontiguousarray(prev), np.ascontiguousarray(curr)


@pytest.fixture
def texture():
    return make_texture()


@pytest.fixture
def shifted_pair():
    return make_shifted_pair
