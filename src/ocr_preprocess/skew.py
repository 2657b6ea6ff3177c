"""Skew detection from horizontal projection profiles.

Text lines that run parallel to the pixel rows give a sharply peaked row
histogram of dark pixels; a skewed page smears the peaks out.  We rotate the
sample coordinates through a range of candidate angles and keep the one whose
projection has the largest variance.

The returned value is the *correction* angle: rotating the page
counter-clockwise by its negation (``Image.rotate(-angle)`` in Pillow terms)
straightens it.
"""

import logging
import math
from typing import List

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_RANGE = 5.0
DEFAULT_STEP = 0.5


def candidate_angles(angle_range: float = DEFAULT_RANGE, step: float = DEFAULT_STEP) -> List[float]:
    """Angles from ``-angle_range`` to ``+angle_range`` inclusive, ``step`` apart."""
    count = int(math.floor(2 * angle_range / step + 1e-9))
    return [-angle_range + i * step for i in range(count + 1)]


def dark_mask(gray: np.ndarray) -> np.ndarray:
    """1 where a pixel is darker than the buffer mean, else 0."""
    return (gray < gray.mean()).astype(np.int64)


def projection_variance(dark: np.ndarray, angle_deg: float, column_step: int = 2) -> float:
    """Variance of the row projection of ``dark`` with coordinates rotated by ``angle_deg``.

    Only every ``column_step``-th column is sampled.
    """
    height, width = dark.shape
    cx, cy = width / 2, height / 2
    rad = math.radians(angle_deg)
    cos_a, sin_a = math.cos(rad), math.sin(rad)

    xs = np.arange(0, width, column_step, dtype=np.float64)[None, :] - cx
    ys = np.arange(height, dtype=np.float64)[:, None] - cy
    rx = np.floor(cos_a * xs - sin_a * ys + cx + 0.5)
    ry = np.floor(sin_a * xs + cos_a * ys + cy + 0.5)

    inside = (rx >= 0) & (rx < width) & (ry >= 0) & (ry < height)
    rows = ry[inside].astype(np.intp)
    weights = dark[:, ::column_step][inside]
    projection = np.bincount(rows, weights=weights, minlength=height)

    mean = projection.sum() / height
    return float((projection * projection).sum() / height - mean * mean)


def detect_skew_angle(
    gray: np.ndarray,
    angle_range: float = DEFAULT_RANGE,
    step: float = DEFAULT_STEP,
) -> float:
    """Return the correction angle, in degrees, that best aligns text rows.

    Ties go to the candidate closest to zero, so a blank page (zero variance
    at every angle) reports 0.
    """
    dark = dark_mask(gray)
    best_angle = 0.0
    best_variance = -1.0
    for angle in candidate_angles(angle_range, step):
        variance = projection_variance(dark, angle)
        if variance > best_variance or (
            variance == best_variance and abs(angle) < abs(best_angle)
        ):
            best_variance = variance
            best_angle = angle
    logger.debug("Detected skew %.2f deg (projection variance %.2f)", best_angle, best_variance)
    return best_angle


def needs_rotation(angle: float, tolerance: float) -> bool:
    return abs(angle) > tolerance
