"""Summed-area tables and O(1) windowed sums.

``integral_image(gray)[y, x]`` is the sum of every pixel in the rectangle
(0, 0)-(x, y) inclusive.  The window helpers below query a zero-padded copy so
the usual four-corner formula needs no special cases at the top and left
edges.
"""

from typing import Tuple

import numpy as np


def integral_image(gray: np.ndarray, squared: bool = False) -> np.ndarray:
    """Return the inclusive summed-area table of ``gray`` as int64.

    With ``squared=True`` the table sums ``gray ** 2`` instead, which is what
    local variance needs.
    """
    values = gray.astype(np.int64)
    if squared:
        values = values * values
    return values.cumsum(axis=0).cumsum(axis=1)


def _padded(table: np.ndarray) -> np.ndarray:
    padded = np.zeros((table.shape[0] + 1, table.shape[1] + 1), dtype=table.dtype)
    padded[1:, 1:] = table
    return padded


def window_bounds(length: int, half: int) -> Tuple[np.ndarray, np.ndarray]:
    """Inclusive [start, end] window indices for each position, clamped to the buffer."""
    idx = np.arange(length)
    return np.maximum(idx - half, 0), np.minimum(idx + half, length - 1)


def box_sum(table: np.ndarray, top, left, bottom, right):
    """Sum over the inclusive rectangle [top..bottom] x [left..right].

    Arguments may be scalars or broadcastable index arrays.
    """
    p = _padded(table)
    return (
        p[bottom + 1, right + 1]
        - p[top, right + 1]
        - p[bottom + 1, left]
        + p[top, left]
    )


def window_sums(table: np.ndarray, half: int) -> Tuple[np.ndarray, np.ndarray]:
    """Per-pixel sums over a ``(2 * half + 1)``-square window, and the window areas.

    Windows shrink at the borders instead of wrapping, so ``areas`` is smaller
    there.
    """
    height, width = table.shape
    top, bottom = window_bounds(height, half)
    left, right = window_bounds(width, half)
    p = _padded(table)
    ys0, ys1 = top[:, None], bottom[:, None] + 1
    xs0, xs1 = left[None, :], right[None, :] + 1
    sums = p[ys1, xs1] - p[ys0, xs1] - p[ys1, xs0] + p[ys0, xs0]
    areas = (bottom - top + 1)[:, None] * (right - left + 1)[None, :]
    return sums, areas
