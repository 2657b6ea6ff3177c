"""3x3 median filter for salt-and-pepper scanner noise."""

import numpy as np


def neighbourhood(buffer: np.ndarray) -> np.ndarray:
    """Stack the 3x3 neighbourhood of every pixel into a ``(9, H, W)`` array.

    Out-of-bounds samples repeat the nearest edge pixel.
    """
    height, width = buffer.shape
    padded = np.pad(buffer, 1, mode="edge")
    return np.stack([
        padded[dy:dy + height, dx:dx + width]
        for dy in range(3)
        for dx in range(3)
    ])


def median_filter(gray: np.ndarray) -> np.ndarray:
    """Replace every pixel by the median of its 3x3 neighbourhood.

    Step edges survive; isolated outliers that disagree with their
    neighbourhood are removed.
    """
    samples = np.sort(neighbourhood(gray), axis=0)
    return samples[4].astype(np.uint8)
