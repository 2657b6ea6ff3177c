"""Unsharp masking on grayscale buffers."""

import numpy as np

from ocr_preprocess.integral import integral_image, window_sums

DEFAULT_RADIUS = 1
DEFAULT_AMOUNT = 1.0


def box_blur(gray: np.ndarray, radius: int = DEFAULT_RADIUS) -> np.ndarray:
    """Mean over a ``(2 * radius + 1)``-square window, shrunk at the borders. Float64."""
    sums, areas = window_sums(integral_image(gray), radius)
    return sums / areas


def unsharp_mask(
    gray: np.ndarray, radius: int = DEFAULT_RADIUS, amount: float = DEFAULT_AMOUNT
) -> np.ndarray:
    """Add ``amount`` times the high-frequency residual back to ``gray``.

    Uniform regions have no residual and come back unchanged; edges get
    steeper.  Output is clamped to 0-255.
    """
    original = gray.astype(np.float64)
    residual = original - box_blur(gray, radius)
    sharpened = np.floor(original + amount * residual + 0.5)
    return np.clip(sharpened, 0, 255).astype(np.uint8)
