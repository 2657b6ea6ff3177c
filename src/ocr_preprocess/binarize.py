"""Grayscale to two-level (0 / 255) reduction.

Three strategies:

* adaptive mean -- local mean over a ``block_size`` window minus a constant,
  like OpenCV's ``ADAPTIVE_THRESH_MEAN_C``;
* Sauvola      -- local mean and standard deviation, robust to uneven
  illumination;
* Otsu         -- a single global threshold maximising between-class variance.

Every function returns a new uint8 buffer containing only 0 and 255.
"""

import numpy as np

from ocr_preprocess.config import BinarizationMethod, PreprocessOptions
from ocr_preprocess.integral import integral_image, window_sums

# Dynamic range of the standard deviation for 8-bit images.
SAUVOLA_R = 128.0


def _to_binary(mask: np.ndarray) -> np.ndarray:
    return np.where(mask, 255, 0).astype(np.uint8)


def adaptive_threshold_mean(gray: np.ndarray, block_size: int, c: float) -> np.ndarray:
    """255 where a pixel is brighter than its local window mean minus ``c``.

    On a perfectly uniform buffer every pixel equals its local mean, so any
    ``c > 0`` turns the whole output white.
    """
    sums, areas = window_sums(integral_image(gray), block_size // 2)
    mean = sums / areas
    return _to_binary(gray > mean - c)


def sauvola_threshold(gray: np.ndarray, block_size: int, k: float) -> np.ndarray:
    """Sauvola binarisation: ``T = mean * (1 + k * (std / R - 1))``."""
    half = block_size // 2
    sums, areas = window_sums(integral_image(gray), half)
    sq_sums, _ = window_sums(integral_image(gray, squared=True), half)

    mean = sums / areas
    variance = np.maximum(sq_sums / areas - mean * mean, 0.0)
    std = np.sqrt(variance)
    threshold = mean * (1 + k * (std / SAUVOLA_R - 1))
    return _to_binary(gray > threshold)


def otsu_level(gray: np.ndarray) -> int:
    """Global threshold ``t`` maximising ``w0 * w1 * (mu0 - mu1) ** 2``.

    Class 0 holds pixels ``<= t``, class 1 pixels ``> t``.  Thresholds that
    leave a class empty are not candidates; if none remain (a uniform buffer)
    the result is 0.  The first maximum wins.
    """
    hist = np.bincount(gray.ravel(), minlength=256).astype(np.float64)
    total = hist.sum()
    levels = np.arange(256, dtype=np.float64)

    count0 = hist.cumsum()
    sum0 = (hist * levels).cumsum()
    count1 = total - count0
    sum1 = sum0[-1] - sum0

    valid = (count0 > 0) & (count1 > 0)
    with np.errstate(divide="ignore", invalid="ignore"):
        mu0 = np.where(valid, sum0 / count0, 0.0)
        mu1 = np.where(valid, sum1 / count1, 0.0)
    w0 = count0 / total
    w1 = count1 / total
    between = np.where(valid, w0 * w1 * (mu0 - mu1) ** 2, -1.0)

    if not valid.any():
        return 0
    return int(np.argmax(between))


def otsu_threshold(gray: np.ndarray) -> np.ndarray:
    return _to_binary(gray > otsu_level(gray))


def binarize(gray: np.ndarray, options: PreprocessOptions) -> np.ndarray:
    """Apply the binariser selected by ``options.binarization_method``."""
    method = options.binarization_method
    if method == BinarizationMethod.MEAN:
        return adaptive_threshold_mean(gray, options.block_size, options.threshold_c)
    if method == BinarizationMethod.SAUVOLA:
        return sauvola_threshold(gray, options.block_size, options.sauvola_k)
    if method == BinarizationMethod.OTSU:
        return otsu_threshold(gray)
    raise ValueError(f"Unknown binarization method: {method}")
