"""Binary morphology with a full 3x3 structuring element.

Inputs are binary buffers (0 / 255).  Borders are edge-clamped, so a pixel
on the image edge is compared with copies of itself rather than with an
implicit background.
"""

import numpy as np

from ocr_preprocess.config import Morphology
from ocr_preprocess.denoise import neighbourhood


def erode(binary: np.ndarray) -> np.ndarray:
    """255 only where all nine neighbours are 255."""
    return np.where((neighbourhood(binary) == 255).all(axis=0), 255, 0).astype(np.uint8)


def dilate(binary: np.ndarray) -> np.ndarray:
    """255 where any of the nine neighbours is 255."""
    return np.where((neighbourhood(binary) == 255).any(axis=0), 255, 0).astype(np.uint8)


def morphological_open(binary: np.ndarray) -> np.ndarray:
    """Erode then dilate: drops bright specks, keeps larger bright regions."""
    return dilate(erode(binary))


def morphological_close(binary: np.ndarray) -> np.ndarray:
    """Dilate then erode: fills small dark gaps inside bright regions."""
    return erode(dilate(binary))


def apply_morphology(binary: np.ndarray, operation: Morphology) -> np.ndarray:
    if operation == Morphology.OPEN:
        return morphological_open(binary)
    if operation == Morphology.CLOSE:
        return morphological_close(binary)
    raise ValueError(f"Unknown morphological operation: {operation}")
