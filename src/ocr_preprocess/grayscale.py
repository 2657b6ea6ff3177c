"""RGBA to single-channel luminance."""

import numpy as np

# ITU-R BT.601 weights, scaled by 1000 so the reduction stays in integers.
_WEIGHTS = np.array([299, 587, 114], dtype=np.int32)


def to_grayscale(pixels: np.ndarray) -> np.ndarray:
    """Convert an ``(H, W, 4)`` RGBA buffer to an ``(H, W)`` uint8 luminance buffer.

    ``round(0.299 R + 0.587 G + 0.114 B)`` with halves rounded up.  Alpha is
    ignored.  Integer arithmetic keeps the result identical on every platform.
    """
    if pixels.ndim != 3 or pixels.shape[2] < 3:
        raise ValueError(f"expected an (H, W, 4) pixel buffer, got shape {pixels.shape}")
    rgb = pixels[..., :3].astype(np.int32)
    weighted = rgb @ _WEIGHTS
    return ((weighted + 500) // 1000).astype(np.uint8)
