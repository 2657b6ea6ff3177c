"""Target-size planning for small source images."""

import logging
import math
from typing import Tuple

from ocr_preprocess.errors import InvalidDimensions

logger = logging.getLogger(__name__)

# Upscaling beyond 2x adds memory cost without helping recognition.
MAX_SCALE = 2.0


def plan_target_size(
    width: int, height: int, min_width: int, min_height: int
) -> Tuple[int, int]:
    """Return the (width, height) to decode at.

    Images already at least ``min_width`` x ``min_height`` pass through
    unchanged.  Smaller ones are upscaled uniformly by the factor needed to
    reach both minimums, capped at :data:`MAX_SCALE`.  Never downscales.
    """
    if width <= 0 or height <= 0:
        raise InvalidDimensions(width, height)

    if width >= min_width and height >= min_height:
        return width, height

    scale = max(min_width / width, min_height / height, 1.0)
    scale = min(scale, MAX_SCALE)
    target = (_round_half_up(width * scale), _round_half_up(height * scale))
    logger.debug("Upscaling %dx%d by %.3f to %dx%d", width, height, scale, *target)
    return target


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
