"""Preprocessing pipeline orchestration.

Stage order::

    decode -> grayscale -> [enhance] -> [denoise]
           -> [detect skew -> rotate -> grayscale -> [enhance] -> [denoise]]
           -> [sharpen] -> [binarize] -> [morphology] -> encode

Bracketed stages are toggled by :class:`PreprocessOptions`.  The deskew
branch re-enters the grayscale/enhance/denoise stages once, on a fresh decode
of the source rotated by the negated skew angle.  Each stage returns a new
buffer; nothing is shared between calls.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np

from ocr_preprocess.binarize import binarize
from ocr_preprocess.codec import (
    ImageSource,
    PillowCodec,
    PixelCodec,
    guess_media_type,
    read_source,
    to_data_url,
)
from ocr_preprocess.config import PreprocessOptions
from ocr_preprocess.contrast import enhance_contrast
from ocr_preprocess.denoise import median_filter
from ocr_preprocess.errors import PipelineFailure, PreprocessError
from ocr_preprocess.grayscale import to_grayscale
from ocr_preprocess.morphology import apply_morphology
from ocr_preprocess.resize import plan_target_size
from ocr_preprocess.sharpen import unsharp_mask
from ocr_preprocess.skew import detect_skew_angle, needs_rotation

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    DECODING = "decoding"
    GRAYSCALING = "grayscaling"
    ENHANCING = "enhancing"
    DENOISING = "denoising"
    DESKEW_DETECTING = "deskew-detecting"
    ROTATING = "rotating"
    SHARPENING = "sharpening"
    BINARIZING = "binarizing"
    MORPHING = "morphing"
    ENCODING = "encoding"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class PreprocessedImage:
    data: bytes
    data_url: str
    width: int
    height: int


class _Run:
    """State for one pipeline invocation; tracks the current stage for error reports."""

    def __init__(self, source: ImageSource, options: PreprocessOptions, codec: PixelCodec) -> None:
        self.source = source
        self.options = options
        self.codec = codec
        self.stage = Stage.DECODING

    def enter(self, stage: Stage) -> None:
        logger.debug("Stage %s -> %s", self.stage.value, stage.value)
        self.stage = stage

    def clean_gray(self, pixels: np.ndarray) -> np.ndarray:
        opts = self.options
        self.enter(Stage.GRAYSCALING)
        gray = to_grayscale(pixels)
        if opts.contrast_enhancement:
            self.enter(Stage.ENHANCING)
            gray = enhance_contrast(gray, *opts.tile_grid, clip_limit=opts.clip_limit)
        if opts.noise_reduction:
            self.enter(Stage.DENOISING)
            gray = median_filter(gray)
        return gray

    def execute(self, width: int, height: int) -> PreprocessedImage:
        opts = self.options
        self.enter(Stage.DECODING)
        pixels = self.codec.decode(self.source, width, height)

        if opts.passthrough:
            return self.finish(pixels, width, height)

        gray = self.clean_gray(pixels)

        if opts.deskew:
            self.enter(Stage.DESKEW_DETECTING)
            angle = detect_skew_angle(gray, opts.skew_range, opts.skew_step)
            if needs_rotation(angle, opts.skew_tolerance):
                logger.info("Correcting skew of %.1f deg", angle)
                self.enter(Stage.ROTATING)
                pixels = self.codec.decode(self.source, width, height, angle=-angle)
                gray = self.clean_gray(pixels)

        if opts.sharpen:
            self.enter(Stage.SHARPENING)
            gray = unsharp_mask(gray, opts.sharpen_radius, opts.sharpen_amount)

        if opts.adaptive_threshold:
            self.enter(Stage.BINARIZING)
            gray = binarize(gray, opts)
            if opts.morphology is not None:
                self.enter(Stage.MORPHING)
                gray = apply_morphology(gray, opts.morphology)
        elif opts.morphology is not None:
            logger.warning(
                "Morphology '%s' needs a binary image; skipped because thresholding is off",
                opts.morphology.value,
            )

        return self.finish(gray, width, height)

    def finish(self, pixels: np.ndarray, width: int, height: int) -> PreprocessedImage:
        self.enter(Stage.ENCODING)
        data = self.codec.encode(pixels)
        self.enter(Stage.DONE)
        return PreprocessedImage(data=data, data_url=to_data_url(data), width=width, height=height)


def preprocess_image(
    source: ImageSource,
    original_width: int,
    original_height: int,
    options: Optional[PreprocessOptions] = None,
    codec: Optional[PixelCodec] = None,
) -> PreprocessedImage:
    """Run the preprocessing pipeline and return the encoded PNG with its size.

    ``original_width`` / ``original_height`` are the declared dimensions of
    the source; they decide whether and how far the image is upscaled.

    Raises:
        InvalidDimensions: a declared dimension is not positive (before decoding).
        DecodeFailure:     the source is not a readable image.
        EncodeFailure:     the result could not be written as PNG.
        PipelineFailure:   any other error, tagged with the failing stage.
    """
    options = options or PreprocessOptions()
    width, height = plan_target_size(
        original_width, original_height, options.min_width, options.min_height
    )
    # Resolve file handles once: the deskew branch decodes the source twice.
    run = _Run(read_source(source), options, codec or PillowCodec())
    try:
        return run.execute(width, height)
    except Exception as e:
        failed_in = run.stage
        run.enter(Stage.FAILED)
        if isinstance(e, PreprocessError):
            raise
        raise PipelineFailure(failed_in) from e


async def preprocess_image_async(
    source: ImageSource,
    original_width: int,
    original_height: int,
    options: Optional[PreprocessOptions] = None,
    codec: Optional[PixelCodec] = None,
) -> PreprocessedImage:
    """Awaitable :func:`preprocess_image`; the work runs in a worker thread."""
    return await asyncio.to_thread(
        preprocess_image, source, original_width, original_height, options, codec
    )


def preprocess_or_original(
    data: bytes,
    width: int,
    height: int,
    options: Optional[PreprocessOptions] = None,
) -> PreprocessedImage:
    """Preprocess ``data``, falling back to the untouched image on failure.

    Recognition can still run on the original page, so a preprocessing error
    is logged and swallowed here rather than aborting a whole batch.
    """
    try:
        return preprocess_image(data, width, height, options)
    except PreprocessError as e:
        logger.warning("Preprocessing failed, using original image: %s", e)
        return PreprocessedImage(
            data=data,
            data_url=to_data_url(data, guess_media_type(data)),
            width=width,
            height=height,
        )
