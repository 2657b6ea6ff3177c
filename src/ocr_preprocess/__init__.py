"""Adaptive image preprocessing for OCR."""

from ocr_preprocess.config import BinarizationMethod, Morphology, PreprocessOptions
from ocr_preprocess.errors import (
    DecodeFailure,
    EncodeFailure,
    InvalidDimensions,
    InvalidOptions,
    PipelineFailure,
    PreprocessError,
)
from ocr_preprocess.pipeline import (
    PreprocessedImage,
    Stage,
    preprocess_image,
    preprocess_image_async,
    preprocess_or_original,
)

__all__ = [
    "BinarizationMethod",
    "DecodeFailure",
    "EncodeFailure",
    "InvalidDimensions",
    "InvalidOptions",
    "Morphology",
    "PipelineFailure",
    "PreprocessError",
    "PreprocessOptions",
    "PreprocessedImage",
    "Stage",
    "preprocess_image",
    "preprocess_image_async",
    "preprocess_or_original",
]
