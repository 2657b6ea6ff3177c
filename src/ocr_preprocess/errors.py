"""Error taxonomy for the preprocessing pipeline.

Nothing in the pipeline retries: every stage is deterministic, so a failure
would simply repeat.  Callers decide whether to fall back to the original
image (see :func:`ocr_preprocess.pipeline.preprocess_or_original`).
"""

from typing import Optional


class PreprocessError(Exception):
    """Base class for every error raised by ocr_preprocess."""


class InvalidDimensions(PreprocessError, ValueError):
    """Declared original width or height is not positive."""

    def __init__(self, width: int, height: int) -> None:
        super().__init__(f"Invalid image dimensions: {width}x{height}")
        self.width = width
        self.height = height


class InvalidOptions(PreprocessError, ValueError):
    """A PreprocessOptions value is out of range or unknown."""


class DecodeFailure(PreprocessError):
    """Source bytes could not be read or interpreted as a raster image."""


class EncodeFailure(PreprocessError):
    """Final buffer could not be serialised to PNG."""


class PipelineFailure(PreprocessError):
    """An unexpected error inside a pixel stage.

    ``stage`` is the :class:`~ocr_preprocess.pipeline.Stage` that was running;
    the originating exception is available as ``__cause__``.
    """

    def __init__(self, stage, message: Optional[str] = None) -> None:
        name = getattr(stage, "value", stage)
        super().__init__(message or f"Preprocessing failed during stage '{name}'")
        self.stage = stage
