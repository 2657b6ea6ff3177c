"""Decoding sources into pixel buffers and encoding results as PNG.

The orchestrator only talks to :class:`PixelCodec`; :class:`PillowCodec` is
the implementation used by default.
"""

import base64
import binascii
import io
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO, Tuple, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from ocr_preprocess.errors import DecodeFailure, EncodeFailure

logger = logging.getLogger(__name__)

ImageSource = Union[bytes, bytearray, memoryview, str, Path, BinaryIO]

PNG_MEDIA_TYPE = "image/png"

# Paper colour for corners uncovered by rotation.
ROTATION_FILL = (255, 255, 255, 255)


def read_source(source: ImageSource) -> bytes:
    """Resolve an image source to raw encoded bytes.

    Accepts bytes-like objects, filesystem paths, ``data:`` URIs and binary
    file objects.
    """
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    if isinstance(source, str) and source.startswith("data:"):
        return _decode_data_url(source)
    if isinstance(source, (str, Path)):
        try:
            return Path(source).read_bytes()
        except OSError as e:
            raise DecodeFailure(f"Cannot read image source {source}: {e}") from e
    if hasattr(source, "read"):
        data = source.read()
        if not isinstance(data, (bytes, bytearray)):
            raise DecodeFailure(
                f"File object returned {type(data).__name__}, expected bytes; open it in binary mode"
            )
        return bytes(data)
    raise DecodeFailure(f"Unsupported image source type: {type(source).__name__}")


def _decode_data_url(url: str) -> bytes:
    header, sep, payload = url.partition(",")
    if not sep:
        raise DecodeFailure("Malformed data URL: missing ','")
    if not header.endswith(";base64"):
        raise DecodeFailure("Only base64 data URLs are supported")
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeFailure(f"Malformed data URL payload: {e}") from e


def to_data_url(data: bytes, media_type: str = PNG_MEDIA_TYPE) -> str:
    return f"data:{media_type};base64,{base64.b64encode(data).decode('ascii')}"


def guess_media_type(data: bytes) -> str:
    """MIME type of encoded image bytes, or ``application/octet-stream``."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            return Image.MIME.get(img.format, "application/octet-stream")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError):
        return "application/octet-stream"


def _open(data: bytes) -> Image.Image:
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise DecodeFailure(f"Source is not a readable raster image: {e}") from e
    return img


def image_size(source: ImageSource) -> Tuple[int, int]:
    """(width, height) of an encoded image, without decoding the pixels twice."""
    return _open(read_source(source)).size


class PixelCodec(ABC):
    @abstractmethod
    def decode(
        self, source: ImageSource, width: int, height: int, angle: float = 0.0
    ) -> np.ndarray:
        """Decode ``source`` into an ``(height, width, 4)`` RGBA uint8 buffer.

        A non-zero ``angle`` rotates the resampled image counter-clockwise by
        that many degrees about its centre on a canvas of the same size.
        """
        ...

    @abstractmethod
    def encode(self, pixels: np.ndarray) -> bytes:
        """Serialise an ``(H, W)`` gray or ``(H, W, 4)`` RGBA buffer to PNG bytes."""
        ...


class PillowCodec(PixelCodec):
    def __init__(self, resample: Image.Resampling = Image.Resampling.LANCZOS) -> None:
        self.resample = resample

    def decode(
        self, source: ImageSource, width: int, height: int, angle: float = 0.0
    ) -> np.ndarray:
        img = _open(read_source(source)).convert("RGBA")
        if img.size != (width, height):
            img = img.resize((width, height), resample=self.resample)
        if angle:
            logger.debug("Rotating source by %.2f deg", angle)
            img = img.rotate(
                angle,
                resample=Image.Resampling.BICUBIC,
                expand=False,
                fillcolor=ROTATION_FILL,
            )
        return np.asarray(img, dtype=np.uint8).copy()

    def encode(self, pixels: np.ndarray) -> bytes:
        if not (pixels.ndim == 2 or (pixels.ndim == 3 and pixels.shape[2] == 4)):
            raise EncodeFailure(f"Cannot encode pixel buffer of shape {pixels.shape}")
        try:
            img = Image.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8))
            buf = io.BytesIO()
            img.save(buf, format="PNG")
        except (OSError, ValueError, TypeError) as e:
            raise EncodeFailure(f"PNG encoding failed: {e}") from e
        return buf.getvalue()
