"""Shared fixtures for the test suite.

All fixtures here produce real files / real bytes so tests exercise actual
code paths rather than hand-crafted stubs.
"""

import io
import math
from pathlib import Path

import fitz  # PyMuPDF
import numpy as np
import pytest
from click.testing import CliRunner
from PIL import Image


# ── Helpers ────────────────────────────────────────────────────────────────


def encode_png(array: np.ndarray) -> bytes:
    """PNG bytes for a uint8 gray (H, W) or RGB/RGBA (H, W, C) array."""
    buf = io.BytesIO()
    Image.fromarray(np.ascontiguousarray(array, dtype=np.uint8)).save(buf, format="PNG")
    return buf.getvalue()


def decode_png(data: bytes) -> np.ndarray:
    return np.asarray(Image.open(io.BytesIO(data)))


def solid_png(width: int, height: int, color=(128, 128, 128)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color=color).save(buf, format="PNG")
    return buf.getvalue()


def text_bands(size: int = 200, tilt_deg: float = 0.0, rows=(40, 80, 120, 160)) -> np.ndarray:
    """White page with 3px-thick dark bands, tilted clockwise by ``tilt_deg``."""
    gray = np.full((size, size), 255, dtype=np.uint8)
    slope = math.tan(math.radians(tilt_deg))
    centre = size // 2
    for base in rows:
        for dy in range(3):
            for x in range(20, size - 20):
                y = int(math.floor(base + dy + (x - centre) * slope + 0.5))
                if 0 <= y < size:
                    gray[y, x] = 0
    return gray


# ── CLI runner ─────────────────────────────────────────────────────────────


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


# ── Image fixtures ─────────────────────────────────────────────────────────


@pytest.fixture
def png_bytes() -> bytes:
    """A real, valid 10×10 red PNG image as raw bytes."""
    return solid_png(10, 10, (255, 0, 0))


@pytest.fixture
def gray_png_bytes() -> bytes:
    """A 200×150 solid mid-gray page."""
    return solid_png(200, 150, (128, 128, 128))


@pytest.fixture
def png_file(tmp_path: Path, gray_png_bytes: bytes) -> Path:
    path = tmp_path / "scan.png"
    path.write_bytes(gray_png_bytes)
    return path


# ── PDF fixtures ───────────────────────────────────────────────────────────


@pytest.fixture
def single_page_pdf(tmp_path: Path) -> Path:
    """A real single-page PDF containing a text line."""
    path = tmp_path / "single.pdf"
    doc = fitz.open()
    page = doc.new_page(width=595, height=842)  # A4
    page.insert_text((72, 100), "Hello, OCR world!")
    doc.save(str(path))
    doc.close()
    return path


@pytest.fixture
def multi_page_pdf(tmp_path: Path) -> Path:
    """A real 3-page PDF with distinct text on each page."""
    path = tmp_path / "multi.pdf"
    doc = fitz.open()
    for i in range(3):
        page = doc.new_page(width=595, height=842)
        page.insert_text((72, 100), f"Page {i + 1} content")
    doc.save(str(path))
    doc.close()
    return path
