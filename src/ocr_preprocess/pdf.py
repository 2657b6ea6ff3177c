"""PDF to page image conversion using PyMuPDF."""

import logging
from pathlib import Path
from typing import Optional

import fitz  # PyMuPDF

from ocr_preprocess.config import PreprocessOptions
from ocr_preprocess.pipeline import preprocess_or_original

logger = logging.getLogger(__name__)


def pdf_to_images(
    pdf_path: Path,
    dpi: int = 150,
    options: Optional[PreprocessOptions] = None,
    preprocess: bool = True,
) -> list[bytes]:
    """Render each page of a PDF to PNG bytes, optionally preprocessed for OCR.

    150 DPI gives roughly 1240x1754 pixels for an A4 page, which already
    clears the default minimum size so no upscaling happens.

    Args:
        pdf_path:   Path to the PDF file.
        dpi:        Render resolution.
        options:    Preprocessing options; defaults when omitted.
        preprocess: Run every page through the preprocessing pipeline.  A page
                    that fails to preprocess is returned as rendered.
    """
    doc = fitz.open(str(pdf_path))
    results = []
    matrix = fitz.Matrix(dpi / 72, dpi / 72)  # PDF user space is 72 units per inch

    try:
        for number, page in enumerate(doc, start=1):
            pixmap = page.get_pixmap(matrix=matrix, colorspace=fitz.csRGB)
            img_bytes = pixmap.tobytes("png")
            if preprocess:
                logger.debug("Preprocessing page %d (%dx%d)", number, pixmap.width, pixmap.height)
                img_bytes = preprocess_or_original(
                    img_bytes, pixmap.width, pixmap.height, options
                ).data
            results.append(img_bytes)
    finally:
        doc.close()
    return results
