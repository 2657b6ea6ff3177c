"""Main CLI entry point."""

import logging
import sys
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from ocr_preprocess.codec import image_size
from ocr_preprocess.config import PreprocessOptions
from ocr_preprocess.errors import PreprocessError
from ocr_preprocess.pdf import pdf_to_images
from ocr_preprocess.pipeline import preprocess_image

console = Console(stderr=True)
load_dotenv()

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".gif", ".tif", ".tiff", ".bmp"}


def _configure_logging(verbose: bool) -> None:
    pkg_logger = logging.getLogger("ocr_preprocess")
    pkg_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if not any(isinstance(h, RichHandler) for h in pkg_logger.handlers):
        pkg_logger.addHandler(RichHandler(console=console, show_path=False))


@click.command()
@click.argument("input_path", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--output", "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Output PNG (images) or directory (PDFs). Defaults to a path beside the input.",
)
@click.option("--min-width", type=int, default=None, help="Upscale images narrower than this.")
@click.option("--min-height", type=int, default=None, help="Upscale images shorter than this.")
@click.option(
    "--binarize", "-b",
    type=click.Choice(["mean", "sauvola", "otsu", "none"], case_sensitive=False),
    default=None,
    help="Binarization method; 'none' keeps the enhanced grayscale. [default: mean]",
)
@click.option("--block-size", type=int, default=None, help="Odd window size for local thresholds.")
@click.option("--threshold-c", type=float, default=None, help="Constant subtracted from the local mean.")
@click.option("--sauvola-k", type=float, default=None, help="Sauvola sensitivity k.")
@click.option("--contrast/--no-contrast", default=None, help="Tile-based contrast enhancement.")
@click.option("--denoise/--no-denoise", default=None, help="3x3 median noise filter.")
@click.option("--deskew/--no-deskew", default=None, help="Detect and correct page skew.")
@click.option("--sharpen/--no-sharpen", default=None, help="Unsharp mask before thresholding.")
@click.option(
    "--morphology",
    type=click.Choice(["open", "close"], case_sensitive=False),
    default=None,
    help="Morphological cleanup of the binary result.",
)
@click.option(
    "--dpi",
    default=150,
    show_default=True,
    help="DPI for PDF rendering.",
)
@click.option("--verbose", "-v", is_flag=True, help="Log every pipeline stage.")
@click.version_option(package_name="ocr-preprocess")
def main(
    input_path, output, min_width, min_height, binarize, block_size, threshold_c,
    sauvola_k, contrast, denoise, deskew, sharpen, morphology, dpi, verbose,
):
    """Prepare an image or PDF for OCR.

    INPUT_PATH can be a .pdf or a .png, .jpg, .jpeg, .webp, .gif, .tif, .tiff
    or .bmp file.  Options not given on the command line fall back to
    OCR_PREPROCESS_* environment variables, then to built-in defaults.
    """
    _configure_logging(verbose)

    overrides = dict(
        min_width=min_width,
        min_height=min_height,
        block_size=block_size,
        threshold_c=threshold_c,
        sauvola_k=sauvola_k,
        contrast_enhancement=contrast,
        noise_reduction=denoise,
        deskew=deskew,
        sharpen=sharpen,
        morphology=morphology,
    )
    if binarize is not None:
        if binarize.lower() == "none":
            overrides["adaptive_threshold"] = False
        else:
            overrides["adaptive_threshold"] = True
            overrides["binarization_method"] = binarize.lower()

    try:
        options = PreprocessOptions.from_env(**overrides)
    except PreprocessError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    suffix = input_path.suffix.lower()

    if suffix == ".pdf":
        out_dir = output or input_path.with_name(f"{input_path.stem}_pages")
        with console.status("[cyan]Rendering and preprocessing PDF pages..."):
            pages = pdf_to_images(input_path, dpi=dpi, options=options)
        out_dir.mkdir(parents=True, exist_ok=True)
        for number, data in enumerate(pages, start=1):
            (out_dir / f"page-{number:03d}.png").write_bytes(data)
        console.print(f"[green]{len(pages)} page(s) written to {out_dir}[/green]")
    elif suffix in IMAGE_EXTENSIONS:
        out_file = output or input_path.with_name(f"{input_path.stem}.preprocessed.png")
        raw = input_path.read_bytes()
        try:
            width, height = image_size(raw)
            with console.status("[cyan]Preprocessing image..."):
                result = preprocess_image(raw, width, height, options)
        except PreprocessError as e:
            console.print(f"[red]Error:[/red] {e}")
            sys.exit(1)
        out_file.write_bytes(result.data)
        console.print(
            f"[green]Written to {out_file}[/green] [dim]({result.width}x{result.height})[/dim]"
        )
    else:
        console.print(f"[red]Unsupported file type:[/red] {suffix}")
        sys.exit(1)
