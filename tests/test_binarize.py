"""Tests for ocr_preprocess.binarize — mean, Sauvola and Otsu thresholds."""

import numpy as np
import pytest

from ocr_preprocess.binarize import (
    adaptive_threshold_mean,
    binarize,
    otsu_level,
    otsu_threshold,
    sauvola_threshold,
)
from ocr_preprocess.config import PreprocessOptions

MIXED = np.array([[10, 200, 50], [180, 30, 220], [100, 150, 90]], dtype=np.uint8)


def _is_binary(buffer: np.ndarray) -> bool:
    return set(np.unique(buffer).tolist()) <= {0, 255}


def _text_on_paper() -> np.ndarray:
    """5×5 page (220) with a 2×3 block of ink (50)."""
    gray = np.full((5, 5), 220, dtype=np.uint8)
    gray[1:3, 1:4] = 50
    return gray


def _brute_sauvola_thresholds(gray: np.ndarray, block_size: int, k: float, r: float) -> np.ndarray:
    """Per-pixel Sauvola threshold from explicitly sliced, edge-clamped windows."""
    half = block_size // 2
    height, width = gray.shape
    thresholds = np.empty(gray.shape, dtype=np.float64)
    for y in range(height):
        for x in range(width):
            window = gray[max(0, y - half):y + half + 1, max(0, x - half):x + half + 1]
            window = window.astype(np.float64)
            thresholds[y, x] = window.mean() * (1 + k * (window.std() / r - 1))
    return thresholds


# ── Adaptive mean ──────────────────────────────────────────────────────────


class TestAdaptiveMean:
    def test_output_is_binary(self):
        assert _is_binary(adaptive_threshold_mean(MIXED, 3, 5))

    @pytest.mark.parametrize("block_size", [1, 3, 5, 15, 31])
    def test_uniform_image_is_all_white(self, block_size):
        gray = np.full((5, 5), 128, dtype=np.uint8)
        assert (adaptive_threshold_mean(gray, block_size, 5) == 255).all()

    def test_dark_dot_on_bright_page_is_black(self):
        gray = np.full((9, 9), 200, dtype=np.uint8)
        gray[4, 4] = 10
        assert adaptive_threshold_mean(gray, 3, 5)[4, 4] == 0
        assert adaptive_threshold_mean(gray, 7, 5)[4, 4] == 0

    def test_shape_preserved(self):
        assert adaptive_threshold_mean(np.zeros((4, 7), dtype=np.uint8), 3, 2).shape == (4, 7)


# ── Sauvola ────────────────────────────────────────────────────────────────


class TestSauvola:
    def test_output_is_binary(self):
        assert _is_binary(sauvola_threshold(MIXED, 3, 0.3))

    def test_uniform_image_does_not_crash(self):
        result = sauvola_threshold(np.full((5, 5), 128, dtype=np.uint8), 3, 0.3)
        assert result.shape == (5, 5)
        assert _is_binary(result)

    def test_ink_becomes_black(self):
        result = sauvola_threshold(_text_on_paper(), 3, 0.3)
        assert result[1, 2] == 0
        assert result[2, 2] == 0

    def test_paper_far_from_ink_stays_white(self):
        gray = np.full((9, 9), 220, dtype=np.uint8)
        gray[0:2, 0:2] = 40
        assert sauvola_threshold(gray, 3, 0.3)[8, 8] == 255

    @pytest.mark.parametrize("block_size,k", [(3, 0.2), (5, 0.3), (7, 0.5)])
    def test_matches_brute_force_window_statistics(self, block_size, k):
        rng = np.random.default_rng(block_size)
        gray = rng.integers(0, 256, size=(9, 11), dtype=np.uint8)
        expected = _brute_sauvola_thresholds(gray, block_size, k, r=128.0)
        result = sauvola_threshold(gray, block_size, k)
        # skip pixels sitting on the threshold, where float summation order decides
        decided = np.abs(gray - expected) > 1e-6
        assert decided.sum() > 0.9 * gray.size
        assert np.array_equal(result[decided] == 255, (gray > expected)[decided])

    def test_dynamic_range_is_128(self):
        # ring of 40s and 220s around a 130 centre: mean 130, std ~84.85
        gray = np.array([[40, 220, 40], [220, 130, 220], [40, 220, 40]], dtype=np.uint8)
        at_128 = _brute_sauvola_thresholds(gray, 3, 0.5, r=128.0)[1, 1]
        at_64 = _brute_sauvola_thresholds(gray, 3, 0.5, r=64.0)[1, 1]
        assert at_128 < 130 < at_64
        assert sauvola_threshold(gray, 3, 0.5)[1, 1] == 255


# ── Otsu ───────────────────────────────────────────────────────────────────


class TestOtsu:
    def test_output_is_binary(self):
        assert _is_binary(otsu_threshold(MIXED))

    def test_bimodal_split_on_class_boundary(self):
        gray = np.array([30] * 8 + [220] * 8, dtype=np.uint8).reshape(4, 4)
        result = otsu_threshold(gray)
        assert (result[:2] == 0).all()
        assert (result[2:] == 255).all()

    def test_level_lies_between_modes(self):
        gray = np.array([30] * 8 + [220] * 8, dtype=np.uint8).reshape(4, 4)
        assert 30 <= otsu_level(gray) < 220

    def test_uniform_image(self):
        gray = np.full((3, 3), 128, dtype=np.uint8)
        assert otsu_level(gray) == 0
        assert otsu_threshold(gray).shape == (3, 3)

    def test_unbalanced_classes(self):
        gray = np.full((10, 10), 200, dtype=np.uint8)
        gray[0, :3] = 20
        result = otsu_threshold(gray)
        assert (result[0, :3] == 0).all()
        assert result[5, 5] == 255


# ── Dispatch ───────────────────────────────────────────────────────────────


class TestBinarizeDispatch:
    def test_mean_is_default(self):
        gray = np.full((5, 5), 90, dtype=np.uint8)
        assert (binarize(gray, PreprocessOptions()) == 255).all()

    def test_selects_otsu(self):
        gray = np.array([30] * 8 + [220] * 8, dtype=np.uint8).reshape(4, 4)
        options = PreprocessOptions(binarization_method="otsu")
        assert np.array_equal(binarize(gray, options), otsu_threshold(gray))

    def test_selects_sauvola_with_configured_k(self):
        options = PreprocessOptions(binarization_method="sauvola", block_size=3, sauvola_k=0.5)
        gray = _text_on_paper()
        expected = np.where(gray > _brute_sauvola_thresholds(gray, 3, 0.5, r=128.0), 255, 0)
        assert np.array_equal(binarize(gray, options), expected)
