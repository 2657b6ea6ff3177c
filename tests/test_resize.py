"""Tests for ocr_preprocess.resize — plan_target_size()."""

import pytest

from ocr_preprocess.errors import InvalidDimensions
from ocr_preprocess.resize import plan_target_size


class TestPlanTargetSize:
    def test_small_image_scale_is_capped_at_two(self):
        # max(1024/500, 768/400, 1) = 2.048 -> capped at 2.0
        assert plan_target_size(500, 400, 1024, 768) == (1000, 800)

    def test_large_image_passes_through(self):
        assert plan_target_size(2480, 3508, 1024, 768) == (2480, 3508)

    def test_exact_minimum_passes_through(self):
        assert plan_target_size(1024, 768, 1024, 768) == (1024, 768)

    def test_uniform_scale_to_reach_both_minimums(self):
        # max(1024/800, 768/700) = 1.28
        assert plan_target_size(800, 700, 1024, 768) == (1024, 896)

    def test_one_short_side_upscales_both(self):
        assert plan_target_size(3000, 100, 1024, 768) == (6000, 200)

    def test_never_downscales(self):
        width, height = plan_target_size(5000, 700, 1024, 768)
        assert width >= 5000 and height >= 700

    def test_rounds_to_nearest_integer(self):
        # 1024 / 1000 = 1.024 -> 333 * 1.024 = 340.99
        assert plan_target_size(1000, 333, 1024, 100) == (1024, 341)

    @pytest.mark.parametrize("width,height", [(0, 600), (800, 0), (-1, 600), (800, -5)])
    def test_invalid_dimensions(self, width, height):
        with pytest.raises(InvalidDimensions, match="Invalid image dimensions"):
            plan_target_size(width, height, 1024, 768)

    def test_error_carries_dimensions(self):
        with pytest.raises(InvalidDimensions) as exc_info:
            plan_target_size(0, 600, 1024, 768)
        assert exc_info.value.width == 0
        assert exc_info.value.height == 600
        assert "0x600" in str(exc_info.value)
