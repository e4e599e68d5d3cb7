"""
Unit tests for the square crop region model.
"""

import pytest

from MK_Libs.CropLib.crop_region import (
    ANCHOR_BOTTOM_RIGHT,
    ANCHOR_CENTER,
    ANCHOR_TOP_LEFT,
    CropRegion,
    fit_display_size,
    round_half_up,
)


class TestFitDisplaySize:
    """Tests for fit_display_size."""

    def test_landscape_downscaled(self):
        assert fit_display_size((4000, 3000), (1080, 1080)) == (1080, 810)

    def test_portrait_downscaled(self):
        assert fit_display_size((3000, 4000), (1080, 1080)) == (810, 1080)

    def test_never_upscaled(self):
        assert fit_display_size((500, 400), (1080, 1080)) == (500, 400)

    def test_invalid_size_raises_error(self):
        with pytest.raises(ValueError):
            fit_display_size((0, 100), (1080, 1080))


class TestRoundHalfUp:
    def test_halves_round_up(self):
        assert round_half_up(150.5) == 151
        assert round_half_up(2.5) == 3
        assert round_half_up(2.49) == 2


class TestCropRegion:
    """Tests for CropRegion construction and interaction."""

    def test_centered_landscape(self):
        region = CropRegion.centered(800, 600)

        assert (region.x, region.y, region.size) == (100, 0, 600)

    def test_centered_portrait(self):
        region = CropRegion.centered(400, 700)

        assert (region.x, region.y, region.size) == (0, 150, 400)

    def test_width_equals_height(self):
        region = CropRegion(x=5, y=7, size=33)

        assert region.width == region.height == 33

    def test_invalid_region_raises_error(self):
        with pytest.raises(ValueError):
            CropRegion(x=0, y=0, size=0)
        with pytest.raises(ValueError):
            CropRegion(x=-1, y=0, size=10)

    def test_from_drag_uses_shorter_extent(self):
        region = CropRegion.from_drag(10, 20, 110, 70, 800, 600)

        assert (region.x, region.y, region.size) == (10, 20, 50)

    def test_from_drag_up_and_left(self):
        region = CropRegion.from_drag(200, 200, 100, 150, 800, 600)

        assert (region.x, region.y, region.size) == (150, 150, 50)

    def test_from_drag_clamped_to_display(self):
        region = CropRegion.from_drag(700, 500, 2000, 2000, 800, 600)

        assert region.fits(800, 600)
        assert region.size == 100

    def test_moved_stops_at_edges(self):
        region = CropRegion(x=100, y=0, size=600)

        assert region.moved(500, 0, 800, 600).x == 200
        assert region.moved(-500, -40, 800, 600).x == 0
        assert region.moved(-500, -40, 800, 600).y == 0

    def test_resized_top_left_anchor(self):
        region = CropRegion(x=100, y=100, size=200)
        resized = region.resized(1000, 800, 600, anchor=ANCHOR_TOP_LEFT)

        assert (resized.x, resized.y, resized.size) == (100, 100, 500)

    def test_resized_bottom_right_anchor(self):
        region = CropRegion(x=100, y=100, size=200)
        resized = region.resized(100, 800, 600, anchor=ANCHOR_BOTTOM_RIGHT)

        assert (resized.x, resized.y, resized.size) == (200, 200, 100)

    def test_resized_center_anchor(self):
        region = CropRegion(x=300, y=200, size=200)
        resized = region.resized(100, 800, 600, anchor=ANCHOR_CENTER)

        assert (resized.x, resized.y, resized.size) == (350, 250, 100)

    def test_resized_unknown_anchor_raises_error(self):
        with pytest.raises(ValueError):
            CropRegion(x=0, y=0, size=10).resized(20, 100, 100, anchor="middle")

    def test_interactions_keep_region_square_and_inside(self):
        region = CropRegion.centered(640, 360)
        for step in range(20):
            region = region.moved(37 * (-1) ** step, 11 * step, 640, 360)
            region = region.resized(region.size * 1.3 - step, 640, 360)
            assert region.width == region.height
            assert region.fits(640, 360)


class TestSourceMapping:
    """Tests for display to source mapping."""

    def test_scale_applied_per_axis(self):
        region = CropRegion(x=100, y=50, size=300)

        assert region.to_source_box((800, 600), (1600, 1200)) == (200, 100, 800, 700)

    def test_output_size_at_source_resolution(self):
        region = CropRegion(x=0, y=0, size=300)

        assert region.output_size((800, 600), (1600, 1200)) == (600, 600)

    def test_output_size_rounds_half_up(self):
        region = CropRegion(x=0, y=0, size=100.25)

        assert region.output_size((100, 100), (200, 200)) == (201, 201)

    def test_identity_scale(self):
        region = CropRegion(x=10, y=20, size=30)

        assert region.to_source_box((100, 100), (100, 100)) == (10, 20, 40, 50)
