"""
Tests for the pixel-level enhancement filters.

Tests cover:
- Background removal threshold
- Contrast factor and stretch
- Sharpen kernel on interior pixels, border copied
- Auto-levels and the flat image guard
- Alpha preservation
- Error handling
"""

import unittest

import numpy as np
from PIL import Image

from MK_Libs.EnhanceLib.enhancement_filters import (
    apply_auto_levels,
    apply_background_removal,
    apply_contrast_stretch,
    apply_sharpen,
    compute_luma,
    contrast_factor,
)


def _pixels(img):
    return np.array(img.convert("RGBA"), dtype=np.uint8)


def _random_rgba(width, height, seed=7):
    rng = np.random.default_rng(seed)
    pixels = rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)
    return Image.fromarray(pixels)


class TestBackgroundRemoval(unittest.TestCase):
    """Test near-white background removal."""

    def test_threshold_value_is_kept(self):
        """A pixel exactly at the threshold is not whitened."""
        img = Image.new("RGB", (4, 4), (240, 240, 240))
        result = apply_background_removal(img)

        self.assertEqual(result.getpixel((0, 0)), (240, 240, 240, 255))

    def test_above_threshold_is_whitened(self):
        img = Image.new("RGB", (4, 4), (241, 241, 241))
        result = apply_background_removal(img)

        self.assertEqual(result.getpixel((2, 2)), (255, 255, 255, 255))

    def test_all_channels_must_exceed_threshold(self):
        img = Image.new("RGB", (2, 1), (241, 241, 240))
        img.putpixel((1, 0), (250, 245, 255))
        result = apply_background_removal(img)

        self.assertEqual(result.getpixel((0, 0)), (241, 241, 240, 255))
        self.assertEqual(result.getpixel((1, 0)), (255, 255, 255, 255))

    def test_dark_pixels_untouched(self):
        img = Image.new("RGB", (3, 3), (10, 20, 30))
        result = apply_background_removal(img)

        np.testing.assert_array_equal(_pixels(result), _pixels(img))

    def test_custom_threshold(self):
        img = Image.new("RGB", (1, 1), (201, 201, 201))

        self.assertEqual(apply_background_removal(img, threshold=200).getpixel((0, 0))[:3], (255, 255, 255))
        self.assertEqual(apply_background_removal(img, threshold=201).getpixel((0, 0))[:3], (201, 201, 201))

    def test_alpha_preserved(self):
        img = Image.new("RGBA", (2, 2), (250, 250, 250, 77))
        result = apply_background_removal(img)

        self.assertEqual(result.getpixel((0, 0)), (255, 255, 255, 77))

    def test_input_not_modified(self):
        img = Image.new("RGB", (2, 2), (250, 250, 250))
        apply_background_removal(img)

        self.assertEqual(img.getpixel((0, 0)), (250, 250, 250))

    def test_invalid_threshold_raises_error(self):
        img = Image.new("RGB", (2, 2))

        with self.assertRaises(ValueError):
            apply_background_removal(img, threshold=256)
        with self.assertRaises(ValueError):
            apply_background_removal(img, threshold=-1)

    def test_non_image_raises_type_error(self):
        with self.assertRaises(TypeError):
            apply_background_removal("not an image")


class TestContrastStretch(unittest.TestCase):
    """Test contrast factor and stretch."""

    def test_factor_formula(self):
        expected = 259 * (130 + 255) / (255 * (259 - 130))

        self.assertAlmostEqual(contrast_factor(1.3), expected)

    def test_zero_amount_is_identity_factor(self):
        self.assertAlmostEqual(contrast_factor(0.0), 1.0)

    def test_factor_out_of_range_raises_error(self):
        with self.assertRaises(ValueError):
            contrast_factor(2.59)
        with self.assertRaises(ValueError):
            contrast_factor(-2.55)

    def test_mid_gray_is_fixed_point(self):
        img = Image.new("RGB", (3, 3), (128, 128, 128))
        result = apply_contrast_stretch(img)

        self.assertEqual(result.getpixel((1, 1)), (128, 128, 128, 255))

    def test_channels_stretched_and_clamped(self):
        img = Image.new("RGB", (1, 1), (100, 160, 250))
        result = apply_contrast_stretch(img, amount=1.3)

        factor = contrast_factor(1.3)
        expected = tuple(
            int(np.clip(np.rint(factor * (v - 128) + 128), 0, 255)) for v in (100, 160, 250)
        )
        self.assertEqual(result.getpixel((0, 0))[:3], expected)
        self.assertEqual(expected[2], 255)

    def test_alpha_preserved(self):
        img = Image.new("RGBA", (2, 2), (10, 200, 90, 33))
        result = apply_contrast_stretch(img)

        self.assertEqual(result.getpixel((1, 0))[3], 33)

    def test_size_and_mode(self):
        img = Image.new("RGB", (17, 9), (50, 60, 70))
        result = apply_contrast_stretch(img)

        self.assertEqual(result.size, (17, 9))
        self.assertEqual(result.mode, "RGBA")


class TestSharpen(unittest.TestCase):
    """Test the cross-shaped sharpen kernel."""

    def setUp(self):
        self.image = _random_rgba(10, 10)
        self.source = _pixels(self.image)

    def test_border_ring_unchanged(self):
        result = _pixels(apply_sharpen(self.image, amount=0.5))

        np.testing.assert_array_equal(result[0, :], self.source[0, :])
        np.testing.assert_array_equal(result[-1, :], self.source[-1, :])
        np.testing.assert_array_equal(result[:, 0], self.source[:, 0])
        np.testing.assert_array_equal(result[:, -1], self.source[:, -1])

    def test_interior_pixel_matches_kernel(self):
        k = 0.5
        result = _pixels(apply_sharpen(self.image, amount=k))
        src = self.source.astype(np.float64)

        for y, x in ((1, 1), (4, 6), (8, 8)):
            for c in range(3):
                value = (
                    src[y - 1, x, c] * -k
                    + src[y, x - 1, c] * -k
                    + src[y, x, c] * (1 + 4 * k)
                    + src[y, x + 1, c] * -k
                    + src[y + 1, x, c] * -k
                )
                expected = int(np.clip(np.rint(value), 0, 255))
                self.assertEqual(result[y, x, c], expected, f"pixel ({x}, {y}) channel {c}")

    def test_alpha_preserved(self):
        result = _pixels(apply_sharpen(self.image))

        np.testing.assert_array_equal(result[..., 3], self.source[..., 3])

    def test_flat_image_unchanged(self):
        img = Image.new("RGB", (6, 6), (90, 120, 150))
        result = apply_sharpen(img, amount=0.5)

        np.testing.assert_array_equal(_pixels(result), _pixels(img))

    def test_zero_amount_is_identity(self):
        result = apply_sharpen(self.image, amount=0.0)

        np.testing.assert_array_equal(_pixels(result), self.source)

    def test_tiny_image_unchanged(self):
        img = Image.new("RGB", (2, 5), (1, 2, 3))
        result = apply_sharpen(img)

        self.assertEqual(result.size, (2, 5))
        np.testing.assert_array_equal(_pixels(result), _pixels(img))

    def test_negative_amount_raises_error(self):
        with self.assertRaises(ValueError):
            apply_sharpen(self.image, amount=-0.1)


class TestAutoLevels(unittest.TestCase):
    """Test luma-based auto-levels."""

    def test_compute_luma(self):
        pixels = np.array([[[100, 50, 200, 255]]], dtype=np.uint8)
        expected = 0.299 * 100 + 0.587 * 50 + 0.114 * 200

        self.assertAlmostEqual(float(compute_luma(pixels)[0, 0]), expected)

    def test_range_stretched_to_full_scale(self):
        img = Image.new("RGB", (3, 1))
        img.putpixel((0, 0), (50, 50, 50))
        img.putpixel((1, 0), (110, 110, 110))
        img.putpixel((2, 0), (200, 200, 200))
        result = apply_auto_levels(img)

        self.assertEqual(result.getpixel((0, 0))[:3], (0, 0, 0))
        self.assertEqual(result.getpixel((1, 0))[:3], (102, 102, 102))
        self.assertEqual(result.getpixel((2, 0))[:3], (255, 255, 255))

    def test_flat_image_unchanged(self):
        img = Image.new("RGB", (5, 5), (77, 77, 77))
        result = apply_auto_levels(img)

        np.testing.assert_array_equal(_pixels(result), _pixels(img))

    def test_alpha_preserved(self):
        img = Image.new("RGBA", (2, 1), (20, 20, 20, 10))
        img.putpixel((1, 0), (220, 220, 220, 200))
        result = apply_auto_levels(img)

        self.assertEqual(result.getpixel((0, 0))[3], 10)
        self.assertEqual(result.getpixel((1, 0))[3], 200)

    def test_non_image_raises_type_error(self):
        with self.assertRaises(TypeError):
            apply_auto_levels(None)


if __name__ == "__main__":
    unittest.main()
