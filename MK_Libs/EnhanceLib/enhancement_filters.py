"""
Pixel-level enhancement filters for hand-drawn design photos.

Provides the four kiosk enhancements:
- Background removal: whiten near-white paper
- Contrast stretch: push channels away from mid-gray
- Sharpen: 3x3 cross-shaped convolution on interior pixels
- Auto-levels: stretch the luma range to the full 0-255 scale

All filters take a PIL Image, return a new RGBA PIL Image of the same size,
and leave the alpha channel untouched. Channel values are clamped to 0-255
and rounded half-to-even, matching a clamped 8-bit canvas buffer.

Example:
    >>> from PIL import Image
    >>> img = Image.open("design.jpg")
    >>>
    >>> cleaned = apply_background_removal(img, threshold=240)
    >>> brighter = apply_contrast_stretch(cleaned, amount=1.3)
    >>> crisp = apply_sharpen(brighter, amount=0.5)
"""

from typing import Any

import numpy as np

from MK_Libs.constants import (
    DEFAULT_BACKGROUND_THRESHOLD,
    DEFAULT_CONTRAST_AMOUNT,
    DEFAULT_SHARPEN_AMOUNT,
    LUMA_WEIGHTS,
)
from MK_Libs.ImageBufferLib.buffer_ops import image_to_pixels, pixels_to_image


def _to_channel_bytes(values: np.ndarray) -> np.ndarray:
    return np.clip(np.rint(values), 0, 255).astype(np.uint8)


# ============================================================================
# Background Removal
# ============================================================================

def apply_background_removal(
    image: Any,
    threshold: int = DEFAULT_BACKGROUND_THRESHOLD,
) -> Any:
    """
    Set near-white pixels to pure white.

    A pixel is whitened when all of R, G and B are strictly greater than
    ``threshold``; (240, 240, 240) is kept, (241, 241, 241) becomes white.

    Args:
        image: PIL Image
        threshold: Channel threshold (0-255)

    Returns:
        New RGBA PIL Image

    Raises:
        ValueError: If threshold is outside 0-255
        TypeError: If image not PIL Image
    """
    if not (0 <= threshold <= 255):
        raise ValueError(f"threshold must be 0-255, got {threshold}")

    pixels = image_to_pixels(image)
    rgb = pixels[..., :3]
    near_white = np.all(rgb > threshold, axis=-1)
    rgb[near_white] = 255
    return pixels_to_image(pixels)


# ============================================================================
# Contrast Stretch
# ============================================================================

def contrast_factor(amount: float) -> float:
    """
    Contrast factor for a multiplier.

    factor = 259 * (amount*100 + 255) / (255 * (259 - amount*100))

    Raises:
        ValueError: If amount is outside (-2.55, 2.59)
    """
    if amount >= 2.59 or amount <= -2.55:
        raise ValueError(f"amount must be -2.55 < a < 2.59, got {amount}")
    level = amount * 100
    return (259 * (level + 255)) / (255 * (259 - level))


def apply_contrast_stretch(
    image: Any,
    amount: float = DEFAULT_CONTRAST_AMOUNT,
) -> Any:
    """
    Stretch R, G and B around mid-gray.

    out = clamp(factor * (in - 128) + 128, 0, 255)

    Args:
        image: PIL Image
        amount: Multiplier passed to :func:`contrast_factor` (1.3 brightens)

    Returns:
        New RGBA PIL Image

    Raises:
        ValueError: If amount is out of range
        TypeError: If image not PIL Image
    """
    factor = contrast_factor(amount)

    pixels = image_to_pixels(image)
    rgb = pixels[..., :3].astype(np.float64)
    pixels[..., :3] = _to_channel_bytes(factor * (rgb - 128) + 128)
    return pixels_to_image(pixels)


# ============================================================================
# Sharpen
# ============================================================================

def apply_sharpen(
    image: Any,
    amount: float = DEFAULT_SHARPEN_AMOUNT,
) -> Any:
    """
    Sharpen with the kernel [[0,-k,0],[-k,1+4k,-k],[0,-k,0]].

    Only interior pixels (1 <= x < width-1, 1 <= y < height-1) are
    convolved. The one-pixel border is copied unchanged from the source, so
    images narrower or shorter than 3 pixels come back unchanged.

    Args:
        image: PIL Image
        amount: Kernel strength k (>= 0)

    Returns:
        New RGBA PIL Image

    Raises:
        ValueError: If amount is negative
        TypeError: If image not PIL Image
    """
    if amount < 0:
        raise ValueError(f"amount must be >= 0, got {amount}")

    pixels = image_to_pixels(image)
    height, width = pixels.shape[:2]
    if width < 3 or height < 3:
        return pixels_to_image(pixels)

    src = pixels[..., :3].astype(np.float64)
    k = float(amount)

    # Terms summed in kernel row-major order
    total = (
        src[:-2, 1:-1] * -k
        + src[1:-1, :-2] * -k
        + src[1:-1, 1:-1] * (1 + 4 * k)
        + src[1:-1, 2:] * -k
        + src[2:, 1:-1] * -k
    )
    pixels[1:-1, 1:-1, :3] = _to_channel_bytes(total)
    return pixels_to_image(pixels)


# ============================================================================
# Auto-Levels
# ============================================================================

def compute_luma(pixels: np.ndarray) -> np.ndarray:
    """Per-pixel luma Y = 0.299R + 0.587G + 0.114B for an HxWx4 array."""
    wr, wg, wb = LUMA_WEIGHTS
    rgb = pixels[..., :3].astype(np.float64)
    return rgb[..., 0] * wr + rgb[..., 1] * wg + rgb[..., 2] * wb


def apply_auto_levels(image: Any) -> Any:
    """
    Normalize channels to the global luma range.

    Finds the minimum and maximum luma over the whole image and remaps
    every channel with out = clamp((in - min) / (max - min) * 255). A flat
    image (max == min) is returned unchanged.

    Args:
        image: PIL Image

    Returns:
        New RGBA PIL Image

    Raises:
        TypeError: If image not PIL Image
    """
    pixels = image_to_pixels(image)
    if pixels.size == 0:
        return pixels_to_image(pixels)

    luma = compute_luma(pixels)
    low = float(luma.min())
    high = float(luma.max())
    value_range = high - low
    if value_range <= 0:
        return pixels_to_image(pixels)

    rgb = pixels[..., :3].astype(np.float64)
    pixels[..., :3] = _to_channel_bytes(((rgb - low) / value_range) * 255)
    return pixels_to_image(pixels)
