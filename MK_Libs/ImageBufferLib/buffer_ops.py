"""
Encode and decode operations for kiosk image buffers.

This module converts between encoded buffers (JPEG bytes) and decoded
Pillow images, and between Pillow images and numpy pixel arrays.

Functions:
    decode_image: Decode an encoded buffer into an RGBA Pillow image
    encode_jpeg: Encode a Pillow image as JPEG bytes
    to_buffer: Encode an image into one of the buffer dataclasses
    image_to_pixels: Pillow image to an HxWx4 uint8 array
    pixels_to_image: HxWx4 uint8 array to a Pillow image
"""

from io import BytesIO
from typing import Any, Type, TypeVar, Union

import numpy as np

from MK_Libs.constants import JPEG_FORMAT
from MK_Libs.errors import ProcessingError
from MK_Libs.ImageBufferLib.image_models import EncodedImage
from MK_Libs.pillow_compat import Image

BufferT = TypeVar("BufferT", bound=EncodedImage)


def decode_image(buffer: Union[EncodedImage, bytes]) -> Any:
    """
    Decode an encoded buffer.

    Args:
        buffer: EncodedImage or raw encoded bytes

    Returns:
        Fully loaded PIL Image in RGBA mode

    Raises:
        ProcessingError: If the bytes are not a readable image
    """
    data = buffer.data if isinstance(buffer, EncodedImage) else buffer
    if not data:
        raise ProcessingError("Cannot decode an empty buffer")

    try:
        img = Image.open(BytesIO(data))
        img.load()
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise ProcessingError(f"Failed to decode image: {e}") from e

    if img.mode != "RGBA":
        img = img.convert("RGBA")
    return img


def encode_jpeg(image: Any, quality: float) -> bytes:
    """
    Encode an image as JPEG.

    Args:
        image: PIL Image (alpha is dropped, JPEG has none)
        quality: Quality factor in (0, 1], e.g. 0.95

    Returns:
        JPEG bytes

    Raises:
        ValueError: If quality is out of range
        ProcessingError: If Pillow fails to encode
    """
    if not (0 < quality <= 1):
        raise ValueError(f"quality must be 0 < q <= 1, got {quality}")

    if image.mode != "RGB":
        image = image.convert("RGB")

    out = BytesIO()
    try:
        image.save(out, format=JPEG_FORMAT, quality=max(1, min(100, round(quality * 100))))
    except (OSError, ValueError) as e:
        raise ProcessingError(f"Failed to encode JPEG: {e}") from e
    return out.getvalue()


def to_buffer(image: Any, quality: float, buffer_cls: Type[BufferT], **extra: Any) -> BufferT:
    """Encode ``image`` as JPEG and wrap it in ``buffer_cls``."""
    data = encode_jpeg(image, quality)
    return buffer_cls(data=data, width=image.width, height=image.height, **extra)


def image_to_pixels(image: Any) -> np.ndarray:
    """Return a writable HxWx4 uint8 copy of the image's RGBA pixels."""
    if not hasattr(image, "mode"):
        raise TypeError(f"Expected PIL Image, got {type(image)}")
    if image.mode != "RGBA":
        image = image.convert("RGBA")
    return np.array(image, dtype=np.uint8)


def pixels_to_image(pixels: np.ndarray) -> Any:
    """Wrap an HxWx4 uint8 array as an RGBA image."""
    if pixels.ndim != 3 or pixels.shape[2] != 4:
        raise ValueError(f"Expected HxWx4 pixel array, got shape {pixels.shape}")
    return Image.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8))
