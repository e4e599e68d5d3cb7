"""
ImageBufferLib - Encoded image buffers

This module provides the immutable buffer types passed between pipeline
stages and the helpers that encode and decode them.
"""

from MK_Libs.ImageBufferLib.image_models import (
    CroppedImage,
    EncodedImage,
    FinalImage,
    RawCapture,
    RgbaColor,
    Size,
)
from MK_Libs.ImageBufferLib.buffer_ops import (
    decode_image,
    encode_jpeg,
    image_to_pixels,
    pixels_to_image,
    to_buffer,
)

__all__ = [
    "EncodedImage",
    "RawCapture",
    "CroppedImage",
    "FinalImage",
    "RgbaColor",
    "Size",
    "decode_image",
    "encode_jpeg",
    "to_buffer",
    "image_to_pixels",
    "pixels_to_image",
]
