"""
Image buffer data models for the kiosk pipeline.

Every stage of the pipeline produces a new encoded buffer and never mutates
the buffer it received.

Classes:
    EncodedImage: Encoded image bytes plus pixel dimensions
    RawCapture: Buffer produced by the camera or a gallery file
    CroppedImage: Square buffer produced by the cropper
    FinalImage: Buffer produced by the enhancer

Type Aliases:
    RgbaColor: A tuple of 4 integers representing RGBA color values (0-255)
    Size: A (width, height) tuple
"""

from dataclasses import dataclass
from typing import Tuple

from MK_Libs.constants import JPEG_MIME_TYPE

RgbaColor = Tuple[int, int, int, int]
Size = Tuple[int, int]


@dataclass(frozen=True)
class EncodedImage:
    data: bytes
    width: int
    height: int
    mime_type: str = JPEG_MIME_TYPE

    @property
    def size(self) -> Size:
        return (self.width, self.height)

    @property
    def byte_size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class RawCapture(EncodedImage):
    source: str = "camera"  # 'camera' or 'file'


@dataclass(frozen=True)
class CroppedImage(EncodedImage):
    pass


@dataclass(frozen=True)
class FinalImage(EncodedImage):
    pass
