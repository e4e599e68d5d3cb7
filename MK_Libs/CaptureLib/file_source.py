"""
Gallery file capture source.

This module validates visitor-selected files against the MIME allow-list and
the configured size ceiling, then turns an accepted file into a RawCapture so
it follows the same crop and enhancement path as a camera still.

Classes:
    GalleryFile: A selected file with its MIME type

Functions:
    get_allowed_mime_types: MIME types accepted for gallery files
    get_file_dialog_filter: Qt file dialog filter for accepted files
    validate_upload: Reject files with a bad type or size
    load_gallery_file: Validate and decode a file into a RawCapture
"""

import logging
import mimetypes
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import List, Optional

from MK_Libs.constants import BASE_MIME_TYPES, EXTENDED_MIME_TYPES, MB
from MK_Libs.errors import ProcessingError, UploadValidationError
from MK_Libs.ImageBufferLib.buffer_ops import to_buffer
from MK_Libs.ImageBufferLib.image_models import RawCapture
from MK_Libs.kiosk_config import KioskConfig
from MK_Libs.pillow_compat import Image, ImageOps

logger = logging.getLogger(__name__)

# Extensions offered in the file dialog, per MIME type
MIME_EXTENSIONS = {
    "image/jpeg": ("*.jpg", "*.jpeg"),
    "image/png": ("*.png",),
    "image/webp": ("*.webp",),
    "image/gif": ("*.gif",),
    "image/heic": ("*.heic",),
    "image/heif": ("*.heif",),
}

# mimetypes does not know HEIC/HEIF on every platform
_SUFFIX_MIME_TYPES = {
    ".heic": "image/heic",
    ".heif": "image/heif",
    ".webp": "image/webp",
}


def get_allowed_mime_types(include_extended: bool = True) -> List[str]:
    """
    Get the accepted MIME types.

    Args:
        include_extended: Include GIF, HEIC and HEIF (default True)

    Returns:
        List of MIME types
    """
    mime_types = list(BASE_MIME_TYPES)
    if include_extended:
        mime_types.extend(EXTENDED_MIME_TYPES)
    return mime_types


def get_file_dialog_filter(include_extended: bool = True) -> str:
    """Qt file dialog filter string, e.g. 'Images (*.jpg *.jpeg *.png *.webp)'."""
    patterns = []
    for mime_type in get_allowed_mime_types(include_extended):
        patterns.extend(MIME_EXTENSIONS.get(mime_type, ()))
    return f"Images ({' '.join(patterns)})"


def guess_mime_type(file_path: Path) -> Optional[str]:
    """MIME type from a file name, or None if unknown."""
    suffix = Path(file_path).suffix.lower()
    if suffix in _SUFFIX_MIME_TYPES:
        return _SUFFIX_MIME_TYPES[suffix]
    mime_type, _ = mimetypes.guess_type(str(file_path))
    return mime_type


def validate_upload(mime_type: Optional[str], size_bytes: int, config: Optional[KioskConfig] = None) -> None:
    """
    Check a selected file against the allow-list and size ceiling.

    Args:
        mime_type: Declared MIME type of the file
        size_bytes: File size in bytes
        config: Kiosk configuration (defaults if None)

    Raises:
        UploadValidationError: If the type is not allowed, or the file is
            empty or larger than ``config.max_upload_bytes``
    """
    config = config or KioskConfig()
    allowed = config.allowed_mime_types
    normalized = (mime_type or "").strip().lower()

    if normalized not in allowed:
        raise UploadValidationError(
            f"Unsupported file type: {mime_type!r}",
            user_message="Please choose a JPEG, PNG or WebP image"
            + (", GIF or HEIC image" if config.allow_extended_mime_types else ""),
        )

    if size_bytes <= 0:
        raise UploadValidationError("File is empty", user_message="The selected file is empty")

    if size_bytes > config.max_upload_bytes:
        limit_mb = config.max_upload_bytes / MB
        raise UploadValidationError(
            f"File too large: {size_bytes} bytes > {config.max_upload_bytes}",
            user_message=f"Image is too large. Maximum size is {limit_mb:g} MB",
        )


@dataclass(frozen=True)
class GalleryFile:
    """A file selected from the device gallery.

    Attributes:
        data: File contents
        mime_type: Declared MIME type
        name: Original file name (for logging only)
    """
    data: bytes
    mime_type: str
    name: str = ""

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_path(cls, file_path: Path, mime_type: Optional[str] = None) -> "GalleryFile":
        """
        Read a file from disk.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the path is not a file
        """
        file_path = Path(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"Image file not found: {file_path}")

        if not file_path.is_file():
            raise ValueError(f"Path is not a file: {file_path}")

        return cls(
            data=file_path.read_bytes(),
            mime_type=mime_type or guess_mime_type(file_path) or "",
            name=file_path.name,
        )


def load_gallery_file(gallery_file: GalleryFile, config: Optional[KioskConfig] = None) -> RawCapture:
    """
    Validate a gallery file and convert it into a RawCapture.

    The first frame of animated files is used, EXIF orientation is applied,
    and the result is re-encoded as JPEG at the capture quality.

    Args:
        gallery_file: Selected file
        config: Kiosk configuration (defaults if None)

    Returns:
        RawCapture with source 'file'

    Raises:
        UploadValidationError: If the file fails validation
        ProcessingError: If the file cannot be decoded
    """
    config = config or KioskConfig()
    validate_upload(gallery_file.mime_type, gallery_file.size, config)

    try:
        img = Image.open(BytesIO(gallery_file.data))
        img.seek(0)
        img = ImageOps.exif_transpose(img)
        img = img.convert("RGB")
    except (OSError, ValueError, EOFError, Image.DecompressionBombError) as e:
        raise ProcessingError(
            f"Failed to read {gallery_file.name or 'gallery file'}: {e}",
            user_message="This image could not be opened. Please try another one.",
        ) from e

    raw = to_buffer(img, config.capture_quality, RawCapture, source="file")
    logger.info(
        f"Loaded gallery file {gallery_file.name or '<memory>'} "
        f"({gallery_file.mime_type}, {gallery_file.size} bytes) as {raw.width}x{raw.height}"
    )
    return raw
