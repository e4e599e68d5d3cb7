"""
CaptureLib - Acquire a still image from the camera or the gallery
"""

from MK_Libs.CaptureLib.camera_source import CameraSource
from MK_Libs.CaptureLib.file_source import (
    GalleryFile,
    get_allowed_mime_types,
    get_file_dialog_filter,
    guess_mime_type,
    load_gallery_file,
    validate_upload,
)

__all__ = [
    "CameraSource",
    "GalleryFile",
    "get_allowed_mime_types",
    "get_file_dialog_filter",
    "guess_mime_type",
    "load_gallery_file",
    "validate_upload",
]
