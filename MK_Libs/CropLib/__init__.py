"""
CropLib - Square cropping of captured designs
"""

from MK_Libs.CropLib.crop_region import (
    ANCHORS,
    CropRegion,
    fit_display_size,
    round_half_up,
)
from MK_Libs.CropLib.cropper import Cropper, crop_to_region

__all__ = [
    "ANCHORS",
    "CropRegion",
    "fit_display_size",
    "round_half_up",
    "Cropper",
    "crop_to_region",
]
