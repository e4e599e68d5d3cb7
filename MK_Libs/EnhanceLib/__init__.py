"""
EnhanceLib - Enhancement filters for cropped designs

This module provides the pixel filters, the ordered filter catalog and the
per-crop enhancement session.
"""

from MK_Libs.EnhanceLib.enhancement_filters import (
    apply_auto_levels,
    apply_background_removal,
    apply_contrast_stretch,
    apply_sharpen,
    compute_luma,
    contrast_factor,
)
from MK_Libs.EnhanceLib.filter_catalog import (
    EnhancementFilter,
    FilterCatalog,
    build_default_catalog,
    get_default_catalog,
)
from MK_Libs.EnhanceLib.enhancer import Enhancer

__all__ = [
    "apply_auto_levels",
    "apply_background_removal",
    "apply_contrast_stretch",
    "apply_sharpen",
    "compute_luma",
    "contrast_factor",
    "EnhancementFilter",
    "FilterCatalog",
    "build_default_catalog",
    "get_default_catalog",
    "Enhancer",
]
