"""
KioskUI - PyQt5 front end of the museum kiosk

Widgets:
- MuseumKioskWindow: Main kiosk window
- CropCanvas: Interactive square crop widget
"""

from MK_Libs.KioskUI.kiosk_window import CropCanvas, MuseumKioskWindow, encoded_to_pixmap

__all__ = [
    "CropCanvas",
    "MuseumKioskWindow",
    "encoded_to_pixmap",
]
