"""
MK_Libs - Museum Kiosk Library Modules

This package contains the design capture pipeline of the museum kiosk,
organized into specialized sub-packages:

- ImageBufferLib: Encoded image buffers and encode/decode helpers
- CaptureLib: Camera and gallery capture sources
- CropLib: Square crop region and cropper
- EnhanceLib: Pixel filters, filter catalog and enhancement session
- PipelineLib: Stage state machine, design accumulator and uploader
- KioskUI: PyQt5 kiosk window
"""

__version__ = "0.1.0"
