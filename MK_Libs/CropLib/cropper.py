"""
Cropper stage: square crop of a RawCapture at source resolution.

Functions:
    crop_to_region: Cut a display-space region out of a full-resolution image

Classes:
    Cropper: Holds one RawCapture, its crop region, and emits CroppedImage
"""

import logging
from typing import Any, Optional, Tuple

from MK_Libs.constants import (
    DEFAULT_DISPLAY_MAX_HEIGHT,
    DEFAULT_DISPLAY_MAX_WIDTH,
    DEFAULT_OUTPUT_QUALITY,
)
from MK_Libs.CropLib.crop_region import ANCHOR_TOP_LEFT, CropRegion, fit_display_size
from MK_Libs.errors import KioskError, PipelineStateError, ProcessingError
from MK_Libs.ImageBufferLib.buffer_ops import decode_image, to_buffer
from MK_Libs.ImageBufferLib.image_models import CroppedImage, RawCapture, Size
from MK_Libs.in_flight import InFlightGuard
from MK_Libs.pillow_compat import RESAMPLE_HIGH_QUALITY

logger = logging.getLogger(__name__)


def crop_to_region(image: Any, region: CropRegion, display_size: Size) -> Any:
    """
    Crop a display-space region from the full-resolution image.

    When the scaled box lands on whole pixels and matches the output size
    the pixels are copied exactly; otherwise the box is resampled with a
    high-quality filter.

    Args:
        image: Full-resolution PIL Image
        region: Crop region in display pixels
        display_size: (width, height) the image was displayed at

    Returns:
        New PIL Image of size region.output_size(display_size, image.size)

    Raises:
        TypeError: If image not PIL Image
        ValueError: If the region does not fit the display size
    """
    if not hasattr(image, "crop"):
        raise TypeError(f"Expected PIL Image, got {type(image)}")

    display_w, display_h = display_size
    if not region.fits(display_w, display_h):
        raise ValueError(f"Crop region {region} exceeds display size {display_size}")

    natural_size = image.size
    box = region.to_source_box(display_size, natural_size)
    out_w, out_h = region.output_size(display_size, natural_size)

    int_box = tuple(int(round(v)) for v in box)
    exact = all(abs(v - iv) < 1e-9 for v, iv in zip(box, int_box))
    if exact and (int_box[2] - int_box[0], int_box[3] - int_box[1]) == (out_w, out_h):
        return image.crop(int_box)

    # Clip to the source in case float scaling overshoots by a fraction
    src_w, src_h = natural_size
    box = (
        max(0.0, box[0]),
        max(0.0, box[1]),
        min(float(src_w), box[2]),
        min(float(src_h), box[3]),
    )
    return image.resize((out_w, out_h), RESAMPLE_HIGH_QUALITY, box=box)


class Cropper:
    """
    Interactive square cropper for one RawCapture.

    The region starts as the largest centered square and every interaction
    keeps it square and inside the displayed image. The RawCapture is kept
    after a failed confirmation so the visitor can retry without recapturing.
    """

    def __init__(
        self,
        raw: RawCapture,
        display_max_size: Size = (DEFAULT_DISPLAY_MAX_WIDTH, DEFAULT_DISPLAY_MAX_HEIGHT),
        quality: float = DEFAULT_OUTPUT_QUALITY,
        display_size: Optional[Size] = None,
    ):
        """
        Args:
            raw: Capture to crop
            display_max_size: Viewport the image is fitted into
            quality: JPEG quality of the cropped output
            display_size: Explicit on-screen size, overriding the fit

        Raises:
            ProcessingError: If the capture cannot be decoded
        """
        self.raw = raw
        self.quality = quality
        self._image = decode_image(raw)
        self.display_size: Size = display_size or fit_display_size(self._image.size, display_max_size)
        self.region: Optional[CropRegion] = None
        self._guard = InFlightGuard("Crop")
        self.on_image_loaded()

    @property
    def natural_size(self) -> Size:
        return self._image.size

    @property
    def scale(self) -> Tuple[float, float]:
        """(scaleX, scaleY) from display to source pixels."""
        return (
            self.natural_size[0] / self.display_size[0],
            self.natural_size[1] / self.display_size[1],
        )

    @property
    def busy(self) -> bool:
        return self._guard.busy

    def on_image_loaded(self) -> CropRegion:
        """Reset the region to the centered square."""
        self.region = CropRegion.centered(*self.display_size)
        return self.region

    def set_region(self, region: CropRegion) -> CropRegion:
        """Accept a region from the UI, clamped to the display."""
        self.region = region.clamped(*self.display_size)
        return self.region

    def clear_region(self) -> None:
        self.region = None

    def move(self, dx: float, dy: float) -> CropRegion:
        return self.set_region(self._require_region().moved(dx, dy, *self.display_size))

    def resize(self, new_size: float, anchor: str = ANCHOR_TOP_LEFT) -> CropRegion:
        return self.set_region(
            self._require_region().resized(new_size, *self.display_size, anchor=anchor)
        )

    def drag(self, start_x: float, start_y: float, end_x: float, end_y: float) -> CropRegion:
        return self.set_region(
            CropRegion.from_drag(start_x, start_y, end_x, end_y, *self.display_size)
        )

    def crop_image(self) -> Any:
        """Decoded crop for the current region."""
        return crop_to_region(self._image, self._require_region(), self.display_size)

    def confirm(self) -> CroppedImage:
        """
        Rasterize the current region into a CroppedImage.

        Raises:
            PipelineStateError: If no region is defined
            CaptureInProgressError: If a confirmation is already running
            ProcessingError: If cropping or encoding fails
        """
        with self._guard.hold():
            region = self._require_region()
            try:
                cropped = crop_to_region(self._image, region, self.display_size)
                result = to_buffer(cropped, self.quality, CroppedImage)
            except KioskError:
                raise
            except (OSError, ValueError, MemoryError) as e:
                raise ProcessingError(
                    f"Failed to crop image: {e}", user_message="Failed to process crop"
                ) from e

        logger.info(
            f"Crop confirmed: display region ({region.x:.1f}, {region.y:.1f}, {region.size:.1f}) "
            f"-> {result.width}x{result.height}"
        )
        return result

    def release(self) -> None:
        """Free the decoded source image."""
        self._image = None
        self.region = None

    def _require_region(self) -> CropRegion:
        if self.region is None:
            raise PipelineStateError(
                "No crop region defined", user_message="Please adjust the crop area"
            )
        if self._image is None:
            raise PipelineStateError("Cropper was released")
        return self.region
