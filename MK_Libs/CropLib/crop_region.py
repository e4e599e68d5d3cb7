"""
Square crop region in display space.

A CropRegion is stored as a top-left offset and a single side length, so a
region with width != height cannot be represented. Every interaction returns
a new region clamped inside the displayed image.

Classes:
    CropRegion: Square region in display-space pixels

Functions:
    fit_display_size: On-screen size of an image inside a viewport
    round_half_up: Round a non-negative pixel measure to the nearest integer
"""

import math
from dataclasses import dataclass
from typing import Tuple

from MK_Libs.ImageBufferLib.image_models import Size

Box = Tuple[float, float, float, float]

# Fixed corner while resizing from the opposite handle
ANCHOR_TOP_LEFT = "top_left"
ANCHOR_TOP_RIGHT = "top_right"
ANCHOR_BOTTOM_LEFT = "bottom_left"
ANCHOR_BOTTOM_RIGHT = "bottom_right"
ANCHOR_CENTER = "center"
ANCHORS = (
    ANCHOR_TOP_LEFT,
    ANCHOR_TOP_RIGHT,
    ANCHOR_BOTTOM_LEFT,
    ANCHOR_BOTTOM_RIGHT,
    ANCHOR_CENTER,
)

MIN_REGION_SIZE = 1.0

# Float slack when checking the far edges
EDGE_TOLERANCE = 1e-6


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def fit_display_size(natural_size: Size, max_display_size: Size) -> Size:
    """
    Size at which an image is shown inside a viewport.

    The image is scaled down uniformly to fit, never scaled up.

    Args:
        natural_size: (width, height) of the source image
        max_display_size: (width, height) of the viewport

    Returns:
        (display_width, display_height), each at least 1

    Raises:
        ValueError: If any dimension is not positive
    """
    natural_w, natural_h = natural_size
    max_w, max_h = max_display_size
    if min(natural_w, natural_h, max_w, max_h) <= 0:
        raise ValueError(
            f"Sizes must be positive, got natural={natural_size} display={max_display_size}"
        )

    scale = min(1.0, max_w / natural_w, max_h / natural_h)
    return (
        max(1, round_half_up(natural_w * scale)),
        max(1, round_half_up(natural_h * scale)),
    )


@dataclass(frozen=True)
class CropRegion:
    """Square crop region.

    Attributes:
        x: Left offset in display pixels
        y: Top offset in display pixels
        size: Side length in display pixels
    """
    x: float
    y: float
    size: float

    def __post_init__(self):
        if self.size <= 0:
            raise ValueError(f"size must be positive, got {self.size}")
        if self.x < 0 or self.y < 0:
            raise ValueError(f"offset must be non-negative, got ({self.x}, {self.y})")

    @property
    def width(self) -> float:
        return self.size

    @property
    def height(self) -> float:
        return self.size

    @classmethod
    def centered(cls, display_width: float, display_height: float) -> "CropRegion":
        """Largest centered square that fits the displayed image."""
        if display_width <= 0 or display_height <= 0:
            raise ValueError(
                f"Display size must be positive, got {display_width}x{display_height}"
            )
        size = min(display_width, display_height)
        return cls(
            x=(display_width - size) / 2,
            y=(display_height - size) / 2,
            size=size,
        )

    @classmethod
    def from_drag(
        cls,
        start_x: float,
        start_y: float,
        end_x: float,
        end_y: float,
        display_width: float,
        display_height: float,
    ) -> "CropRegion":
        """
        Square drawn by dragging from a start point to an end point.

        The side is the shorter of the two drag extents, anchored at the
        start point and growing towards the end point.
        """
        start_x = min(max(start_x, 0.0), display_width)
        start_y = min(max(start_y, 0.0), display_height)
        end_x = min(max(end_x, 0.0), display_width)
        end_y = min(max(end_y, 0.0), display_height)

        size = max(min(abs(end_x - start_x), abs(end_y - start_y)), MIN_REGION_SIZE)
        x = start_x if end_x >= start_x else start_x - size
        y = start_y if end_y >= start_y else start_y - size
        return cls._clamped(x, y, size, display_width, display_height)

    @classmethod
    def _clamped(
        cls,
        x: float,
        y: float,
        size: float,
        display_width: float,
        display_height: float,
    ) -> "CropRegion":
        size = min(max(size, MIN_REGION_SIZE), display_width, display_height)
        x = min(max(x, 0.0), display_width - size)
        y = min(max(y, 0.0), display_height - size)
        return cls(x=x, y=y, size=size)

    def fits(self, display_width: float, display_height: float) -> bool:
        """True if the region lies inside the displayed image."""
        return (
            self.x >= 0
            and self.y >= 0
            and self.x + self.size <= display_width + EDGE_TOLERANCE
            and self.y + self.size <= display_height + EDGE_TOLERANCE
        )

    def clamped(self, display_width: float, display_height: float) -> "CropRegion":
        return self._clamped(self.x, self.y, self.size, display_width, display_height)

    def moved(
        self,
        dx: float,
        dy: float,
        display_width: float,
        display_height: float,
    ) -> "CropRegion":
        """Translate by (dx, dy), stopping at the image edges."""
        return self._clamped(self.x + dx, self.y + dy, self.size, display_width, display_height)

    def resized(
        self,
        new_size: float,
        display_width: float,
        display_height: float,
        anchor: str = ANCHOR_TOP_LEFT,
    ) -> "CropRegion":
        """
        Resize while keeping ``anchor`` fixed.

        The new side is limited so the square stays inside the image with the
        anchor corner (or center) where it was.

        Raises:
            ValueError: If anchor is unknown
        """
        if anchor not in ANCHORS:
            raise ValueError(f"Unknown anchor: {anchor}. Valid anchors: {', '.join(ANCHORS)}")

        left, top = self.x, self.y
        right, bottom = self.x + self.size, self.y + self.size

        if anchor == ANCHOR_TOP_LEFT:
            limit = min(display_width - left, display_height - top)
        elif anchor == ANCHOR_TOP_RIGHT:
            limit = min(right, display_height - top)
        elif anchor == ANCHOR_BOTTOM_LEFT:
            limit = min(display_width - left, bottom)
        elif anchor == ANCHOR_BOTTOM_RIGHT:
            limit = min(right, bottom)
        else:
            cx, cy = left + self.size / 2, top + self.size / 2
            limit = 2 * min(cx, cy, display_width - cx, display_height - cy)

        size = min(max(new_size, MIN_REGION_SIZE), max(limit, MIN_REGION_SIZE))

        if anchor == ANCHOR_TOP_LEFT:
            x, y = left, top
        elif anchor == ANCHOR_TOP_RIGHT:
            x, y = right - size, top
        elif anchor == ANCHOR_BOTTOM_LEFT:
            x, y = left, bottom - size
        elif anchor == ANCHOR_BOTTOM_RIGHT:
            x, y = right - size, bottom - size
        else:
            x, y = cx - size / 2, cy - size / 2

        return self._clamped(x, y, size, display_width, display_height)

    def to_source_box(self, display_size: Size, natural_size: Size) -> Box:
        """
        Map the region onto the full-resolution source.

        Returns:
            (left, top, right, bottom) in source pixels, using
            scaleX = naturalWidth / displayWidth and
            scaleY = naturalHeight / displayHeight
        """
        display_w, display_h = display_size
        natural_w, natural_h = natural_size
        scale_x = natural_w / display_w
        scale_y = natural_h / display_h
        left = self.x * scale_x
        top = self.y * scale_y
        return (left, top, left + self.size * scale_x, top + self.size * scale_y)

    def output_size(self, display_size: Size, natural_size: Size) -> Size:
        """Raster size of the cropped output at source resolution."""
        display_w, display_h = display_size
        natural_w, natural_h = natural_size
        return (
            max(1, round_half_up(self.size * natural_w / display_w)),
            max(1, round_half_up(self.size * natural_h / display_h)),
        )
