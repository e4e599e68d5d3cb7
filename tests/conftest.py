"""
Pytest configuration and shared fixtures for museum kiosk tests.

This module provides shared test fixtures and configuration
used across multiple test modules.
"""

import numpy as np
import pytest
from PIL import Image

from MK_Libs.ImageBufferLib.buffer_ops import to_buffer
from MK_Libs.ImageBufferLib.image_models import RawCapture
from MK_Libs.kiosk_config import KioskConfig


class FakeVideoCapture:
    """
    Stand-in for cv2.VideoCapture.

    Delivers ``warmup_frames`` empty reads before returning real frames,
    like a camera that is still starting up.
    """

    def __init__(self, index, opened=True, width=640, height=480, warmup_frames=0):
        self.index = index
        self.opened = opened
        self.width = width
        self.height = height
        self.warmup_frames = warmup_frames
        self.properties = {}
        self.reads = 0
        self.released = False

    def isOpened(self):
        return self.opened

    def set(self, prop, value):
        self.properties[prop] = value
        return True

    def read(self):
        self.reads += 1
        if self.released or self.reads <= self.warmup_frames:
            return False, None
        frame = np.zeros((self.height, self.width, 3), dtype=np.uint8)
        frame[..., 0] = 200  # blue in BGR
        frame[..., 2] = 30
        return True, frame

    def release(self):
        self.released = True


@pytest.fixture
def kiosk_config():
    """Default configuration with a short camera timeout."""
    return KioskConfig(camera_ready_timeout=0.5)


@pytest.fixture
def gradient_image():
    """
    Provide a 64x48 RGB image with horizontal and vertical gradients.

    Returns:
        PIL Image in RGB mode
    """
    width, height = 64, 48
    xs = np.linspace(0, 255, width, dtype=np.float64)
    ys = np.linspace(0, 255, height, dtype=np.float64)
    pixels = np.zeros((height, width, 3), dtype=np.uint8)
    pixels[..., 0] = xs[np.newaxis, :].astype(np.uint8)
    pixels[..., 1] = ys[:, np.newaxis].astype(np.uint8)
    pixels[..., 2] = 128
    return Image.fromarray(pixels)


@pytest.fixture
def make_raw_capture():
    """
    Factory fixture building a JPEG RawCapture.

    Returns:
        Callable (width, height, color=None, source='camera') -> RawCapture.
        Without a color the image is filled with a deterministic pattern.
    """
    def _make(width, height, color=None, source="camera"):
        if color is not None:
            img = Image.new("RGB", (width, height), color)
        else:
            rng = np.random.default_rng(width * 1000 + height)
            pixels = rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)
            img = Image.fromarray(pixels)
        return to_buffer(img, 0.9, RawCapture, source=source)

    return _make


@pytest.fixture
def fake_capture_factory():
    """
    Factory fixture producing FakeVideoCapture objects.

    The returned callable records every capture it opens in ``.opened``.
    """
    def _factory(**kwargs):
        def _open(index):
            capture = FakeVideoCapture(index, **kwargs)
            _open.opened.append(capture)
            return capture

        _open.opened = []
        return _open

    return _factory


@pytest.fixture
def png_bytes():
    """Encode a PIL image as PNG bytes."""
    from io import BytesIO

    def _encode(img):
        buffer = BytesIO()
        img.save(buffer, format="PNG")
        return buffer.getvalue()

    return _encode
