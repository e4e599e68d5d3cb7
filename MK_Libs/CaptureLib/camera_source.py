"""
Camera capture source.

This module wraps an OpenCV video device as a scoped resource. The device
is opened with a preferred facing mode and ideal resolution, becomes ready
once it delivers its first real frame, and is always released on exit.

Classes:
    CameraSource: Live camera stream that produces RawCapture buffers

Example:
    >>> with CameraSource(config) as camera:
    ...     raw = camera.capture()
"""

import logging
import time
from typing import Any, Callable, Optional

import cv2
import numpy as np

from MK_Libs.constants import CAMERA_READY_POLL_INTERVAL, FACING_MODES, FACING_USER, FACING_ENVIRONMENT
from MK_Libs.errors import DeviceError, PipelineStateError
from MK_Libs.ImageBufferLib.buffer_ops import to_buffer
from MK_Libs.ImageBufferLib.image_models import RawCapture
from MK_Libs.in_flight import InFlightGuard
from MK_Libs.kiosk_config import KioskConfig
from MK_Libs.pillow_compat import Image

logger = logging.getLogger(__name__)

# Factory returning an object with the cv2.VideoCapture interface
CaptureFactory = Callable[[int], Any]


class CameraSource:
    """
    Live camera stream.

    The stream holds the camera device exclusively between :meth:`open` and
    :meth:`release`. Use it as a context manager so the device is released
    on every exit path.
    """

    def __init__(
        self,
        config: Optional[KioskConfig] = None,
        capture_factory: Optional[CaptureFactory] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            config: Kiosk configuration (defaults if None)
            capture_factory: Device opener, cv2.VideoCapture by default
            clock: Monotonic clock used for the ready timeout
            sleep: Sleep function used while polling for readiness
        """
        self.config = config or KioskConfig()
        self._capture_factory = capture_factory or cv2.VideoCapture
        self._clock = clock
        self._sleep = sleep
        self._facing_mode = self.config.facing_mode
        self._capture: Any = None
        self._ready = False
        self._guard = InFlightGuard("Capture")

    def __enter__(self) -> "CameraSource":
        self.open()
        try:
            self.wait_until_ready()
        except DeviceError:
            self.release()
            raise
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    @property
    def facing_mode(self) -> str:
        return self._facing_mode

    @property
    def is_open(self) -> bool:
        return self._capture is not None

    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def busy(self) -> bool:
        return self._guard.busy

    def open(self) -> None:
        """
        Acquire the camera for the current facing mode.

        Any previously open stream is released first.

        Raises:
            DeviceError: If the device cannot be opened
        """
        self.release()

        device_index = self.config.camera_device_indices.get(self._facing_mode)
        if device_index is None:
            raise DeviceError(f"No camera configured for facing mode '{self._facing_mode}'")

        try:
            capture = self._capture_factory(device_index)
        except cv2.error as e:
            raise DeviceError(f"Failed to open camera {device_index}: {e}") from e

        if capture is None or not capture.isOpened():
            if capture is not None:
                capture.release()
            raise DeviceError(f"Camera {device_index} is unavailable or permission was denied")

        capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.camera_ideal_width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.camera_ideal_height)

        self._capture = capture
        self._ready = False
        logger.info(f"Opened camera {device_index} ({self._facing_mode})")

    def wait_until_ready(self, timeout: Optional[float] = None) -> None:
        """
        Block until the stream delivers a real frame.

        Raises:
            PipelineStateError: If the stream is not open
            DeviceError: If no frame arrives before the timeout
        """
        if self._capture is None:
            raise PipelineStateError("Camera is not open")

        timeout = self.config.camera_ready_timeout if timeout is None else timeout
        deadline = self._clock() + timeout

        while True:
            ok, frame = self._capture.read()
            if ok and _is_frame(frame):
                self._ready = True
                logger.debug(f"Camera ready at {frame.shape[1]}x{frame.shape[0]}")
                return
            if self._clock() >= deadline:
                raise DeviceError(f"Camera produced no frame within {timeout:.1f}s")
            self._sleep(CAMERA_READY_POLL_INTERVAL)

    def read_frame(self) -> np.ndarray:
        """
        Read one BGR frame for the live preview.

        Raises:
            PipelineStateError: If the stream is not ready
            DeviceError: If the device stops delivering frames
        """
        if self._capture is None or not self._ready:
            raise PipelineStateError("Camera is not ready", user_message="Starting camera...")

        ok, frame = self._capture.read()
        if not ok or not _is_frame(frame):
            raise DeviceError("Camera stopped delivering frames")
        return frame

    def capture(self) -> RawCapture:
        """
        Take a still at the stream's native frame size.

        Raises:
            CaptureInProgressError: If a capture is already running
            PipelineStateError: If the stream is not ready
            DeviceError: If no frame can be read
            ProcessingError: If encoding fails
        """
        with self._guard.hold():
            frame = self.read_frame()
            image = Image.fromarray(cv2.cvtColor(frame, cv2.COLOR_BGR2RGB))
            raw = to_buffer(image, self.config.capture_quality, RawCapture, source="camera")

        logger.info(f"Captured {raw.width}x{raw.height} frame ({raw.byte_size} bytes)")
        return raw

    def switch_facing(self, facing_mode: Optional[str] = None) -> str:
        """
        Restart the stream with another camera.

        Args:
            facing_mode: 'user' or 'environment'; toggles when None

        Returns:
            The new facing mode

        Raises:
            ValueError: If facing_mode is unknown
            DeviceError: If the other camera cannot be opened
        """
        if facing_mode is None:
            facing_mode = FACING_USER if self._facing_mode == FACING_ENVIRONMENT else FACING_ENVIRONMENT

        if facing_mode not in FACING_MODES:
            raise ValueError(f"Unsupported facing_mode: {facing_mode}")

        self.release()
        self._facing_mode = facing_mode
        self.open()
        try:
            self.wait_until_ready()
        except DeviceError:
            self.release()
            raise
        return self._facing_mode

    def release(self) -> None:
        """Release the camera device. Safe to call repeatedly."""
        if self._capture is not None:
            self._capture.release()
            self._capture = None
            logger.debug("Camera released")
        self._ready = False


def _is_frame(frame: Any) -> bool:
    return frame is not None and getattr(frame, "size", 0) > 0 and frame.ndim == 3
