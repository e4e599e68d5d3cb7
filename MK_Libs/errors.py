"""
Error taxonomy for the kiosk capture pipeline.

Every error carries a ``user_message`` that is safe to show on the kiosk
screen. Each category also derives from the closest builtin exception so
callers catching builtins keep working.

Classes:
    KioskError: Base class for all recoverable kiosk errors
    DeviceError: Camera unavailable, permission denied, no frame
    UploadValidationError: Rejected file type or size
    ProcessingError: Decode, encode or filter failure
    PipelineStateError: Operation not valid in the current state
    CaptureInProgressError: In-flight guard rejected a second invocation
    UploadError: Collection upload failed
"""

from typing import Optional


class KioskError(Exception):
    """Base class for recoverable kiosk errors."""

    default_message = "Something went wrong. Please try again."

    def __init__(self, message: str, user_message: Optional[str] = None):
        super().__init__(message)
        self.user_message = user_message or self.default_message


class DeviceError(KioskError, IOError):
    default_message = "Could not access camera. Please check permissions and try again."


class UploadValidationError(KioskError, ValueError):
    default_message = "This file cannot be used. Please choose another image."


class ProcessingError(KioskError, RuntimeError):
    default_message = "Failed to process image. Please try again."


class PipelineStateError(KioskError, RuntimeError):
    default_message = "Please finish the current step first."


class CaptureInProgressError(PipelineStateError):
    default_message = "Still working on the previous action."


class UploadError(KioskError, RuntimeError):
    default_message = "Upload failed. Please try again."
