"""
Kiosk configuration storage.

This module holds the tunable policy values of the kiosk (encode qualities,
camera constraints, upload ceilings, filter amounts) and persists them as a
small JSON file next to the application.

Classes:
    KioskConfig: Configuration dataclass with validation

Functions:
    load_config: Load a configuration file, falling back to defaults
    save_config: Save a configuration to disk
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Tuple

from MK_Libs.constants import (
    BASE_MIME_TYPES,
    DEFAULT_BACKGROUND_THRESHOLD,
    DEFAULT_CAMERA_DEVICE_INDICES,
    DEFAULT_CAMERA_HEIGHT,
    DEFAULT_CAMERA_READY_TIMEOUT,
    DEFAULT_CAMERA_WIDTH,
    DEFAULT_CAPTURE_QUALITY,
    DEFAULT_CONTRAST_AMOUNT,
    DEFAULT_DISPLAY_MAX_HEIGHT,
    DEFAULT_DISPLAY_MAX_WIDTH,
    DEFAULT_FACING_MODE,
    DEFAULT_MAX_UPLOAD_BYTES,
    DEFAULT_OUTPUT_QUALITY,
    DEFAULT_SHARPEN_AMOUNT,
    DEFAULT_UPLOAD_TIMEOUT,
    DEFAULT_UPLOAD_URL,
    EXTENDED_MIME_TYPES,
    FACING_MODES,
)

logger = logging.getLogger(__name__)


@dataclass
class KioskConfig:
    """Tunable kiosk policy.

    Attributes:
        capture_quality: JPEG quality (0-1] for camera captures
        output_quality: JPEG quality (0-1] for crop and enhancement output
        camera_ideal_width: Preferred camera frame width
        camera_ideal_height: Preferred camera frame height
        facing_mode: Preferred camera ('user' or 'environment')
        camera_device_indices: OpenCV device index per facing mode
        camera_ready_timeout: Seconds to wait for the first real frame
        max_upload_bytes: Ceiling for gallery files
        allow_extended_mime_types: Also accept GIF/HEIC/HEIF
        background_threshold: Channel value above which a pixel is whitened
        contrast_amount: Brighten filter multiplier
        sharpen_amount: Enhance-details kernel strength
        display_max_width: Width of the crop viewport
        display_max_height: Height of the crop viewport
        upload_url: Collection upload endpoint
        upload_timeout: Seconds per upload request
    """
    capture_quality: float = DEFAULT_CAPTURE_QUALITY
    output_quality: float = DEFAULT_OUTPUT_QUALITY
    camera_ideal_width: int = DEFAULT_CAMERA_WIDTH
    camera_ideal_height: int = DEFAULT_CAMERA_HEIGHT
    facing_mode: str = DEFAULT_FACING_MODE
    camera_device_indices: Dict[str, int] = field(
        default_factory=lambda: dict(DEFAULT_CAMERA_DEVICE_INDICES)
    )
    camera_ready_timeout: float = DEFAULT_CAMERA_READY_TIMEOUT
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    allow_extended_mime_types: bool = True
    background_threshold: int = DEFAULT_BACKGROUND_THRESHOLD
    contrast_amount: float = DEFAULT_CONTRAST_AMOUNT
    sharpen_amount: float = DEFAULT_SHARPEN_AMOUNT
    display_max_width: int = DEFAULT_DISPLAY_MAX_WIDTH
    display_max_height: int = DEFAULT_DISPLAY_MAX_HEIGHT
    upload_url: str = DEFAULT_UPLOAD_URL
    upload_timeout: float = DEFAULT_UPLOAD_TIMEOUT

    def __post_init__(self):
        """Validate configuration values."""
        for name in ("capture_quality", "output_quality"):
            value = getattr(self, name)
            if not (0 < value <= 1):
                raise ValueError(f"{name} must be 0 < q <= 1, got {value}")

        for name in (
            "camera_ideal_width",
            "camera_ideal_height",
            "max_upload_bytes",
            "display_max_width",
            "display_max_height",
        ):
            if int(getattr(self, name)) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")

        if self.facing_mode not in FACING_MODES:
            raise ValueError(f"Unsupported facing_mode: {self.facing_mode}")

        if self.camera_ready_timeout <= 0:
            raise ValueError(
                f"camera_ready_timeout must be positive, got {self.camera_ready_timeout}"
            )

        if not (0 <= self.background_threshold <= 255):
            raise ValueError(
                f"background_threshold must be 0-255, got {self.background_threshold}"
            )

    @property
    def allowed_mime_types(self) -> Tuple[str, ...]:
        """MIME types accepted for gallery files."""
        if self.allow_extended_mime_types:
            return BASE_MIME_TYPES + EXTENDED_MIME_TYPES
        return BASE_MIME_TYPES

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KioskConfig":
        """Create from dictionary, ignoring unknown keys."""
        filtered = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**filtered)


def load_config(config_path: Path) -> KioskConfig:
    """
    Load kiosk configuration from a JSON file.

    Args:
        config_path: Path to the configuration file

    Returns:
        KioskConfig with file values applied over defaults. A missing file
        yields the defaults.

    Raises:
        ValueError: If the file is not a JSON object or holds invalid values
    """
    config_path = Path(config_path)
    if not config_path.exists():
        logger.debug(f"No config at {config_path}, using defaults")
        return KioskConfig()

    with config_path.open("r", encoding="utf-8") as handle:
        data = json.load(handle)

    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a JSON object: {config_path}")

    logger.info(f"Loaded kiosk config from {config_path}")
    return KioskConfig.from_dict(data)


def save_config(config: KioskConfig, config_path: Path) -> None:
    """Save configuration as pretty-printed JSON."""
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with config_path.open("w", encoding="utf-8") as handle:
        json.dump(config.to_dict(), handle, indent=2)
