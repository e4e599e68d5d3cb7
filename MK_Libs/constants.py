"""
Constants and configuration defaults for the museum kiosk.

This module centralizes the constant values, magic numbers, and default
settings used by the capture, crop and enhancement stages.
"""

# Encoding
JPEG_MIME_TYPE = "image/jpeg"
JPEG_FORMAT = "JPEG"
DEFAULT_CAPTURE_QUALITY = 0.9
DEFAULT_OUTPUT_QUALITY = 0.95

# Camera
FACING_USER = "user"
FACING_ENVIRONMENT = "environment"
FACING_MODES = (FACING_USER, FACING_ENVIRONMENT)
DEFAULT_FACING_MODE = FACING_ENVIRONMENT
DEFAULT_CAMERA_WIDTH = 1920
DEFAULT_CAMERA_HEIGHT = 1080
DEFAULT_CAMERA_DEVICE_INDICES = {FACING_ENVIRONMENT: 0, FACING_USER: 1}
DEFAULT_CAMERA_READY_TIMEOUT = 5.0
CAMERA_READY_POLL_INTERVAL = 0.05

# File selection
MB = 1024 * 1024
DEFAULT_MAX_UPLOAD_BYTES = 5 * MB
EXTENDED_MAX_UPLOAD_BYTES = 25 * MB
BASE_MIME_TYPES = ("image/jpeg", "image/png", "image/webp")
EXTENDED_MIME_TYPES = ("image/gif", "image/heic", "image/heif")

# Crop viewport
DEFAULT_DISPLAY_MAX_WIDTH = 1080
DEFAULT_DISPLAY_MAX_HEIGHT = 1080

# Enhancement catalog ids, in catalog order
FILTER_BACKGROUND = "background"
FILTER_CONTRAST = "contrast"
FILTER_SHARPEN = "sharpen"
FILTER_AUTO = "auto"
FILTER_CATALOG_ORDER = (FILTER_BACKGROUND, FILTER_CONTRAST, FILTER_SHARPEN, FILTER_AUTO)

# Enhancement defaults
DEFAULT_BACKGROUND_THRESHOLD = 240
DEFAULT_CONTRAST_AMOUNT = 1.3
DEFAULT_SHARPEN_AMOUNT = 0.5
LUMA_WEIGHTS = (0.299, 0.587, 0.114)

# Design categories
CATEGORY_MEN = "men"
CATEGORY_WOMEN = "women"
CATEGORY_OTHERS = "others"
DESIGN_CATEGORIES = (CATEGORY_MEN, CATEGORY_WOMEN, CATEGORY_OTHERS)
REQUIRED_CATEGORIES = (CATEGORY_MEN, CATEGORY_WOMEN)
DEFAULT_CUSTOM_CATEGORY_NAME = "Custom Design"

# Upload
DEFAULT_UPLOAD_URL = "http://localhost:3000/api/images"
DEFAULT_UPLOAD_TIMEOUT = 60.0
UPLOAD_FILENAME_TEMPLATE = "design-{index}.jpg"

# Config file
CONFIG_FILE_NAME = "kiosk_config.json"
