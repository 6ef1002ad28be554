"""
Constants and configuration values for Bulk Cropper.

This module centralizes all constant values, thresholds and
default settings used throughout the application.
"""

# Background classification
ALPHA_THRESHOLD = 10
DETECT_COLOR_THRESHOLD = 35.0

# Region detection
MIN_REGION_SPAN = 5

# Background removal
MATTE_COLOR_THRESHOLD = 20.0
MIN_FEATHER = 0
MAX_FEATHER = 100
DEFAULT_FEATHER = 25
DEFAULT_BACKGROUND_COLOR = "#ffffff"

# Auto detect modes
DETECT_MODE_TRANSPARENT = "transparent"
DETECT_MODE_COLOR = "color"
DETECT_MODES = (DETECT_MODE_TRANSPARENT, DETECT_MODE_COLOR)

# Crop placement
INITIAL_CROP_FRACTION = 0.5
ADDED_CROP_FRACTION = 0.25
MIN_CROP_SIZE = 20

# Export
ARCHIVE_SETTLE_DELAY_SECONDS = 0.5
DEFAULT_ARCHIVE_BASE_NAME = "cropped-images"
ARCHIVE_SUFFIX = "-crop"
ARCHIVE_EXTENSION = ".zip"
DEFAULT_OUTPUT_FORMAT = "PNG"
OUTPUT_FILE_EXTENSION = ".png"

# Animation preview
PREVIEW_FPS = 10

# Previews
DEFAULT_VIEWPORT_SIZE = (128, 128)

# Supported file formats
SUPPORTED_STANDARD_IMAGES = {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".tiff", ".webp"}

# Config file sections
CONFIG_SECTION_AUTO_DETECT = "auto_detect"
CONFIG_SECTION_BACKGROUND_REMOVAL = "background_removal"
CONFIG_SECTION_EXPORT = "export"
