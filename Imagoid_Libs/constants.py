"""
Constants and configuration values for Imagoid.

This module centralizes all constant values, magic numbers, and
configuration settings used throughout the library.
"""

from PIL import Image

# Supported file formats (Pillow format names)
FORMAT_PNG = "PNG"
FORMAT_JPEG = "JPEG"
FORMAT_GIF = "GIF"
SUPPORTED_FORMATS = {FORMAT_PNG, FORMAT_JPEG, FORMAT_GIF}
DEFAULT_OUTPUT_FORMAT = FORMAT_JPEG

# Extension -> format lookup
FORMAT_EXTENSIONS = {
    "png": FORMAT_PNG,
    "jpg": FORMAT_JPEG,
    "jpeg": FORMAT_JPEG,
    "gif": FORMAT_GIF,
}

# JPEG quality levels (0-100)
QUALITY_LOW = 60
QUALITY_MEDIUM = 75
QUALITY_HIGH = 85
QUALITY_PERFECT = 100

# PNG compression levels (0-9)
COMPRESSION_FAST = 1
COMPRESSION_STANDARD = 6
COMPRESSION_BEST = 9

# Native alpha scale: 0 = fully opaque, 127 = fully transparent
NATIVE_ALPHA_MAX = 127
PIL_ALPHA_MAX = 255

# Buffer modes
TRUECOLOR_MODE = "RGBA"
PALETTE_MODE = "P"
MAX_PALETTE_COLORS = 256
DEFAULT_PALETTE_COLORS = 255

# GIF encoding keeps pixels at or above this Pillow alpha opaque
GIF_ALPHA_THRESHOLD = 128

# Smooth resampling for every resize (never nearest-neighbour)
RESAMPLE_FILTER = Image.Resampling.BILINEAR

# Colors whose alpha is below this are considered equal when comparing
COLOR_EPSILON = 1 / 256

# Keyword aliases understood by position specs
POSITION_KEYWORDS = {
    "left": "0",
    "top": "0",
    "right": "100%",
    "bottom": "100%",
    "center": "50%",
    "middle": "50%",
}

# Transformation type names used in dict configs
TRANSFORMATION_RESIZE = "resize"
TRANSFORMATION_ALPHA = "alpha"
TRANSFORMATION_PASTE = "paste"
TRANSFORMATION_CHAIN = "chain"

# Dict config field names
FIELD_TYPE = "type"
FIELD_PARAMS = "params"
