"""
ImageEditingLib - Core image handling

This module provides colors, size/position parsing, alpha scale
conversions, file formats and the ImageResource buffer wrapper.
"""

from Imagoid_Libs.ImageEditingLib.color import Color, normalise_number
from Imagoid_Libs.ImageEditingLib.geometry_parsing import (
    round_half_up,
    parse_size,
    parse_position,
    to_percentage,
)
from Imagoid_Libs.ImageEditingLib.image_formats import (
    EncodeOptions,
    encode_image,
    format_from_path,
    get_supported_extensions,
    is_supported_format,
    normalize_format,
)
from Imagoid_Libs.ImageEditingLib.image_resource import ImageResource

__all__ = [
    "Color",
    "normalise_number",
    "round_half_up",
    "parse_size",
    "parse_position",
    "to_percentage",
    "EncodeOptions",
    "encode_image",
    "format_from_path",
    "get_supported_extensions",
    "is_supported_format",
    "normalize_format",
    "ImageResource",
]
