"""
Image file formats for Imagoid.

Only PNG, JPEG and GIF are read and written. This module resolves format
names, guesses output formats and encodes buffers to bytes.

Classes:
    EncodeOptions: Encoder settings for one save

Functions:
    get_supported_extensions: Get list of supported file extensions
    normalize_format: Map a format name or extension to a Pillow format name
    format_from_path: Guess a format from a file extension
    is_supported_format: Check a file path's extension
    encode_image: Encode a buffer to PNG, JPEG or GIF bytes
"""

import io
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from PIL import Image

from Imagoid_Libs.constants import (
    COMPRESSION_STANDARD,
    DEFAULT_PALETTE_COLORS,
    FORMAT_EXTENSIONS,
    FORMAT_GIF,
    FORMAT_JPEG,
    FORMAT_PNG,
    GIF_ALPHA_THRESHOLD,
    PALETTE_MODE,
    QUALITY_HIGH,
    SUPPORTED_FORMATS,
    TRUECOLOR_MODE,
)
from Imagoid_Libs.errors import EncodeError

logger = logging.getLogger(__name__)


def get_supported_extensions() -> List[str]:
    """
    Get list of supported file extensions.

    Returns:
        List of extensions with leading dot (e.g., ['.gif', '.jpeg', ...])
    """
    return sorted(f".{ext}" for ext in FORMAT_EXTENSIONS)


def normalize_format(image_format: Optional[str]) -> Optional[str]:
    """
    Map a format name or extension ("jpg", "PNG", ".gif") to a Pillow format name.

    Args:
        image_format: Format name, extension or None

    Returns:
        "PNG", "JPEG", "GIF" or None if image_format is empty or unsupported
    """
    if not image_format:
        return None
    key = str(image_format).strip().lstrip(".").lower()
    if key in FORMAT_EXTENSIONS:
        return FORMAT_EXTENSIONS[key]
    upper = key.upper()
    if upper in SUPPORTED_FORMATS:
        return upper
    return None


def format_from_path(path: Union[str, Path, None]) -> Optional[str]:
    """Guess the format from a path's extension, or None."""
    if not path:
        return None
    return normalize_format(Path(path).suffix)


def is_supported_format(file_path: Union[str, Path]) -> bool:
    """Check if a file path has a PNG, JPEG or GIF extension."""
    return format_from_path(file_path) is not None


@dataclass
class EncodeOptions:
    """Encoder settings for a single save.

    Attributes:
        image_format: "PNG", "JPEG" or "GIF"
        quality: JPEG quality 0-100 (None = 85), PNG compression 0-9 (None = 6).
                 Ignored for GIF.
    """
    image_format: str = FORMAT_JPEG
    quality: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EncodeOptions":
        """Create from dictionary."""
        filtered = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**filtered)

    def get_save_kwargs(self) -> Dict[str, Any]:
        """
        Get PIL Image.save() kwargs for this format.

        Raises:
            EncodeError: If the format is not PNG, JPEG or GIF
        """
        image_format = normalize_format(self.image_format)
        if image_format is None:
            raise EncodeError(f"Unsupported output format: {self.image_format!r}")

        kwargs: Dict[str, Any] = {"format": image_format}
        if image_format == FORMAT_JPEG:
            quality = QUALITY_HIGH if self.quality is None else self.quality
            kwargs["quality"] = max(0, min(100, int(quality)))
        elif image_format == FORMAT_PNG:
            level = COMPRESSION_STANDARD if self.quality is None else self.quality
            kwargs["compress_level"] = max(0, min(9, int(level)))
        return kwargs


def _prepare_gif(image: Image.Image) -> Image.Image:
    """Reduce a buffer to 255 colors plus one transparent index for GIF output."""
    rgba = image.convert(TRUECOLOR_MODE) if image.mode != TRUECOLOR_MODE else image
    alpha = rgba.getchannel("A")

    paletted = rgba.convert("RGB").quantize(colors=DEFAULT_PALETTE_COLORS)
    palette = paletted.getpalette() or []
    palette = palette[:DEFAULT_PALETTE_COLORS * 3]
    palette.extend([0] * (768 - len(palette)))
    paletted.putpalette(palette)

    transparent_mask = alpha.point(lambda value: 255 if value < GIF_ALPHA_THRESHOLD else 0)
    paletted.paste(DEFAULT_PALETTE_COLORS, mask=transparent_mask)
    paletted.info["transparency"] = DEFAULT_PALETTE_COLORS
    return paletted


def encode_image(image: Image.Image, options: EncodeOptions) -> bytes:
    """
    Encode a buffer.

    Args:
        image: RGBA or P mode buffer
        options: Target format and quality

    Returns:
        Encoded file bytes

    Raises:
        EncodeError: If the format is unsupported or encoding fails
    """
    kwargs = options.get_save_kwargs()
    image_format = kwargs["format"]

    try:
        if image_format == FORMAT_JPEG:
            # JPEG has no alpha channel
            prepared = image.convert("RGB")
        elif image_format == FORMAT_GIF:
            prepared = _prepare_gif(image)
            kwargs["transparency"] = DEFAULT_PALETTE_COLORS
        elif image.mode == PALETTE_MODE:
            prepared = image
        else:
            prepared = image.convert(TRUECOLOR_MODE) if image.mode != TRUECOLOR_MODE else image

        buffer = io.BytesIO()
        prepared.save(buffer, **kwargs)
    except (OSError, ValueError) as e:
        raise EncodeError(f"Failed to encode image as {image_format}: {str(e)}") from e

    logger.debug(f"Encoded {image.size[0]}x{image.size[1]} image as {image_format}")
    return buffer.getvalue()
