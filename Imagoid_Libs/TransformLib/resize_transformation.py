"""
Resize transformation for Imagoid.

Give only a width or only a height and the image keeps its aspect ratio.
Give both and the mode decides what happens:

- fit (default): keep aspect ratio, one side exactly as requested, the
  other smaller or equal
- fill: keep aspect ratio, one side exactly as requested, the other
  bigger or equal
- crop: keep aspect ratio, output has exactly the requested size, the
  overflowing parts are cut off evenly from both sides
- stretch: ignore aspect ratio, output has exactly the requested size
- exact: keep aspect ratio, output has exactly the requested size, the
  image is centered and the rest filled with the background color

With shrink_only (the default) images are never enlarged, except in
stretch mode. Crop falls back to exact when the image would have to grow.

Classes:
    ResizeMode: The five resize modes
    ResizeTransformation: Configured resize operation
"""

import logging
from enum import IntEnum
from typing import Any, Dict, Optional, Tuple

from PIL import Image

from Imagoid_Libs.constants import (
    FIELD_PARAMS,
    FIELD_TYPE,
    RESAMPLE_FILTER,
    TRANSFORMATION_RESIZE,
    TRUECOLOR_MODE,
)
from Imagoid_Libs.errors import InvalidGeometryError, InvalidSpecError
from Imagoid_Libs.ImageEditingLib.alpha_scale import QUANTIZE_LUT, quantize_alpha
from Imagoid_Libs.ImageEditingLib.color import Color, ColorInput
from Imagoid_Libs.ImageEditingLib.geometry_parsing import SizeSpec, parse_size, round_half_up
from Imagoid_Libs.ImageEditingLib.image_resource import ImageResource
from Imagoid_Libs.TransformLib.transformation import Transformation, hash_signature, signature_value

logger = logging.getLogger(__name__)


class ResizeMode(IntEnum):
    FIT = 1
    FILL = 2
    CROP = 3
    STRETCH = 4
    EXACT = 5

    @classmethod
    def parse(cls, value: Any) -> "ResizeMode":
        """
        Resolve a mode from a ResizeMode, its number (1-5) or its name.

        Raises:
            InvalidSpecError: If value is not a resize mode
        """
        if value is None or value == "":
            return cls.FIT
        if isinstance(value, cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            if 1 <= value <= 5:
                return cls(value)
            raise InvalidSpecError(f"{value!r} is not a valid resize mode")

        text = str(value).strip().lower()
        if text.isdigit() and 1 <= int(text) <= 5:
            return cls(int(text))
        if text in MODE_ALIASES:
            return MODE_ALIASES[text]
        raise InvalidSpecError(f"{value!r} is not a valid resize mode (use fit, fill, crop, stretch or exact)")


MODE_ALIASES = {
    "fit": ResizeMode.FIT,
    "fill": ResizeMode.FILL,
    "fil": ResizeMode.FILL,
    "crop": ResizeMode.CROP,
    "cropped": ResizeMode.CROP,
    "stretch": ResizeMode.STRETCH,
    "exact": ResizeMode.EXACT,
}


def _empty_spec(spec: SizeSpec) -> bool:
    if spec is None or spec is False:
        return True
    if isinstance(spec, str):
        return spec.strip() in ("", "0")
    return spec == 0


class ResizeTransformation(Transformation):
    """
    Resize an image.

    Args:
        width: Width spec (anything parse_size understands), None to follow height
        height: Height spec, None to follow width
        mode: ResizeMode or its name
        background_color: Canvas color for exact/crop (default transparent)
        shrink_only: Never enlarge the image (stretch ignores this)
    """

    type_name = TRANSFORMATION_RESIZE

    def __init__(
        self,
        width: SizeSpec = None,
        height: SizeSpec = None,
        mode: Any = ResizeMode.FIT,
        background_color: Optional[ColorInput] = None,
        shrink_only: Optional[bool] = True,
    ):
        self.width: SizeSpec = None
        self.height: SizeSpec = None
        self.mode = ResizeMode.FIT
        self.background_color: Optional[Color] = None
        self.shrink_only = True
        self.setup(width, height, mode, background_color, shrink_only)

    def setup(
        self,
        width: SizeSpec = None,
        height: SizeSpec = None,
        mode: Any = ResizeMode.FIT,
        background_color: Optional[ColorInput] = None,
        shrink_only: Optional[bool] = True,
    ) -> "ResizeTransformation":
        """See the class docstring. Returns self."""
        self.width = None if _empty_spec(width) else width
        self.height = None if _empty_spec(height) else height
        self.mode = ResizeMode.parse(mode)

        if background_color is not None and background_color != "":
            self.background_color = Color(background_color)
        elif self.mode in (ResizeMode.EXACT, ResizeMode.CROP):
            # Crop may fall back to exact, so it needs a canvas color too
            self.background_color = Color(Color.TRANSPARENT)
        else:
            self.background_color = None

        self.shrink_only = True if shrink_only is None else bool(shrink_only)
        return self

    def reset(self) -> "ResizeTransformation":
        return self.setup()

    def get_signature(self) -> str:
        background = self.background_color.get_hex() if self.background_color else ""
        return hash_signature(
            TRANSFORMATION_RESIZE,
            int(self.mode),
            signature_value(self.width),
            signature_value(self.height),
            background,
            int(self.shrink_only),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            FIELD_TYPE: TRANSFORMATION_RESIZE,
            FIELD_PARAMS: {
                "width": self.width,
                "height": self.height,
                "mode": self.mode.name.lower(),
                "background_color": self.background_color.get_hex() if self.background_color else None,
                "shrink_only": self.shrink_only,
            },
        }

    def calculate_geometry(self, old_width: int, old_height: int) -> Tuple[ResizeMode, int, int, int, int]:
        """
        Work out the output geometry for a source size.

        Args:
            old_width: Source width
            old_height: Source height

        Returns:
            (effective mode, scaled width, scaled height, canvas width, canvas height).
            Canvas size differs from the scaled size only for exact and crop.

        Raises:
            InvalidGeometryError: If any computed dimension is not positive
        """
        mode = self.mode

        if self.height is None or self.width is None:
            # One dimension given, the other follows the aspect ratio
            if self.height is None:
                ratio = parse_size(self.width, old_width) / old_width
            else:
                ratio = parse_size(self.height, old_height) / old_height
            if ratio > 1 and self.shrink_only and self.mode != ResizeMode.STRETCH:
                ratio = 1
            new_width = round_half_up(old_width * ratio)
            new_height = round_half_up(old_height * ratio)
            mode = ResizeMode.FIT
            canvas_width, canvas_height = new_width, new_height
        else:
            canvas_width = parse_size(self.width, old_width)
            canvas_height = parse_size(self.height, old_height)
            new_width, new_height = canvas_width, canvas_height

            if mode != ResizeMode.STRETCH:
                ratio_w = canvas_width / old_width
                ratio_h = canvas_height / old_height
                if mode in (ResizeMode.FIT, ResizeMode.EXACT):
                    ratio = min(ratio_w, ratio_h)
                else:
                    ratio = max(ratio_w, ratio_h)
                if ratio > 1 and self.shrink_only:
                    ratio = 1
                    if mode == ResizeMode.CROP:
                        mode = ResizeMode.EXACT
                new_width = round_half_up(old_width * ratio)
                new_height = round_half_up(old_height * ratio)

            if mode not in (ResizeMode.EXACT, ResizeMode.CROP):
                canvas_width, canvas_height = new_width, new_height

        if min(new_width, new_height, canvas_width, canvas_height) <= 0:
            raise InvalidGeometryError(
                f"Resize of {old_width}x{old_height} to width={self.width!r}, height={self.height!r} "
                f"gives {new_width}x{new_height}"
            )
        return mode, new_width, new_height, canvas_width, canvas_height

    def _canvas(self, width: int, height: int) -> Image.Image:
        color = self.background_color or Color(Color.TRANSPARENT)
        r, g, b, a = color.get_rgba_bytes()
        return Image.new(TRUECOLOR_MODE, (width, height), (r, g, b, QUANTIZE_LUT[a]))

    def apply_on_image(self, image: ImageResource) -> None:
        image.to_true_color()
        source = image.get_buffer()
        old_width, old_height = source.size
        mode, new_width, new_height, canvas_width, canvas_height = self.calculate_geometry(old_width, old_height)

        if mode == ResizeMode.EXACT:
            scaled = source.resize((new_width, new_height), RESAMPLE_FILTER)
            result = self._canvas(canvas_width, canvas_height)
            pos_x = round_half_up(canvas_width * 0.5) - round_half_up(new_width / 2)
            pos_y = round_half_up(canvas_height * 0.5) - round_half_up(new_height / 2)
            # No mask: scaled pixels replace the canvas, alpha included
            result.paste(scaled, (pos_x, pos_y))
        elif mode == ResizeMode.CROP:
            scale = new_width / old_width
            box_width = canvas_width / scale
            box_height = canvas_height / scale
            left = max(0.0, (old_width - box_width) / 2)
            top = max(0.0, (old_height - box_height) / 2)
            box = (
                left,
                top,
                min(float(old_width), left + box_width),
                min(float(old_height), top + box_height),
            )
            result = source.resize((canvas_width, canvas_height), RESAMPLE_FILTER, box=box)
        else:
            result = source.resize((new_width, new_height), RESAMPLE_FILTER)

        image.inject_resource(quantize_alpha(result))
        logger.debug(
            f"Resized {old_width}x{old_height} to {result.size[0]}x{result.size[1]} ({mode.name.lower()})"
        )
