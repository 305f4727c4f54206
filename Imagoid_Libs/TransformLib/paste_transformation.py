"""
Paste transformation for Imagoid - pastes one image onto another (watermarks etc).

The pasted image is copied when it is set; the original is never modified.
Before the first paste it goes through any queued transformations and,
if the opacity is not 1, an AlphaTransformation. That preprocessing runs
once per configuration, no matter how many images the transformation is
applied to.

Positions work like CSS: each axis has an anchor (left/top, center/middle,
right/bottom) saying which edge the position is measured from. With the
center anchor the position is where the pasted image's center goes.

Example:
    >>> paste = PasteTransformation("logo.png", alpha="60%")
    >>> paste.set_position(10, 10, "right", "bottom")
    >>> paste.apply(ImageResource("photo.jpg"))

Classes:
    Anchor: Edge a position is measured from
    PasteTransformation: Configured paste operation
"""

import logging
from enum import IntEnum
from typing import Any, Dict, List, Optional, Union

from PIL import Image

from Imagoid_Libs.constants import FIELD_PARAMS, FIELD_TYPE, TRANSFORMATION_PASTE, TRUECOLOR_MODE
from Imagoid_Libs.errors import InvalidSpecError, MissingSourceImageError
from Imagoid_Libs.ImageEditingLib.alpha_scale import quantize_alpha
from Imagoid_Libs.ImageEditingLib.geometry_parsing import SizeSpec, parse_position, parse_size, round_half_up
from Imagoid_Libs.ImageEditingLib.image_resource import ImageResource
from Imagoid_Libs.TransformLib.alpha_transformation import AlphaTransformation
from Imagoid_Libs.TransformLib.resize_transformation import ResizeMode, ResizeTransformation
from Imagoid_Libs.TransformLib.transformation import Transformation, hash_signature, signature_value

logger = logging.getLogger(__name__)

PasteSource = Union[str, Image.Image, ImageResource]


class Anchor(IntEnum):
    LEFT = 1
    TOP = 1
    CENTER = 2
    MIDDLE = 2
    RIGHT = 3
    BOTTOM = 3

    @classmethod
    def parse(cls, value: Any) -> "Anchor":
        """
        Resolve an anchor from an Anchor, its number or a keyword
        (left/l, top/t, center/c, middle/m, right/r, bottom/b).

        Raises:
            InvalidSpecError: If value is not an anchor
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            if value in (1, 2, 3):
                return cls(value)
            raise InvalidSpecError(f"Invalid position mode: {value!r}")
        text = str(value).strip().lower()
        if text in ANCHOR_ALIASES:
            return ANCHOR_ALIASES[text]
        raise InvalidSpecError(f"Invalid position mode: {value!r}")


ANCHOR_ALIASES = {
    "left": Anchor.LEFT,
    "l": Anchor.LEFT,
    "top": Anchor.TOP,
    "t": Anchor.TOP,
    "center": Anchor.CENTER,
    "c": Anchor.CENTER,
    "middle": Anchor.MIDDLE,
    "m": Anchor.MIDDLE,
    "right": Anchor.RIGHT,
    "r": Anchor.RIGHT,
    "bottom": Anchor.BOTTOM,
    "b": Anchor.BOTTOM,
}


def calculate_position(position: SizeSpec, anchor: Anchor, main_size: int, pasted_size: int) -> int:
    """
    Resolve the top-left coordinate of the pasted image along one axis.

    Args:
        position: Position spec
        anchor: Edge the position is measured from
        main_size: Size of the target image along the axis
        pasted_size: Size of the pasted image along the axis

    Returns:
        Coordinate of the pasted image's first pixel
    """
    if anchor == Anchor.LEFT:
        return parse_position(position, main_size)
    if anchor == Anchor.CENTER:
        center = parse_position(position, main_size)
        return round_half_up(center - pasted_size / 2)
    return main_size - parse_position(position, main_size) - pasted_size


class PasteTransformation(Transformation):
    """
    Paste an image onto the image the transformation is applied to.

    Args:
        image: Image to paste (path, Pillow image or ImageResource), copied on set
        width: Size spec of the pasted image, measured against the target image
        height: Size spec of the pasted image
        alpha: Opacity of the pasted image, anything AlphaTransformation accepts
    """

    type_name = TRANSFORMATION_PASTE

    def __init__(
        self,
        image: Optional[PasteSource] = None,
        width: SizeSpec = None,
        height: SizeSpec = None,
        alpha: Any = 1,
    ):
        self.image: Optional[ImageResource] = None
        self._image_signature = ""
        self._processed_image: Optional[ImageResource] = None
        self.position_x: SizeSpec = "50%"
        self.position_y: SizeSpec = "50%"
        self.mode_x = Anchor.CENTER
        self.mode_y = Anchor.CENTER
        self.size_width: SizeSpec = None
        self.size_height: SizeSpec = None
        self.size_mode = ResizeMode.FIT
        self.alpha: Any = 1
        self.transformations: List[Transformation] = []
        self.setup(image, width, height, alpha)

    def setup(
        self,
        image: Optional[PasteSource] = None,
        width: SizeSpec = None,
        height: SizeSpec = None,
        alpha: Any = 1,
    ) -> "PasteTransformation":
        """Reset, then paste image to the center, optionally fitted into width x height."""
        self.reset()
        if image is None:
            return self
        self.set_image(image)
        self.set_center_position()
        self.set_size(width, height)
        self.set_alpha(alpha)
        return self

    def reset(self) -> "PasteTransformation":
        self.image = None
        self._image_signature = ""
        self._processed_image = None
        self.position_x = "50%"
        self.position_y = "50%"
        self.mode_x = Anchor.CENTER
        self.mode_y = Anchor.CENTER
        self.size_width = None
        self.size_height = None
        self.size_mode = ResizeMode.FIT
        self.alpha = 1
        self.transformations = []
        return self

    def set_image(self, image: PasteSource) -> "PasteTransformation":
        """Set the image to paste. A copy is kept, the given image is never modified."""
        if isinstance(image, Image.Image):
            image = image.copy()
        self.image = ImageResource(image)
        self._image_signature = self.image.get_signature()
        self._processed_image = None
        return self

    def set_position(
        self,
        x: SizeSpec,
        y: SizeSpec,
        mode_x: Any = Anchor.LEFT,
        mode_y: Any = Anchor.TOP,
    ) -> "PasteTransformation":
        """
        Set where to paste.

        Examples:
            set_position(10, 10) - top-left corner at [10, 10]
            set_position(10, 10, "right", "bottom") - bottom-right corner 10px from the bottom-right corner
            set_position("center-10", "50%", "left", "center") - left edge 10px left of center, centered vertically
            set_position("-50", "-20%") - top-left corner 50px from the right and 20% from the bottom

        Returns:
            self
        """
        self.position_x = x
        self.position_y = y
        self.mode_x = Anchor.parse(mode_x)
        self.mode_y = Anchor.parse(mode_y)
        return self

    def set_center_position(self, x: SizeSpec = "50%", y: SizeSpec = "50%") -> "PasteTransformation":
        """Like set_position() with both anchors at the center."""
        return self.set_position(x, y, Anchor.CENTER, Anchor.CENTER)

    def set_size(self, width: SizeSpec = None, height: SizeSpec = None, mode: Any = ResizeMode.FIT) -> "PasteTransformation":
        """
        Resize the pasted image. Percentages are measured against the target image.
        Leave both dimensions None to keep the pasted image's own size.
        """
        self.size_width = width
        self.size_height = height
        self.size_mode = ResizeMode.parse(mode)
        return self

    def set_alpha(self, alpha: Any = 1) -> "PasteTransformation":
        """Set the pasted image's opacity ("60%", "*=60%" ...)."""
        if alpha is not None:
            # Fail early on amounts AlphaTransformation rejects
            AlphaTransformation(alpha)
        self.alpha = alpha
        self._processed_image = None
        return self

    def add_transformation(self, transformation: Transformation) -> "PasteTransformation":
        """Queue a transformation to run on the pasted image before pasting."""
        if not isinstance(transformation, Transformation):
            raise TypeError(f"Expected Transformation, got {type(transformation)}")
        self.transformations.append(transformation)
        self._processed_image = None
        return self

    def get_signature(self) -> str:
        parts = [
            TRANSFORMATION_PASTE,
            signature_value(self.position_x),
            signature_value(self.position_y),
            int(self.mode_x),
            int(self.mode_y),
            signature_value(self.size_width),
            signature_value(self.size_height),
            int(self.size_mode),
            AlphaTransformation(self.alpha).get_signature() if self.alpha is not None else None,
        ]
        if self.image is not None:
            parts.append(f"image={self._image_signature}")
        parts.extend(transformation.get_signature() for transformation in self.transformations)
        return hash_signature(*parts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            FIELD_TYPE: TRANSFORMATION_PASTE,
            FIELD_PARAMS: {
                "image": self.image.path if self.image is not None else None,
                "x": self.position_x,
                "y": self.position_y,
                "mode_x": self.mode_x.name.lower(),
                "mode_y": self.mode_y.name.lower(),
                "width": self.size_width,
                "height": self.size_height,
                "size_mode": self.size_mode.name.lower(),
                "alpha": self.alpha,
                "transformations": [transformation.to_dict() for transformation in self.transformations],
            },
        }

    def get_processed_image(self) -> ImageResource:
        """
        The pasted image after queued transformations and opacity, computed once.

        Raises:
            MissingSourceImageError: If no image was set
        """
        if self.image is None:
            raise MissingSourceImageError("An image to paste must be set before applying PasteTransformation")

        if self._processed_image is None:
            processed = self.image.clone()
            for transformation in self.transformations:
                transformation.apply(processed)
            if self.alpha is not None:
                alpha = AlphaTransformation(self.alpha)
                if not alpha.is_noop():
                    alpha.apply(processed)
            self._processed_image = processed
            logger.debug(f"Prepared image to paste: {processed!r}")
        return self._processed_image

    def apply_on_image(self, image: ImageResource) -> None:
        pasted = self.get_processed_image()

        image.to_true_color()
        target = image.get_buffer()
        main_width, main_height = target.size

        if self.size_width or self.size_height:
            width = parse_size(self.size_width, main_width) if self.size_width else None
            height = parse_size(self.size_height, main_height) if self.size_height else None
            resize = ResizeTransformation(width, height, self.size_mode, None, shrink_only=False)
            pasted = resize.apply_copy(pasted)

        source = pasted.get_buffer()
        if source.mode != TRUECOLOR_MODE:
            source = source.convert(TRUECOLOR_MODE)
        pasted_width, pasted_height = source.size

        pos_x = calculate_position(self.position_x, self.mode_x, main_width, pasted_width)
        pos_y = calculate_position(self.position_y, self.mode_y, main_height, pasted_height)

        # Pillow needs a non-negative destination, so clip to the overlap
        left = max(0, pos_x)
        top = max(0, pos_y)
        right = min(main_width, pos_x + pasted_width)
        bottom = min(main_height, pos_y + pasted_height)
        if right <= left or bottom <= top:
            logger.debug(f"Pasted image at ({pos_x}, {pos_y}) lies outside the target, nothing pasted")
            return

        target.alpha_composite(
            source,
            dest=(left, top),
            source=(left - pos_x, top - pos_y, right - pos_x, bottom - pos_y),
        )
        quantize_alpha(target)
        logger.debug(f"Pasted {pasted_width}x{pasted_height} image at ({pos_x}, {pos_y})")
