"""
Alpha (opacity) transformation for Imagoid.

Amount syntax:

    "50%", 0.5, 50   - keep 50% of the opacity: subtract 50 points
                       (100% -> 50%, 80% -> 30%)
    "-30%"           - negative values mean the opposite number, i.e. 70%
    "-=20%"          - subtract 20 points (50% -> 30%, 100% -> 80%)
    "+=20%"          - add 20 points (50% -> 70%, 0% stays 0% with keep_zero_alpha)
    "*=50%"          - multiply opacity (60% -> 30%)
    "*=200%"         - divide the remaining transparency (60% -> 80%)
    300              - same as "*=300%"

Arithmetic runs on the native 0-127 alpha scale (0 = opaque). Subtraction
is done with one lookup-table pass over the alpha band (FAST) unless the
caller disables it; every other operator goes through the per-pixel path
(PIXELWISE), which handles palette images entry by entry. Both strategies
give the same result for subtraction.

Classes:
    AlphaOperator: How the amount is combined with existing alpha
    AlphaStrategy: FAST lookup table or PIXELWISE computation
    AlphaTransformation: Configured opacity change
"""

import logging
import re
from enum import IntEnum
from typing import Any, Dict

import numpy as np
from PIL import Image

from Imagoid_Libs.constants import (
    FIELD_PARAMS,
    FIELD_TYPE,
    NATIVE_ALPHA_MAX,
    PIL_ALPHA_MAX,
    TRANSFORMATION_ALPHA,
    TRUECOLOR_MODE,
)
from Imagoid_Libs.errors import InvalidSpecError
from Imagoid_Libs.ImageEditingLib.alpha_scale import (
    from_native_alpha,
    get_palette_rgba,
    native_lut,
    set_palette_rgba,
    to_native_alpha,
)
from Imagoid_Libs.ImageEditingLib.geometry_parsing import round_half_up
from Imagoid_Libs.ImageEditingLib.image_resource import ImageResource
from Imagoid_Libs.TransformLib.transformation import Transformation, hash_signature

logger = logging.getLogger(__name__)

OPERATOR_PATTERN = re.compile(r"^\s*([+\-*])\s*=\s*(.*?)\s*$")
PERCENT_PATTERN = re.compile(r"^\s*(\d+(?:\.\d*)?|\.\d+)\s*%\s*$")

TO_NATIVE_TABLE = np.array([to_native_alpha(value) for value in range(PIL_ALPHA_MAX + 1)], dtype=np.int32)
FROM_NATIVE_TABLE = np.array([from_native_alpha(value) for value in range(NATIVE_ALPHA_MAX + 1)], dtype=np.uint8)


class AlphaOperator(IntEnum):
    ADD = 1
    MULTIPLY = 2
    SUBTRACT = 3
    MULTIPLY_UP = 4


class AlphaStrategy(IntEnum):
    FAST = 1
    PIXELWISE = 2


def parse_number(number: Any, allow_more: bool = True) -> float:
    """
    Parse an alpha amount to the 0-1 scale.

    Numbers up to 1 are taken as is, numbers up to 100 (and percentages)
    are divided by 100. Negative numbers mean 1 minus their absolute value.

    Args:
        number: Number, numeric string or percentage string
        allow_more: Accept values above 100 (%)

    Returns:
        Parsed amount

    Raises:
        InvalidSpecError: If number is not a valid amount
    """
    if isinstance(number, str):
        text = number.strip()
        percent = PERCENT_PATTERN.match(text)
        if percent:
            value = float(percent.group(1))
            if value > 100 and not allow_more:
                raise InvalidSpecError(f"Invalid amount {number!r} for alpha transformation")
            return value / 100
        if text.startswith("-") and text.endswith("%"):
            return 1 - parse_number(text[1:], allow_more=False)
        try:
            number = float(text)
        except ValueError:
            raise InvalidSpecError(f"Invalid amount {number!r} for alpha transformation") from None

    if isinstance(number, bool) or not isinstance(number, (int, float)):
        raise InvalidSpecError(f"Invalid amount {number!r} for alpha transformation")

    if number < 0:
        return 1 - parse_number(-number, allow_more=False)
    if number <= 1:
        return float(number)
    if number <= 100 or allow_more:
        return number / 100
    raise InvalidSpecError(f"Invalid amount {number!r} for alpha transformation")


class AlphaTransformation(Transformation):
    """
    Change the opacity of an image, respecting any transparency it already has.

    Args:
        amount: See the module docstring (default 100 = no change)
        use_fast: Use the lookup-table path for subtraction
        keep_zero_alpha: Alpha-increasing operators leave fully transparent
                         pixels fully transparent
    """

    type_name = TRANSFORMATION_ALPHA

    def __init__(self, amount: Any = 100, use_fast: bool = True, keep_zero_alpha: bool = True):
        self.amount_spec: Any = 100
        self.amount = 0.0
        self.operator = AlphaOperator.SUBTRACT
        self.strategy = AlphaStrategy.FAST
        self.use_fast = True
        self.keep_zero_alpha = True
        self.setup(amount, use_fast, keep_zero_alpha)

    def setup(self, amount: Any = 100, use_fast: bool = True, keep_zero_alpha: bool = True) -> "AlphaTransformation":
        """See the class docstring. Returns self."""
        self.amount_spec = amount
        self.use_fast = bool(use_fast)
        self.keep_zero_alpha = bool(keep_zero_alpha)
        subtract_strategy = AlphaStrategy.FAST if self.use_fast else AlphaStrategy.PIXELWISE

        operator_match = OPERATOR_PATTERN.match(amount) if isinstance(amount, str) else None
        if operator_match:
            operator, value = operator_match.groups()
            if operator == "*":
                factor = parse_number(value, allow_more=True)
                self.strategy = AlphaStrategy.PIXELWISE
                if factor > 1:
                    self.operator = AlphaOperator.MULTIPLY_UP
                    self.amount = 1 / factor
                else:
                    self.operator = AlphaOperator.MULTIPLY
                    self.amount = factor
            elif operator == "+":
                self.strategy = AlphaStrategy.PIXELWISE
                self.operator = AlphaOperator.ADD
                self.amount = parse_number(value, allow_more=False)
            else:
                self.strategy = subtract_strategy
                self.operator = AlphaOperator.SUBTRACT
                self.amount = parse_number(value, allow_more=False)
            return self

        value = parse_number(amount, allow_more=True)
        if value > 1:
            self.strategy = AlphaStrategy.PIXELWISE
            self.operator = AlphaOperator.MULTIPLY_UP
            self.amount = 1 / value
        else:
            # Keep `value` of the opacity
            self.strategy = subtract_strategy
            self.operator = AlphaOperator.SUBTRACT
            self.amount = 1 - value
        return self

    def reset(self) -> "AlphaTransformation":
        return self.setup()

    def get_signature(self) -> str:
        return hash_signature(
            TRANSFORMATION_ALPHA,
            repr(float(self.amount)),
            int(self.strategy),
            int(self.operator),
            int(self.keep_zero_alpha),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            FIELD_TYPE: TRANSFORMATION_ALPHA,
            FIELD_PARAMS: {
                "amount": self.amount_spec,
                "use_fast": self.use_fast,
                "keep_zero_alpha": self.keep_zero_alpha,
            },
        }

    def is_noop(self) -> bool:
        return self.operator in (AlphaOperator.SUBTRACT, AlphaOperator.ADD) and self.amount == 0

    # Formulas on the native scale, 0 = opaque, 127 = transparent

    def transform_native(self, alpha: int) -> int:
        """Apply the configured operator to one native alpha value."""
        delta = round_half_up(self.amount * NATIVE_ALPHA_MAX)
        if self.operator == AlphaOperator.SUBTRACT:
            result = alpha + delta
        elif self.operator == AlphaOperator.ADD:
            if alpha == NATIVE_ALPHA_MAX and self.keep_zero_alpha:
                return alpha
            result = alpha - delta
        elif self.operator == AlphaOperator.MULTIPLY:
            result = NATIVE_ALPHA_MAX - round_half_up((NATIVE_ALPHA_MAX - alpha) * self.amount)
        else:
            if alpha == NATIVE_ALPHA_MAX and self.keep_zero_alpha:
                return alpha
            result = round_half_up(alpha * self.amount)
        return max(0, min(NATIVE_ALPHA_MAX, result))

    def _transform_native_array(self, alpha: np.ndarray) -> np.ndarray:
        delta = round_half_up(self.amount * NATIVE_ALPHA_MAX)
        untouched = (alpha == NATIVE_ALPHA_MAX) if self.keep_zero_alpha else np.zeros(alpha.shape, dtype=bool)

        if self.operator == AlphaOperator.SUBTRACT:
            result = alpha + delta
        elif self.operator == AlphaOperator.ADD:
            result = np.where(untouched, alpha, alpha - delta)
        elif self.operator == AlphaOperator.MULTIPLY:
            result = NATIVE_ALPHA_MAX - np.floor((NATIVE_ALPHA_MAX - alpha) * self.amount + 0.5).astype(np.int32)
        else:
            scaled = np.floor(alpha * self.amount + 0.5).astype(np.int32)
            result = np.where(untouched, alpha, scaled)
        return np.clip(result, 0, NATIVE_ALPHA_MAX)

    # Strategies

    def apply_on_image(self, image: ImageResource) -> None:
        if self.is_noop():
            return
        if self.strategy == AlphaStrategy.FAST:
            self._apply_fast(image)
        else:
            self._apply_pixelwise(image)

    def _apply_fast(self, image: ImageResource) -> None:
        image.to_true_color()
        buffer = image.get_buffer()
        table = native_lut(self.transform_native)
        buffer.putalpha(buffer.getchannel("A").point(table))
        logger.debug(f"Alpha lookup pass on {buffer.size[0]}x{buffer.size[1]} image")

    def _apply_pixelwise(self, image: ImageResource) -> None:
        buffer = image.get_buffer()

        if buffer.mode != TRUECOLOR_MODE:
            entries = get_palette_rgba(buffer)
            set_palette_rgba(
                buffer,
                [(r, g, b, from_native_alpha(self.transform_native(to_native_alpha(a)))) for r, g, b, a in entries],
            )
            logger.debug(f"Alpha applied to {len(entries)} palette entries")
            return

        alpha = np.asarray(buffer.getchannel("A"))
        native = TO_NATIVE_TABLE[alpha]
        result = FROM_NATIVE_TABLE[self._transform_native_array(native)]
        buffer.putalpha(Image.fromarray(result.astype(np.uint8)))
        logger.debug(f"Alpha applied per pixel on {buffer.size[0]}x{buffer.size[1]} image")
