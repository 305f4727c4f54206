"""
Color parsing, arithmetic and comparison for Imagoid.

Every channel is stored as a float in the 0-1 range (1 = full intensity /
fully opaque). Channels can be set with any parsable number:

    0.5     - 0 to 1 scale (numbers <= 1 always use this scale)
    127     - 0 to 255 scale
    "50%"   - 0% to 100% scale
    "ff"    - one or two hexadecimal digits

Parsable color strings: #rgb, #rgba, #rrggbb, #rrggbbaa, #g or #gg
(grayscale), rgb(r,g,b), rgba(r,g,b,a) or a single number (grayscale).

Example:
    >>> color = Color("rgba(255,0,0,0.5)")
    >>> color.get_hex()
    '#ff000080'
    >>> Color("#336699").lighten(0.5).get_rgb()
    'rgb(153,179,204)'
"""

import re
from typing import Any, Optional, Sequence, Tuple, Union

from Imagoid_Libs.constants import COLOR_EPSILON
from Imagoid_Libs.errors import InvalidColorSyntaxError
from Imagoid_Libs.ImageEditingLib.geometry_parsing import round_half_up

ColorInput = Union["Color", str, int, float, Sequence[Any]]

HEX_PATTERN = re.compile(r"^#([0-9a-f]{1,8})$", re.IGNORECASE)
RGB_PATTERN = re.compile(r"^rgb\(([\d%.]+),([\d%.]+),([\d%.]+)\)$", re.IGNORECASE)
RGBA_PATTERN = re.compile(r"^rgba\(([\d%.]+),([\d%.]+),([\d%.]+),([\d%.]+)\)$", re.IGNORECASE)
NUMBER_PATTERN = re.compile(r"^-?(?:\d+(?:\.\d*)?|\.\d+)$")
PERCENT_PATTERN = re.compile(r"^\s*(-?(?:\d+(?:\.\d*)?|\.\d+))\s*%\s*$")
SHORT_HEX_PATTERN = re.compile(r"^[0-9a-f]{1,2}$", re.IGNORECASE)
WHITESPACE_PATTERN = re.compile(r"\s")


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


def normalise_number(number: Any, allow_negative: bool = False) -> float:
    """
    Convert any parsable number to the 0-1 scale.

    Args:
        number: Number on 0-1 scale, 0-255 scale, percentage string or
                1-2 hexadecimal digits
        allow_negative: Keep negative values (result on -1 to 1 scale)

    Returns:
        Normalized value

    Raises:
        InvalidColorSyntaxError: If the value cannot be parsed
    """
    if isinstance(number, str):
        text = number.strip()
        if NUMBER_PATTERN.match(text):
            number = float(text)
        else:
            percent = PERCENT_PATTERN.match(text)
            if percent:
                value = float(percent.group(1)) / 100
                if value < 0 and not allow_negative:
                    return 0.0
                return max(-1.0, min(1.0, value))
            if SHORT_HEX_PATTERN.match(text):
                return hex_to_unit(text)
            raise InvalidColorSyntaxError(f"Value {number!r} could not be parsed as a color value")

    if isinstance(number, bool) or not isinstance(number, (int, float)):
        raise InvalidColorSyntaxError(f"Value {number!r} could not be parsed as a color value")

    if 0 <= number <= 1:
        return float(number)
    if 1 < number <= 255:
        return number / 255
    if number > 255:
        return 1.0
    if not allow_negative:
        return 0.0
    if number >= -1:
        return float(number)
    if number >= -255:
        return number / 255
    return -1.0


def hex_to_unit(hex_digits: str) -> float:
    """Convert one or two hexadecimal digits (0 to ff) to the 0-1 scale."""
    if len(hex_digits) == 1:
        hex_digits = hex_digits * 2
    return max(0, min(255, int(hex_digits, 16))) / 255


def unit_to_hex(value: float) -> str:
    """Convert a 0-1 value to a two-digit lowercase hexadecimal string."""
    return f"{round_half_up(value * 255):02x}"


class Color:
    """
    A mutable RGBA color with channels on the 0-1 scale.

    Construct with a parsable string, another Color, a 3/4 element sequence
    or three/four separate parsable numbers. Without arguments the color is
    opaque white. Mutating methods return self.
    """

    WHITE = "#ffffff"
    BLACK = "#000000"
    RED = "#ff0000"
    GREEN = "#00ff00"
    BLUE = "#0000ff"
    CYAN = "#00ffff"
    MAGENTA = "#ff00ff"
    YELLOW = "#ffff00"
    TRANSPARENT = "#ffffff00"

    def __init__(
        self,
        color: Optional[ColorInput] = None,
        g: Any = None,
        b: Any = None,
        a: Any = None,
    ) -> None:
        self._r = 1.0
        self._g = 1.0
        self._b = 1.0
        self._a = 1.0

        if g is not None or b is not None:
            channels = [color, g, b] if a is None else [color, g, b, a]
            self.load(channels)
        elif color is not None and color != "":
            self.load(color)

    @classmethod
    def parse(cls, text: str) -> "Color":
        """
        Parse a color string.

        Raises:
            InvalidColorSyntaxError: If the text is not a recognized color
        """
        color = cls()
        color._parse_string(text)
        return color

    @classmethod
    def build(cls, value: ColorInput) -> "Color":
        """Return value itself if it is a Color, otherwise a new Color built from it."""
        if isinstance(value, Color):
            return value
        return cls(value)

    def load(self, color: ColorInput) -> "Color":
        """
        Load channels from a string, number, sequence or another Color.

        Raises:
            InvalidColorSyntaxError: If the value cannot be interpreted
        """
        if isinstance(color, Color):
            self._r, self._g, self._b, self._a = color._r, color._g, color._b, color._a
            return self

        if isinstance(color, (list, tuple)):
            if len(color) == 1:
                return self.load(color[0])
            if len(color) in (3, 4):
                self._r = normalise_number(color[0])
                self._g = normalise_number(color[1])
                self._b = normalise_number(color[2])
                self._a = normalise_number(color[3]) if len(color) == 4 else 1.0
                return self
            raise InvalidColorSyntaxError(f"Color sequence must have 3 or 4 items, got {len(color)}")

        if isinstance(color, (int, float)) and not isinstance(color, bool):
            gray = normalise_number(color)
            self._r = self._g = self._b = gray
            self._a = 1.0
            return self

        if isinstance(color, str):
            return self._parse_string(color)

        raise InvalidColorSyntaxError(f"Invalid color value: {color!r}")

    def _parse_string(self, text: str) -> "Color":
        compact = WHITESPACE_PATTERN.sub("", str(text))

        hex_match = HEX_PATTERN.match(compact)
        if hex_match:
            digits = hex_match.group(1)
            if len(digits) in (1, 2):
                gray = hex_to_unit(digits)
                self._r, self._g, self._b, self._a = gray, gray, gray, 1.0
            elif len(digits) in (3, 4):
                channels = [hex_to_unit(digit) for digit in digits]
                self._r, self._g, self._b = channels[:3]
                self._a = channels[3] if len(channels) == 4 else 1.0
            elif len(digits) in (6, 8):
                channels = [hex_to_unit(digits[i:i + 2]) for i in range(0, len(digits), 2)]
                self._r, self._g, self._b = channels[:3]
                self._a = channels[3] if len(channels) == 4 else 1.0
            else:
                raise InvalidColorSyntaxError(
                    f"Invalid hex string (must be 1, 2, 3, 4, 6 or 8 digits long): {digits}"
                )
            return self

        rgb_match = RGB_PATTERN.match(compact)
        if rgb_match:
            self._r, self._g, self._b = (normalise_number(part) for part in rgb_match.groups())
            self._a = 1.0
            return self

        rgba_match = RGBA_PATTERN.match(compact)
        if rgba_match:
            self._r, self._g, self._b, self._a = (normalise_number(part) for part in rgba_match.groups())
            return self

        if compact:
            try:
                gray = normalise_number(compact)
            except InvalidColorSyntaxError:
                pass
            else:
                self._r, self._g, self._b, self._a = gray, gray, gray, 1.0
                return self

        raise InvalidColorSyntaxError(f"Invalid color string: {text!r}")

    # Channel accessors

    @property
    def r(self) -> float:
        return self._r

    @r.setter
    def r(self, value: Any) -> None:
        self._r = _clamp(normalise_number(value))

    @property
    def g(self) -> float:
        return self._g

    @g.setter
    def g(self, value: Any) -> None:
        self._g = _clamp(normalise_number(value))

    @property
    def b(self) -> float:
        return self._b

    @b.setter
    def b(self, value: Any) -> None:
        self._b = _clamp(normalise_number(value))

    @property
    def a(self) -> float:
        return self._a

    @a.setter
    def a(self, value: Any) -> None:
        self._a = _clamp(normalise_number(value))

    # Serialization

    def get_hex(self) -> str:
        """Get #rrggbb, or #rrggbbaa when not fully opaque. Always lowercase."""
        out = "#" + unit_to_hex(self._r) + unit_to_hex(self._g) + unit_to_hex(self._b)
        if self._a != 1:
            out += unit_to_hex(self._a)
        return out

    def get_rgb(self) -> str:
        """Get rgb() or rgba() notation with channels on the 0-255 scale."""
        channels = [round_half_up(self._r * 255), round_half_up(self._g * 255), round_half_up(self._b * 255)]
        if self._a != 1:
            channels.append(round_half_up(self._a * 255))
            return "rgba(" + ",".join(str(c) for c in channels) + ")"
        return "rgb(" + ",".join(str(c) for c in channels) + ")"

    def get_rgb_percentage(self) -> str:
        """Get rgb() or rgba() notation with channels on the 0%-100% scale."""
        percentages = [round_half_up(v * 100) for v in (self._r, self._g, self._b)]
        alpha = round_half_up(self._a * 100)
        parts = [f"{p}%" if p else "0" for p in percentages]
        if alpha != 100:
            parts.append(f"{alpha}%" if alpha else "0")
            return "rgba(" + ",".join(parts) + ")"
        return "rgb(" + ",".join(parts) + ")"

    def get_rgba_bytes(self) -> Tuple[int, int, int, int]:
        """Get the color as an (R, G, B, A) tuple of 0-255 integers."""
        return (
            round_half_up(self._r * 255),
            round_half_up(self._g * 255),
            round_half_up(self._b * 255),
            round_half_up(self._a * 255),
        )

    def __str__(self) -> str:
        return self.get_hex()

    def __repr__(self) -> str:
        return f"Color({self.get_hex()!r})"

    # Arithmetic

    def mix(self, with_color: "Color", ratio: Any = 0.5) -> "Color":
        """
        Mix another color into this one, weighted by the other color's alpha.

        Args:
            with_color: Color to mix in
            ratio: 0 = no change, 1 = match with_color (if it is opaque)

        Returns:
            self

        Raises:
            TypeError: If with_color is not a Color
        """
        if not isinstance(with_color, Color):
            raise TypeError(f"Expected Color to mix with, got {type(with_color)}")
        weight = normalise_number(ratio) * with_color._a
        self._r = _clamp(self._r + (with_color._r - self._r) * weight)
        self._g = _clamp(self._g + (with_color._g - self._g) * weight)
        self._b = _clamp(self._b + (with_color._b - self._b) * weight)
        return self

    def lighten(self, intensity: Any) -> "Color":
        """Move RGB toward white. 0 = no change, 1 = white."""
        amount = normalise_number(intensity, allow_negative=True)
        if amount < 0:
            return self.darken(-amount)
        self._r += (1 - self._r) * amount
        self._g += (1 - self._g) * amount
        self._b += (1 - self._b) * amount
        return self

    def darken(self, intensity: Any) -> "Color":
        """Move RGB toward black. 0 = no change, 1 = black."""
        amount = normalise_number(intensity, allow_negative=True)
        if amount < 0:
            return self.lighten(-amount)
        self._r *= 1 - amount
        self._g *= 1 - amount
        self._b *= 1 - amount
        return self

    def increase_opacity(self, intensity: Any) -> "Color":
        """Move alpha toward fully opaque. 0.5 turns 40% alpha into 70%."""
        amount = normalise_number(intensity, allow_negative=True)
        if amount < 0:
            return self.decrease_opacity(-amount)
        self._a += (1 - self._a) * amount
        return self

    def decrease_opacity(self, intensity: Any) -> "Color":
        """Move alpha toward fully transparent. 0.5 turns 40% alpha into 20%."""
        amount = normalise_number(intensity, allow_negative=True)
        if amount < 0:
            return self.increase_opacity(-amount)
        self._a *= 1 - amount
        return self

    def luminosity(self) -> float:
        """Subjective lightness for the human eye."""
        return (self._r * 0.6 + self._g + self._b * 0.3) / 1.9

    def lightness(self) -> float:
        """Mathematical lightness (average of RGB)."""
        return (self._r + self._g + self._b) / 3

    def desaturate(self) -> "Color":
        gray = self.luminosity()
        self._r = self._g = self._b = gray
        return self

    def invert(self) -> "Color":
        self._r = 1 - self._r
        self._g = 1 - self._g
        self._b = 1 - self._b
        return self

    def add_color(self, r: Any, g: Any = None, b: Any = None) -> "Color":
        """
        Add signed amounts to RGB channels. With one argument it applies to all three.

        Returns:
            self
        """
        if g is None and b is None:
            g = b = r
        self._r = _clamp(self._r + normalise_number(r, allow_negative=True))
        self._g = _clamp(self._g + normalise_number(g, allow_negative=True))
        self._b = _clamp(self._b + normalise_number(b, allow_negative=True))
        return self

    def multiply_color(self, r: Any, g: Any = None, b: Any = None) -> "Color":
        """
        Scale RGB channels. 50% brings a channel half way to white,
        -50% brings it to half of its brightness.

        Returns:
            self
        """
        if g is None and b is None:
            g = b = r
        self._r = self._multiply_channel(self._r, normalise_number(r, allow_negative=True))
        self._g = self._multiply_channel(self._g, normalise_number(g, allow_negative=True))
        self._b = self._multiply_channel(self._b, normalise_number(b, allow_negative=True))
        return self

    @staticmethod
    def _multiply_channel(value: float, factor: float) -> float:
        if factor > 0:
            value += (1 - value) * factor
        elif factor < 0:
            value *= 1 + factor
        return _clamp(value)

    # Comparison

    def is_same_as(
        self,
        other_color: ColorInput,
        tolerance: Any = 0,
        compare_alpha: bool = True,
        transparents_are_same: bool = True,
    ) -> bool:
        """
        Check whether another color matches this one.

        Args:
            other_color: Color or anything Color() accepts
            tolerance: Allowed difference per channel (0.1, 10% ...)
            compare_alpha: Also compare the alpha channel
            transparents_are_same: Treat two (nearly) fully transparent colors
                                   as equal regardless of RGB

        Returns:
            True if the colors match
        """
        return Color.compare(
            self,
            Color.build(other_color),
            normalise_number(tolerance),
            compare_alpha,
            transparents_are_same,
        )

    @staticmethod
    def compare(
        color1: "Color",
        color2: "Color",
        tolerance: float = 0,
        compare_alpha: bool = True,
        transparents_are_same: bool = True,
    ) -> bool:
        """Static version of is_same_as(). Both arguments must be Color objects."""
        tolerance = max(tolerance, COLOR_EPSILON)
        if transparents_are_same and color1.a < tolerance and color2.a < tolerance:
            return True
        if abs(color1.r - color2.r) > tolerance:
            return False
        if abs(color1.g - color2.g) > tolerance:
            return False
        if abs(color1.b - color2.b) > tolerance:
            return False
        if compare_alpha and abs(color1.a - color2.a) > tolerance:
            return False
        return True
