"""
Size and position parsing for Imagoid.

Translates flexible textual specs into absolute pixel values measured
against a reference length (usually the width or height of an image).

Size specs:
    "30"      - 30 pixels
    "25%"     - a quarter of the reference
    "-10"     - reference minus 10 (measured from the far edge)
    "+=50%"   - reference plus half of it
    "-=20"    - reference minus 20

Position specs add keywords (left, top, right, bottom, center, middle)
and one compound form, e.g. "center-40", "15%+10", "right-5%".

Functions:
    round_half_up: Round half away from zero, the rounding used for all pixel values
    parse_size: Resolve a size spec to pixels
    parse_position: Resolve a position spec to pixels
    to_percentage: Express an absolute value as a percentage spec
"""

import logging
import math
import re
from typing import Optional, Union

from Imagoid_Libs.constants import POSITION_KEYWORDS
from Imagoid_Libs.errors import InvalidSpecError

logger = logging.getLogger(__name__)

SizeSpec = Union[int, float, str, None]

NUMBER_PATTERN = re.compile(r"^\s*-?(?:\d+(?:\.\d*)?|\.\d+)\s*$")
OPERATOR_PATTERN = re.compile(r"^\s*([+-])\s*=\s*(.*?)\s*$")
MAGNITUDE_PATTERN = re.compile(r"^\s*(-?(?:\d+(?:\.\d*)?|\.\d+))\s*(%?)\s*$")
COMPOUND_POSITION_PATTERN = re.compile(
    r"^\s*(-?(?:\d+(?:\.\d*)?|\.\d+)\s*%?)\s*([+-])\s*((?:\d+(?:\.\d*)?|\.\d+)\s*%?)\s*$"
)


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, halves away from zero.

    Args:
        value: Number to round

    Returns:
        Rounded integer (2.5 -> 3, -2.5 -> -3)
    """
    if value < 0:
        return -int(math.floor(-value + 0.5))
    return int(math.floor(value + 0.5))


def _is_number(spec: object) -> bool:
    return isinstance(spec, (int, float)) and not isinstance(spec, bool)


def _from_far_edge(value: float, reference: float) -> int:
    if value < 0:
        return round_half_up(reference + value)
    return round_half_up(value)


def _parse_magnitude(text: str, reference: float) -> Optional[float]:
    match = MAGNITUDE_PATTERN.match(text)
    if not match:
        return None
    value = float(match.group(1))
    if match.group(2) == "%":
        value = value * reference / 100
    return value


def parse_size(spec: SizeSpec, reference: float) -> int:
    """
    Parse a size spec against a reference length.

    Args:
        spec: Number, numeric string, percentage or "+="/"-=" expression.
              None or empty string means "keep the reference".
        reference: Length that percentages and operators are measured against

    Returns:
        Size in pixels

    Raises:
        InvalidSpecError: If the spec matches no known grammar
    """
    if spec is None or (isinstance(spec, str) and not spec.strip()):
        return round_half_up(reference)

    if isinstance(spec, bool):
        raise InvalidSpecError(f"Invalid size spec: {spec!r}")

    if _is_number(spec):
        return _from_far_edge(spec, reference)

    text = str(spec)
    if NUMBER_PATTERN.match(text):
        return _from_far_edge(float(text), reference)

    operator = ""
    operator_match = OPERATOR_PATTERN.match(text)
    if operator_match:
        operator = operator_match.group(1)
        text = operator_match.group(2)

    value = _parse_magnitude(text, reference)
    if value is None:
        raise InvalidSpecError(f"Invalid size spec: {spec!r}")

    if operator == "+":
        return round_half_up(reference + value)
    if operator == "-":
        return round_half_up(reference - value)
    return _from_far_edge(value, reference)


def parse_position(spec: SizeSpec, reference: float, strict: bool = False) -> int:
    """
    Parse a position spec against a reference length.

    Args:
        spec: Number, percentage, keyword (left, right, top, bottom, center,
              middle) or a compound "A+B" / "A-B" of those.
              None or empty string resolves to the reference.
        reference: Length that percentages and negative values are measured against
        strict: Raise on unparseable input instead of resolving it to 0

    Returns:
        Position in pixels

    Raises:
        InvalidSpecError: If strict and the spec matches no known grammar
    """
    if spec is None or (isinstance(spec, str) and not spec.strip()):
        return round_half_up(reference)

    if isinstance(spec, bool):
        raise InvalidSpecError(f"Invalid position spec: {spec!r}")

    if _is_number(spec):
        return _from_far_edge(spec, reference)

    text = str(spec).strip().lower()
    for word, meaning in POSITION_KEYWORDS.items():
        text = text.replace(word, meaning)

    value = _parse_magnitude(text, reference)
    if value is not None:
        return _from_far_edge(value, reference)

    compound = COMPOUND_POSITION_PATTERN.match(text)
    if compound:
        first = parse_position(compound.group(1), reference, strict)
        second = parse_position(compound.group(3), reference, strict)
        if compound.group(2) == "+":
            return round_half_up(first + second)
        return round_half_up(first - second)

    if strict:
        raise InvalidSpecError(f"Invalid position spec: {spec!r}")

    logger.warning(f"Unparseable position spec {spec!r}, using 0")
    return 0


def to_percentage(value: float, reference: float) -> str:
    """
    Express an absolute value as a percentage spec of a reference.

    Args:
        value: Absolute value in pixels
        reference: Reference length (must be non-zero)

    Returns:
        Percentage spec such as "37.5%"

    Raises:
        InvalidSpecError: If reference is zero
    """
    if not reference:
        raise InvalidSpecError("Reference length must be non-zero")
    percentage = f"{value * 100 / reference:.10f}".rstrip("0").rstrip(".")
    return f"{percentage}%"
