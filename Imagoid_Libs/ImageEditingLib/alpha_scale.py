"""
Conversions between Pillow's 8-bit alpha and the 7-bit native alpha scale.

Imagoid stores transparency with 128 levels: 0 is fully opaque and 127 is
fully transparent. Pillow buffers carry 0-255 alpha (255 = opaque), so every
decoded or modified buffer is snapped to the 128 representable levels.

Functions:
    to_native_alpha: Pillow alpha (0-255) -> native alpha (0-127)
    from_native_alpha: native alpha (0-127) -> Pillow alpha (0-255)
    opacity_to_native: opacity (0-1) -> native alpha
    native_to_opacity: native alpha -> opacity (0-1)
    quantize_alpha: Snap a buffer's alpha to native levels in place
    get_palette_rgba / set_palette_rgba: RGBA palette access for P buffers
    fold_palette_transparency: Move tRNS transparency into an RGBA palette
"""

from typing import List, Tuple

from PIL import Image

from Imagoid_Libs.constants import NATIVE_ALPHA_MAX, PALETTE_MODE, PIL_ALPHA_MAX, TRUECOLOR_MODE
from Imagoid_Libs.ImageEditingLib.geometry_parsing import round_half_up

RGBA = Tuple[int, int, int, int]


def to_native_alpha(alpha: int) -> int:
    """Convert Pillow alpha (255 = opaque) to native alpha (0 = opaque)."""
    alpha = max(0, min(PIL_ALPHA_MAX, int(alpha)))
    return round_half_up((PIL_ALPHA_MAX - alpha) * NATIVE_ALPHA_MAX / PIL_ALPHA_MAX)


def from_native_alpha(native: int) -> int:
    """Convert native alpha (0 = opaque) to Pillow alpha (255 = opaque)."""
    native = max(0, min(NATIVE_ALPHA_MAX, int(native)))
    return round_half_up((NATIVE_ALPHA_MAX - native) * PIL_ALPHA_MAX / NATIVE_ALPHA_MAX)


def opacity_to_native(opacity: float) -> int:
    """Convert a 0-1 opacity to native alpha."""
    opacity = max(0.0, min(1.0, opacity))
    return round_half_up((1 - opacity) * NATIVE_ALPHA_MAX)


def native_to_opacity(native: int) -> float:
    """Convert native alpha to a 0-1 opacity."""
    return (NATIVE_ALPHA_MAX - native) / NATIVE_ALPHA_MAX


# Pillow alpha -> nearest Pillow alpha representable on the native scale
QUANTIZE_LUT = [from_native_alpha(to_native_alpha(value)) for value in range(PIL_ALPHA_MAX + 1)]


def native_lut(native_func) -> List[int]:
    """
    Build a Pillow alpha lookup table from a function on native alpha values.

    Args:
        native_func: Callable taking and returning native alpha (0-127)

    Returns:
        256-entry table usable with Image.point() on an alpha band
    """
    return [
        from_native_alpha(native_func(to_native_alpha(value)))
        for value in range(PIL_ALPHA_MAX + 1)
    ]


def get_palette_rgba(image: Image.Image) -> List[RGBA]:
    """Return the palette of a P image as a list of (R, G, B, A) tuples."""
    if image.palette is not None and image.palette.mode == TRUECOLOR_MODE:
        flat = image.getpalette(rawmode=TRUECOLOR_MODE) or []
        return [tuple(flat[i:i + 4]) for i in range(0, len(flat) - 3, 4)]
    # RGB palette, every entry opaque
    flat = image.getpalette() or []
    return [tuple(flat[i:i + 3]) + (PIL_ALPHA_MAX,) for i in range(0, len(flat) - 2, 3)]


def set_palette_rgba(image: Image.Image, entries: List[RGBA]) -> None:
    """Replace the palette of a P image with RGBA entries."""
    flat = []
    for entry in entries:
        flat.extend(entry)
    image.putpalette(flat, rawmode="RGBA")


def fold_palette_transparency(image: Image.Image) -> Image.Image:
    """
    Move a P image's "transparency" info into its palette alpha.

    Args:
        image: P mode image (modified in place)

    Returns:
        The same image, with an RGBA palette and no transparency info
    """
    transparency = image.info.pop("transparency", None)
    entries = get_palette_rgba(image)
    if transparency is not None:
        if isinstance(transparency, int):
            alphas = {transparency: 0}
        else:
            alphas = dict(enumerate(transparency))
        entries = [
            (r, g, b, alphas.get(index, a))
            for index, (r, g, b, a) in enumerate(entries)
        ]
    set_palette_rgba(image, [(r, g, b, QUANTIZE_LUT[a]) for r, g, b, a in entries])
    return image


def quantize_alpha(image: Image.Image) -> Image.Image:
    """
    Snap alpha to the 128 native levels.

    Args:
        image: RGBA or P image (modified in place)

    Returns:
        The same image
    """
    if image.mode == TRUECOLOR_MODE:
        image.putalpha(image.getchannel("A").point(QUANTIZE_LUT))
    elif image.mode == PALETTE_MODE:
        entries = get_palette_rgba(image)
        set_palette_rgba(image, [(r, g, b, QUANTIZE_LUT[a]) for r, g, b, a in entries])
    return image
