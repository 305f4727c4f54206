"""
Exception types raised by Imagoid.

Every error derives from ImagoidError and from the built-in exception
that describes the situation, so callers can catch either.
"""


class ImagoidError(Exception):
    """Base class for all Imagoid errors."""


class InvalidSpecError(ImagoidError, ValueError):
    """Malformed size, position, amount or mode text."""


class InvalidColorSyntaxError(InvalidSpecError):
    """Text that cannot be parsed as a color."""


class InvalidImageQueryError(InvalidSpecError):
    """Text that cannot be parsed as an image query."""


class InvalidDimensionsError(ImagoidError, ValueError):
    """Blank canvas requested with non-positive or non-integer size."""


class InvalidGeometryError(ImagoidError, ValueError):
    """A transformation computed a non-positive output size."""


class DecodeError(ImagoidError, OSError):
    """Image file is missing, unreadable or not PNG/JPEG/GIF."""


class EncodeError(ImagoidError, OSError):
    """Image could not be written or the format is unsupported."""


class MissingSourceImageError(ImagoidError, RuntimeError):
    """A paste was applied before an image to paste was set."""


class NotOpenError(ImagoidError, RuntimeError):
    """Pixel data requested from a resource with no buffer and no path."""
