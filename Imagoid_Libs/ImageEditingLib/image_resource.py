"""
ImageResource - the image buffer wrapper used by every transformation.

An ImageResource owns at most one Pillow image. The buffer is either
truecolor (RGBA, alpha snapped to the 128 native levels) or palette
(P mode with an RGBA palette). Files are opened lazily: open() only records
the path, the file is decoded on first access to the pixels.

Each applied transformation appends its signature to the resource's
signature history, so get_signature() identifies both the source and
everything done to it.

Classes:
    ImageResource: Owner of one image buffer plus its metadata
"""

import hashlib
import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING, Any, List, Optional, Union

from PIL import Image, UnidentifiedImageError

from Imagoid_Libs.constants import (
    DEFAULT_OUTPUT_FORMAT,
    DEFAULT_PALETTE_COLORS,
    MAX_PALETTE_COLORS,
    PALETTE_MODE,
    SUPPORTED_FORMATS,
    TRUECOLOR_MODE,
)
from Imagoid_Libs.errors import (
    DecodeError,
    EncodeError,
    InvalidDimensionsError,
    NotOpenError,
)
from Imagoid_Libs.ImageEditingLib.alpha_scale import (
    QUANTIZE_LUT,
    fold_palette_transparency,
    native_to_opacity,
    quantize_alpha,
    set_palette_rgba,
    to_native_alpha,
)
from Imagoid_Libs.ImageEditingLib.color import Color, ColorInput
from Imagoid_Libs.ImageEditingLib.geometry_parsing import SizeSpec, parse_position, parse_size
from Imagoid_Libs.ImageEditingLib.image_formats import (
    EncodeOptions,
    encode_image,
    format_from_path,
    normalize_format,
)

if TYPE_CHECKING:
    from Imagoid_Libs.TransformLib.transformation import Transformation

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def normalize_buffer(image: Image.Image) -> Image.Image:
    """
    Return a copy of image as RGBA, or as P with an RGBA palette.

    Args:
        image: Any Pillow image

    Returns:
        New image in one of the two buffer layouts
    """
    if image.mode == PALETTE_MODE:
        return fold_palette_transparency(image.copy())
    return quantize_alpha(image.convert(TRUECOLOR_MODE))


def _adopted_buffer(image: Image.Image) -> Image.Image:
    # RGBA and P buffers are fixed up in place, anything else is converted
    if image.mode == TRUECOLOR_MODE:
        return quantize_alpha(image)
    if image.mode == PALETTE_MODE:
        return fold_palette_transparency(image)
    return normalize_buffer(image)


def _buffer_identity(image: Image.Image) -> str:
    """Content digest identifying an image that has no file behind it."""
    digest = hashlib.md5(f"{image.mode}:{image.size[0]}x{image.size[1]}:".encode("utf-8"))
    if image.mode == PALETTE_MODE:
        digest.update(bytes(image.getpalette(rawmode=TRUECOLOR_MODE) or []))
    digest.update(image.tobytes())
    return f"buffer:{digest.hexdigest()}"


def _validate_dimension(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidDimensionsError(f"{name} must be a positive integer, got {value!r}")
    if isinstance(value, float):
        if not value.is_integer():
            raise InvalidDimensionsError(f"{name} must be a positive integer, got {value!r}")
        value = int(value)
    if value <= 0:
        raise InvalidDimensionsError(f"{name} must be a positive integer, got {value!r}")
    return value


class ImageResource:
    """
    Wrapper around one image buffer.

    Construct with a file path (opened lazily), a Pillow image (adopted) or
    another ImageResource (deep copy including metadata and signature history).
    Can be used as a context manager; the buffer is released on exit.

    Attributes:
        path: File the image came from, or None for blank canvases
        original_format: "PNG", "JPEG" or "GIF" of the source file, None for in-memory images
        signature_history: Signatures of the transformations applied so far
    """

    def __init__(self, init_with: Union[PathLike, Image.Image, "ImageResource", None] = None):
        self._image: Optional[Image.Image] = None
        self._source_identity: Optional[str] = None
        self.path: Optional[str] = None
        self._original_format: Optional[str] = None
        self.signature_history: List[str] = []

        if init_with is None:
            return
        if isinstance(init_with, ImageResource):
            self.load_without_resource(init_with)
            self._source_identity = init_with._source_identity
            self.signature_history = list(init_with.signature_history)
            if init_with._image is not None:
                self._image = init_with._image.copy()
        elif isinstance(init_with, Image.Image):
            self._adopt(init_with)
        elif isinstance(init_with, (str, Path)):
            self.open(init_with)
        else:
            raise TypeError(f"Cannot create ImageResource from {type(init_with)}")

    def _adopt(self, image: Image.Image) -> None:
        self._image = _adopted_buffer(image)
        self._source_identity = _buffer_identity(self._image)

    # Construction

    @classmethod
    def create(
        cls,
        width: int,
        height: Optional[int] = None,
        color: ColorInput = Color.TRANSPARENT,
    ) -> "ImageResource":
        """
        Create a blank truecolor canvas.

        Args:
            width: Canvas width in pixels
            height: Canvas height in pixels (None = same as width)
            color: Fill color (default transparent white)

        Returns:
            New ImageResource with no path

        Raises:
            InvalidDimensionsError: If a dimension is not a positive integer
        """
        width = _validate_dimension(width, "Width")
        height = width if height is None else _validate_dimension(height, "Height")
        fill = Color.build(color)
        r, g, b, a = fill.get_rgba_bytes()

        resource = cls(Image.new(TRUECOLOR_MODE, (width, height), (r, g, b, QUANTIZE_LUT[a])))
        resource._source_identity = f"create:{width}:{height}:{fill.get_hex()}"
        return resource

    @staticmethod
    def create_resource_clone(image: Image.Image) -> Image.Image:
        """Return a truecolor copy of a Pillow image that shares no data with it."""
        if not isinstance(image, Image.Image):
            raise TypeError(f"Expected PIL Image, got {type(image)}")
        return image.convert(TRUECOLOR_MODE)

    def clone(self) -> "ImageResource":
        """Deep copy: buffer, metadata and signature history."""
        return ImageResource(self)

    def __copy__(self) -> "ImageResource":
        return self.clone()

    def clone_without_resource(self) -> "ImageResource":
        """Copy of the path and format, with no buffer."""
        return ImageResource().load_without_resource(self)

    def load_without_resource(self, other: "ImageResource") -> "ImageResource":
        """Take path and original format from other, keeping own buffer."""
        self.path = other.path
        self._original_format = other._original_format
        return self

    def create_blank_clone(self, color: ColorInput = Color.TRANSPARENT) -> "ImageResource":
        """Blank canvas with this image's size and metadata."""
        blank = ImageResource.create(self.get_width(), self.get_height(), color)
        blank.load_without_resource(self)
        return blank

    # Buffer lifecycle

    def open(self, path: PathLike) -> "ImageResource":
        """
        Record the file to work with. The file is decoded on first use.

        Any buffer held so far is released and the signature history cleared.
        """
        self._release()
        self._source_identity = None
        self.signature_history = []
        self._original_format = None
        self.path = str(path)
        return self

    def is_open(self) -> bool:
        """Check if a buffer is currently held."""
        return self._image is not None

    @property
    def original_format(self) -> Optional[str]:
        """Format of the source file. Reading it decodes the file if that has not happened yet."""
        if self._original_format is None and self._image is None and self.path:
            self._read_from_file()
        return self._original_format

    def get_buffer(self) -> Image.Image:
        """
        Get the Pillow image, decoding the file first if necessary.

        Raises:
            NotOpenError: If there is no buffer and no path
            DecodeError: If the file cannot be decoded
        """
        if self._image is None:
            self._read_from_file()
        return self._image

    def _read_from_file(self) -> None:
        if not self.path:
            raise NotOpenError("Could not open image, no file path was given")

        path = Path(self.path)
        if not path.is_file():
            raise DecodeError(f"Could not open image, file not found: {path}")

        try:
            source = Image.open(path)
        except (UnidentifiedImageError, OSError) as e:
            raise DecodeError(f"Could not open image, {path} is not a supported image file: {str(e)}") from e

        with source:
            if source.format not in SUPPORTED_FORMATS:
                raise DecodeError(f"Could not open image, {path} is {source.format} (supported: png, gif, jpg)")
            try:
                source.load()
            except (OSError, ValueError) as e:
                raise DecodeError(f"Could not read {path}, file is corrupt: {str(e)}") from e
            self._original_format = source.format
            self._image = normalize_buffer(source)

        logger.debug(f"Decoded {self._original_format} image {path} ({self._image.size[0]}x{self._image.size[1]})")

    def inject_resource(self, new_resource: Union["ImageResource", Image.Image]) -> "ImageResource":
        """
        Replace this object's buffer and release the old one.

        When new_resource is an ImageResource, its buffer is moved here and it
        no longer references it, so no two resources share one buffer. A
        Pillow image is normalized to RGBA, or P with an RGBA palette, first.

        Returns:
            self
        """
        if isinstance(new_resource, ImageResource):
            buffer = new_resource.get_buffer()
            new_resource._image = None
        elif isinstance(new_resource, Image.Image):
            buffer = _adopted_buffer(new_resource)
        else:
            raise TypeError(f"inject_resource requires an image, got {type(new_resource)}")

        old = self._image
        self._image = buffer
        if old is not None and old is not buffer:
            old.close()
        return self

    def _release(self) -> None:
        if self._image is not None:
            self._image.close()
            self._image = None

    def destroy(self) -> "ImageResource":
        """Release the buffer and forget path, format and signature history."""
        self._release()
        self._source_identity = None
        self.path = None
        self._original_format = None
        self.signature_history = []
        return self

    def __enter__(self) -> "ImageResource":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.destroy()

    # Buffer layout

    def is_true_color(self) -> bool:
        return self.get_buffer().mode == TRUECOLOR_MODE

    def to_true_color(self) -> "ImageResource":
        """Convert a palette buffer to truecolor. Does nothing on truecolor buffers."""
        image = self.get_buffer()
        if image.mode != TRUECOLOR_MODE:
            self.inject_resource(quantize_alpha(image.convert(TRUECOLOR_MODE)))
        return self

    def to_palette(self, max_colors: int = DEFAULT_PALETTE_COLORS, dither: bool = False) -> "ImageResource":
        """
        Convert a truecolor buffer to at most max_colors palette entries.

        Destroys alpha information, so call it after any alpha-dependent
        transformation, never before. Palette buffers are left untouched.
        """
        image = self.get_buffer()
        if image.mode == TRUECOLOR_MODE:
            colors = max(1, min(MAX_PALETTE_COLORS, int(max_colors or DEFAULT_PALETTE_COLORS)))
            dither_mode = Image.Dither.FLOYDSTEINBERG if dither else Image.Dither.NONE
            paletted = image.convert("RGB").quantize(colors=colors, dither=dither_mode)
            self.inject_resource(fold_palette_transparency(paletted))
        return self

    def to_palette_grayscale(self, do_grayscaling: bool = False) -> "ImageResource":
        """
        Convert to a 256-level grayscale palette.

        Every gray level gets its own entry so no shade is lost. Transparency
        is discarded. With do_grayscaling=False the image is assumed to be
        gray already.
        """
        image = self.get_buffer()
        if image.mode == PALETTE_MODE and not do_grayscaling:
            return self

        gray = image.convert("L")
        paletted = Image.frombytes(PALETTE_MODE, gray.size, gray.tobytes())
        set_palette_rgba(paletted, [(level, level, level, 255) for level in range(MAX_PALETTE_COLORS)])
        self.inject_resource(paletted)
        return self

    # Geometry and pixels

    def get_width(self) -> int:
        return self.get_buffer().size[0]

    def get_height(self) -> int:
        return self.get_buffer().size[1]

    def calculate_width(self, spec: SizeSpec = None) -> int:
        """Resolve a size spec against the current width."""
        return parse_size(spec, self.get_width())

    def calculate_height(self, spec: SizeSpec = None) -> int:
        """Resolve a size spec against the current height."""
        return parse_size(spec, self.get_height())

    def get_pixel(self, x: SizeSpec, y: SizeSpec) -> Color:
        """
        Get the color at a position.

        Args:
            x: Position spec resolved against the width ("center", "10%", 5 ...)
            y: Position spec resolved against the height

        Returns:
            Color of the pixel

        Raises:
            IndexError: If the position lies outside the image
        """
        image = self.get_buffer()
        px = parse_position(x, image.size[0])
        py = parse_position(y, image.size[1])
        if not (0 <= px < image.size[0] and 0 <= py < image.size[1]):
            raise IndexError(f"Pixel ({px}, {py}) is outside the {image.size[0]}x{image.size[1]} image")

        r, g, b, a = image.crop((px, py, px + 1, py + 1)).convert(TRUECOLOR_MODE).getpixel((0, 0))
        return Color([r / 255, g / 255, b / 255, native_to_opacity(to_native_alpha(a))])

    # Output

    def guess_format(self, filename: Optional[PathLike] = None, default: Optional[str] = None) -> str:
        """
        Decide the output format.

        Order: filename extension, default, original format (or the source
        path's extension), JPEG.
        """
        guessed = format_from_path(filename)
        if guessed:
            return guessed
        if default:
            normalized = normalize_format(default)
            if normalized:
                return normalized
        if self._original_format:
            return self._original_format
        return format_from_path(self.path) or DEFAULT_OUTPUT_FORMAT

    def prepare_filename(self, path: Optional[PathLike] = None) -> Path:
        """
        Resolve the file to write to.

        None means the source path. An existing directory receives the
        source file's basename.

        Raises:
            EncodeError: If no file name can be decided
        """
        if not path:
            if self.path:
                return Path(self.path)
            raise EncodeError("Image is not from a file, a target path must be given")

        target = Path(path)
        if target.is_dir():
            if not self.path:
                raise EncodeError(f"Image is not from a file, cannot save into directory {target}")
            target = target / Path(self.path).name
            if target.is_dir():
                raise EncodeError(f"Target {target} is a directory")
        return target

    def get_bytes(self, image_format: Optional[str] = None, quality: Optional[int] = None) -> bytes:
        """
        Encode the image.

        Args:
            image_format: "PNG", "JPEG", "GIF" or an extension (None = original or JPEG)
            quality: JPEG quality 0-100 or PNG compression 0-9

        Returns:
            Encoded file contents

        Raises:
            EncodeError: If the format is unsupported or encoding fails
        """
        if image_format:
            target_format = normalize_format(image_format)
            if target_format is None:
                raise EncodeError(f"Unsupported output format: {image_format!r}")
        else:
            target_format = self.guess_format()
        return encode_image(self.get_buffer(), EncodeOptions(image_format=target_format, quality=quality))

    def save(
        self,
        path: Optional[PathLike] = None,
        quality: Optional[int] = None,
        image_format: Optional[str] = None,
    ) -> "ImageResource":
        """
        Write the image to a file.

        If the file was never decoded and the target has the same format as
        the source, the source file is copied instead of re-encoded. Saving
        an untouched file onto itself does nothing.

        Args:
            path: Target file or directory (None = overwrite the source)
            quality: JPEG quality 0-100 or PNG compression 0-9
            image_format: Output format (None = guessed from the target name)

        Returns:
            self

        Raises:
            EncodeError: If the file cannot be written
        """
        target = self.prepare_filename(path)
        target_format = normalize_format(image_format) if image_format else self.guess_format(target)
        if target_format is None:
            raise EncodeError(f"Unsupported output format: {image_format!r}")

        if self._image is None and self.path:
            source = Path(self.path)
            if target == source:
                return self
            if quality is None and self.guess_format(source) == target_format:
                if not source.is_file():
                    raise DecodeError(f"Could not copy image, file not found: {source}")
                try:
                    shutil.copyfile(source, target)
                except OSError as e:
                    raise EncodeError(f"Could not write file {target}: {str(e)}") from e
                logger.info(f"Copied {source} to {target}")
                return self

        data = self.get_bytes(target_format, quality)
        try:
            target.write_bytes(data)
        except OSError as e:
            raise EncodeError(f"Could not write file {target}: {str(e)}") from e
        logger.info(f"Saved {target_format} image to {target}")
        return self

    # Signatures

    def add_to_signature(self, fragment: str) -> "ImageResource":
        """Record a transformation signature. Called whenever a transformation is applied."""
        self.signature_history.append(fragment)
        return self

    def clear_signature_history(self) -> "ImageResource":
        """Forget applied transformations, as if the image was freshly opened."""
        self.signature_history = []
        return self

    def get_signature(self) -> str:
        """Fingerprint of the source plus every transformation applied to it."""
        identity = self.path or self._source_identity or ""
        base = f"image:{identity}:" + ":".join(self.signature_history)
        return hashlib.md5(base.encode("utf-8")).hexdigest()

    def apply(self, transformation: "Transformation") -> "ImageResource":
        """Apply a transformation to this image. Returns self."""
        transformation.apply(self)
        return self

    def __repr__(self) -> str:
        state = f"{self._image.size[0]}x{self._image.size[1]} {self._image.mode}" if self._image else "unopened"
        return f"ImageResource(path={self.path!r}, {state})"
