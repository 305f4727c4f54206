"""
Base class for every Imagoid transformation.

A transformation is configured once (constructor or setup()) and can then
be applied to any number of images. apply() modifies the image in place and
records the transformation's signature in the image's signature history.
get_signature() depends on configuration only, so it can serve as a cache key.
"""

import hashlib
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict

from Imagoid_Libs.ImageEditingLib.image_resource import ImageResource

logger = logging.getLogger(__name__)


def hash_signature(*parts: Any) -> str:
    """md5 of the string forms of parts joined with ":"."""
    base = ":".join("" if part is None else str(part) for part in parts)
    return hashlib.md5(base.encode("utf-8")).hexdigest()


def signature_value(spec: Any) -> Any:
    """Canonical form of a size or position spec, so 100, 100.0 and " 100 " hash alike."""
    if isinstance(spec, bool):
        return spec
    if isinstance(spec, float) and spec.is_integer():
        return int(spec)
    if isinstance(spec, str):
        return spec.strip().lower()
    return spec


class Transformation(ABC):
    """
    An operation on an ImageResource.

    Subclasses implement apply_on_image(); callers use apply() or apply_copy().
    """

    type_name = ""

    def apply(self, image: ImageResource) -> ImageResource:
        """
        Apply the transformation to image.

        Args:
            image: Image to modify in place

        Returns:
            The same image
        """
        self.apply_on_image(image)
        signature = self.get_signature()
        image.add_to_signature(signature)
        logger.debug(f"Applied {type(self).__name__} ({signature}) to {image!r}")
        return image

    def apply_copy(self, image: ImageResource) -> ImageResource:
        """Apply the transformation to a clone of image. The original stays untouched."""
        return self.apply(image.clone())

    def __call__(self, image: ImageResource) -> ImageResource:
        return self.apply(image)

    @abstractmethod
    def apply_on_image(self, image: ImageResource) -> None:
        """Modify the image's buffer. Called by apply()."""

    @abstractmethod
    def setup(self, *args: Any, **kwargs: Any) -> "Transformation":
        """Configure the transformation. Returns self."""

    @abstractmethod
    def reset(self) -> "Transformation":
        """Return to the default configuration. Returns self."""

    @abstractmethod
    def get_signature(self) -> str:
        """Stable fingerprint of the configuration."""

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """Serialize the configuration as {"type": ..., "params": {...}}."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.to_dict().get('params', {})!r})"
