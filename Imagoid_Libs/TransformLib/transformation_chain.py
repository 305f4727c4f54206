"""
An ordered sequence of transformations applied as one.

Each child is applied with its own apply(), so the image's signature
history records every step in order. The chain's own signature is
derived from the ordered child signatures.
"""

import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional

from Imagoid_Libs.constants import FIELD_PARAMS, FIELD_TYPE, TRANSFORMATION_CHAIN
from Imagoid_Libs.ImageEditingLib.image_resource import ImageResource
from Imagoid_Libs.TransformLib.transformation import Transformation, hash_signature

logger = logging.getLogger(__name__)


class TransformationChain(Transformation):
    """
    Apply several transformations in sequence.

    Example:
        >>> chain = TransformationChain([ResizeTransformation(200), AlphaTransformation("80%")])
        >>> chain.apply(ImageResource("photo.png"))
    """

    type_name = TRANSFORMATION_CHAIN

    def __init__(self, transformations: Optional[Iterable[Transformation]] = None):
        self.transformations: List[Transformation] = []
        self.setup(transformations)

    def setup(self, transformations: Optional[Iterable[Transformation]] = None) -> "TransformationChain":
        self.transformations = []
        for transformation in transformations or []:
            self.add(transformation)
        return self

    def reset(self) -> "TransformationChain":
        return self.setup()

    def add(self, transformation: Transformation) -> "TransformationChain":
        """Append a transformation. Returns self."""
        if not isinstance(transformation, Transformation):
            raise TypeError(f"Expected Transformation, got {type(transformation)}")
        self.transformations.append(transformation)
        return self

    def apply(self, image: ImageResource) -> ImageResource:
        """Apply every transformation in order. Each one records its own signature."""
        for transformation in self.transformations:
            transformation.apply(image)
        logger.debug(f"Applied chain of {len(self.transformations)} transformations to {image!r}")
        return image

    def apply_on_image(self, image: ImageResource) -> None:
        for transformation in self.transformations:
            transformation.apply(image)

    def get_signature(self) -> str:
        return hash_signature(
            TRANSFORMATION_CHAIN,
            *(transformation.get_signature() for transformation in self.transformations),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            FIELD_TYPE: TRANSFORMATION_CHAIN,
            FIELD_PARAMS: {
                "transformations": [transformation.to_dict() for transformation in self.transformations],
            },
        }

    def __len__(self) -> int:
        return len(self.transformations)

    def __iter__(self) -> Iterator[Transformation]:
        return iter(self.transformations)
