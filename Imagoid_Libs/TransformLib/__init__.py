"""
TransformLib - Image transformations

This module provides the transformation base class, the resize, alpha
and paste transformations, chains, the dict-config registry and the
image query parser.
"""

from Imagoid_Libs.TransformLib.transformation import Transformation, hash_signature, signature_value
from Imagoid_Libs.TransformLib.resize_transformation import ResizeMode, ResizeTransformation
from Imagoid_Libs.TransformLib.alpha_transformation import (
    AlphaOperator,
    AlphaStrategy,
    AlphaTransformation,
)
from Imagoid_Libs.TransformLib.paste_transformation import Anchor, PasteTransformation
from Imagoid_Libs.TransformLib.transformation_chain import TransformationChain
from Imagoid_Libs.TransformLib.transformation_registry import (
    TransformationRegistry,
    build_transformation,
    get_default_registry,
)
from Imagoid_Libs.TransformLib.image_query_parser import ImageQueryParser, parse_image_query

__all__ = [
    "Transformation",
    "hash_signature",
    "signature_value",
    "ResizeMode",
    "ResizeTransformation",
    "AlphaOperator",
    "AlphaStrategy",
    "AlphaTransformation",
    "Anchor",
    "PasteTransformation",
    "TransformationChain",
    "TransformationRegistry",
    "build_transformation",
    "get_default_registry",
    "ImageQueryParser",
    "parse_image_query",
]
