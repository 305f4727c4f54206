"""
Image query parser.

A query is a short text naming a resize, as used in image URLs:

    "200"          - fit into 200x200
    "200x100"      - fit into 200x100
    "200 100 crop" - crop to exactly 200x100

Classes:
    ImageQueryParser: Turns query text into a transformation

Functions:
    parse_image_query: Parse with a shared parser instance
"""

import logging
import re
from typing import Optional

from Imagoid_Libs.errors import InvalidImageQueryError, InvalidSpecError
from Imagoid_Libs.TransformLib.resize_transformation import ResizeMode, ResizeTransformation
from Imagoid_Libs.TransformLib.transformation import Transformation

logger = logging.getLogger(__name__)

SQUARE_PATTERN = re.compile(r"^\d+$")
SIZE_PATTERN = re.compile(r"^(\d+)[\sx]+(\d+)(?:\s+([a-z]+))?$", re.IGNORECASE)


class ImageQueryParser:
    """Parse image queries into transformations."""

    def parse(self, query: Optional[str]) -> Optional[Transformation]:
        """
        Parse a query.

        Args:
            query: Query text

        Returns:
            Transformation, or None for an empty query

        Raises:
            InvalidImageQueryError: If the query is not understood
        """
        if query is None:
            return None
        text = str(query).strip()
        if not text:
            return None

        if SQUARE_PATTERN.match(text):
            size = int(text)
            return ResizeTransformation(size, size, ResizeMode.FIT)

        match = SIZE_PATTERN.match(text)
        if match:
            width, height, mode = match.groups()
            try:
                resize_mode = ResizeMode.parse(mode)
            except InvalidSpecError as e:
                raise InvalidImageQueryError(f"Invalid resize mode in image query {query!r}") from e
            return ResizeTransformation(int(width), int(height), resize_mode)

        logger.debug(f"Rejected image query {query!r}")
        raise InvalidImageQueryError(f"Invalid image query: {query!r}")


_default_parser = ImageQueryParser()


def parse_image_query(query: Optional[str]) -> Optional[Transformation]:
    """Parse a query with the shared parser. See ImageQueryParser.parse()."""
    return _default_parser.parse(query)
