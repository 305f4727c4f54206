"""
Pytest configuration and shared fixtures for Imagoid tests.

This module provides sample image files and canvases used across
multiple test modules.
"""

import pytest
from PIL import Image

from Imagoid_Libs.ImageEditingLib.color import Color
from Imagoid_Libs.ImageEditingLib.image_resource import ImageResource


def make_image_with_opacity(opacity, size=4, color="#ff0000"):
    """
    Create a truecolor ImageResource filled with one color at the given opacity.

    Args:
        opacity: Opacity 0-1
        size: Width and height
        color: RGB part of the fill

    Returns:
        New ImageResource
    """
    fill = Color(color)
    fill.a = opacity
    return ImageResource.create(size, size, fill)


def make_alpha_gradient(width=16, height=16):
    """Create an RGBA Pillow image whose alpha runs through every 0-255 level."""
    image = Image.new("RGBA", (width, height))
    image.putdata([
        (200, 100, 50, (x + y * width) % 256)
        for y in range(height)
        for x in range(width)
    ])
    return image


@pytest.fixture
def png_path(tmp_path):
    """
    Provide a 40x30 white PNG with a blue bottom-right pixel.

    Args:
        tmp_path: Pytest's built-in temporary directory fixture

    Returns:
        Path to the PNG file
    """
    image = Image.new("RGBA", (40, 30), (255, 255, 255, 255))
    image.putpixel((39, 29), (0, 0, 255, 255))
    path = tmp_path / "sample.png"
    image.save(path, format="PNG")
    return path


@pytest.fixture
def jpeg_path(tmp_path):
    """Provide a 20x10 solid gray JPEG."""
    path = tmp_path / "sample.jpg"
    Image.new("RGB", (20, 10), (128, 128, 128)).save(path, format="JPEG", quality=95)
    return path


@pytest.fixture
def gif_path(tmp_path):
    """
    Provide a 10x10 palette GIF: left half transparent (index 1), right half red.

    Returns:
        Path to the GIF file
    """
    image = Image.new("P", (10, 10), 0)
    palette = [255, 0, 0, 0, 255, 0] + [0, 0, 0] * 254
    image.putpalette(palette)
    image.paste(1, (0, 0, 5, 10))
    path = tmp_path / "sample.gif"
    image.save(path, format="GIF", transparency=1)
    return path


@pytest.fixture
def red_square():
    """Provide a 20x20 opaque red ImageResource."""
    return ImageResource.create(20, 20, "#ff0000")


@pytest.fixture
def transparent_canvas():
    """Provide a 100x100 fully transparent ImageResource."""
    return ImageResource.create(100, 100)


@pytest.fixture
def image_with_opacity():
    """Provide make_image_with_opacity() as a factory fixture."""
    return make_image_with_opacity


@pytest.fixture
def alpha_gradient():
    """Provide a 16x16 RGBA Pillow image covering every alpha level."""
    return make_alpha_gradient()
