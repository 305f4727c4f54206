"""
Tests for PasteTransformation.

Tests cover:
- Centered, anchored and offset positions
- Clipping at the target edges
- Resizing and opacity of the pasted image
- One-time preprocessing of the pasted image
- Errors for missing images and invalid anchors
- Signatures
"""

import pytest
from PIL import Image

from Imagoid_Libs.errors import InvalidSpecError, MissingSourceImageError
from Imagoid_Libs.ImageEditingLib.image_resource import ImageResource
from Imagoid_Libs.TransformLib.alpha_transformation import AlphaTransformation
from Imagoid_Libs.TransformLib.paste_transformation import Anchor, PasteTransformation, calculate_position
from Imagoid_Libs.TransformLib.resize_transformation import ResizeTransformation


def _is_red(image, x, y):
    return image.get_pixel(x, y).is_same_as("#ff0000")


def _is_clear(image, x, y):
    return image.get_pixel(x, y).a == 0


class TestPositioning:
    """Tests for where the image lands."""

    def test_centered_by_default(self, red_square, transparent_canvas):
        """Test a 20x20 image is centered on a 100x100 canvas."""
        PasteTransformation(red_square).apply(transparent_canvas)
        assert _is_red(transparent_canvas, 40, 40)
        assert _is_red(transparent_canvas, 59, 59)
        assert _is_clear(transparent_canvas, 39, 39)
        assert _is_clear(transparent_canvas, 60, 60)

    def test_top_left(self, red_square, transparent_canvas):
        """Test left/top anchors place the corner at the position."""
        PasteTransformation(red_square).set_position(10, 10).apply(transparent_canvas)
        assert _is_red(transparent_canvas, 10, 10)
        assert _is_red(transparent_canvas, 29, 29)
        assert _is_clear(transparent_canvas, 9, 9)
        assert _is_clear(transparent_canvas, 30, 30)

    def test_bottom_right(self, red_square, transparent_canvas):
        """Test right/bottom anchors measure from the far edges."""
        paste = PasteTransformation(red_square).set_position(10, 10, "right", "bottom")
        paste.apply(transparent_canvas)
        assert _is_red(transparent_canvas, 70, 70)
        assert _is_red(transparent_canvas, 89, 89)
        assert _is_clear(transparent_canvas, 90, 90)
        assert _is_clear(transparent_canvas, 69, 69)

    def test_compound_spec(self, red_square, transparent_canvas):
        """Test "center-10" with a left anchor."""
        paste = PasteTransformation(red_square).set_position("center-10", "50%", "left", "center")
        paste.apply(transparent_canvas)
        assert _is_red(transparent_canvas, 40, 40)
        assert _is_clear(transparent_canvas, 39, 50)
        assert _is_red(transparent_canvas, 59, 50)

    def test_calculate_position(self):
        """Test the per-axis position rule."""
        assert calculate_position(10, Anchor.LEFT, 100, 20) == 10
        assert calculate_position("50%", Anchor.CENTER, 100, 20) == 40
        assert calculate_position(10, Anchor.RIGHT, 100, 20) == 70


class TestClipping:
    """Tests for images reaching past the target edges."""

    def test_negative_offset(self, red_square, transparent_canvas):
        """Test a partly outside image is clipped at the top-left."""
        PasteTransformation(red_square).set_position("0-10", "0-10").apply(transparent_canvas)
        assert _is_red(transparent_canvas, 0, 0)
        assert _is_red(transparent_canvas, 9, 9)
        assert _is_clear(transparent_canvas, 10, 10)

    def test_overflow(self, red_square, transparent_canvas):
        """Test a partly outside image is clipped at the bottom-right."""
        PasteTransformation(red_square).set_position(90, 90).apply(transparent_canvas)
        assert _is_red(transparent_canvas, 99, 99)
        assert _is_clear(transparent_canvas, 89, 89)

    def test_fully_outside(self, red_square, transparent_canvas):
        """Test an image entirely outside changes nothing but the history."""
        before = transparent_canvas.get_buffer().tobytes()
        paste = PasteTransformation(red_square).set_position(200, 200)
        paste.apply(transparent_canvas)
        assert transparent_canvas.get_buffer().tobytes() == before
        assert transparent_canvas.signature_history == [paste.get_signature()]


class TestPastedImage:
    """Tests for size, opacity and preprocessing of the pasted image."""

    def test_resized(self, red_square, transparent_canvas):
        """Test the pasted image can be enlarged."""
        PasteTransformation(red_square, 50, 50).apply(transparent_canvas)
        assert _is_red(transparent_canvas, 25, 25)
        assert _is_red(transparent_canvas, 74, 74)
        assert _is_clear(transparent_canvas, 24, 24)
        assert _is_clear(transparent_canvas, 75, 75)

    def test_percentage_size(self, red_square, transparent_canvas):
        """Test size percentages are measured against the target."""
        PasteTransformation(red_square, "50%").apply(transparent_canvas)
        assert _is_red(transparent_canvas, 25, 25)
        assert _is_clear(transparent_canvas, 24, 24)

    def test_opacity(self, red_square):
        """Test a half-opaque red over white gives pink."""
        canvas = ImageResource.create(100, 100, "#ffffff")
        PasteTransformation(red_square, alpha="50%").apply(canvas)
        pixel = canvas.get_pixel("center", "center")
        assert pixel.a == 1
        assert pixel.is_same_as("#ff8080", 0.02)

    def test_source_untouched(self, red_square, transparent_canvas):
        """Test the given image is never modified."""
        PasteTransformation(red_square, 50, 50, "50%").apply(transparent_canvas)
        assert red_square.get_width() == 20
        assert red_square.get_pixel(0, 0).a == 1
        assert red_square.signature_history == []

    def test_pil_source_untouched(self, transparent_canvas):
        """Test a Pillow source image is copied."""
        source = Image.new("RGBA", (20, 20), (255, 0, 0, 128))
        PasteTransformation(source).apply(transparent_canvas)
        assert source.getpixel((0, 0)) == (255, 0, 0, 128)

    def test_path_source(self, png_path, transparent_canvas):
        """Test an image file can be pasted."""
        PasteTransformation(str(png_path)).set_position(0, 0).apply(transparent_canvas)
        assert transparent_canvas.get_pixel(0, 0).is_same_as("#ffffff")
        assert transparent_canvas.get_pixel(39, 29).is_same_as("#0000ff")

    def test_preprocessed_once(self, red_square):
        """Test queued transformations run once across several targets."""
        paste = PasteTransformation(red_square)
        paste.add_transformation(AlphaTransformation("*=50%"))
        first = paste.get_processed_image()
        assert paste.get_processed_image() is first

        canvases = [ImageResource.create(100, 100), ImageResource.create(100, 100)]
        for canvas in canvases:
            paste.apply(canvas)
        assert canvases[0].get_pixel(50, 50).a == canvases[1].get_pixel(50, 50).a
        assert abs(canvases[0].get_pixel(50, 50).a - 0.5) <= 1 / 127

    def test_queued_resize(self, red_square, transparent_canvas):
        """Test a queued resize shrinks the pasted image."""
        paste = PasteTransformation(red_square).add_transformation(ResizeTransformation(10))
        paste.set_position(0, 0).apply(transparent_canvas)
        assert _is_red(transparent_canvas, 9, 9)
        assert _is_clear(transparent_canvas, 10, 10)

    def test_palette_target(self, red_square, gif_path):
        """Test pasting onto a palette image makes it truecolor."""
        target = ImageResource(gif_path)
        PasteTransformation(red_square).set_position(0, 0).apply(target)
        assert target.get_buffer().mode == "RGBA"
        assert _is_red(target, 0, 0)


class TestPasteErrors:
    """Tests for rejected configurations."""

    def test_missing_image(self, transparent_canvas):
        """Test applying without an image raises."""
        with pytest.raises(MissingSourceImageError):
            PasteTransformation().apply(transparent_canvas)

    def test_invalid_alpha(self, red_square):
        """Test invalid opacity fails early."""
        with pytest.raises(InvalidSpecError):
            PasteTransformation(red_square, alpha="lots")

    def test_add_non_transformation(self, red_square):
        """Test only transformations can be queued."""
        with pytest.raises(TypeError):
            PasteTransformation(red_square).add_transformation("resize")


class TestAnchor:
    """Tests for Anchor.parse()."""

    def test_aliases(self):
        """Test keywords and abbreviations."""
        assert Anchor.parse("l") == Anchor.LEFT
        assert Anchor.parse("Bottom") == Anchor.RIGHT
        assert Anchor.parse("middle") == Anchor.CENTER
        assert Anchor.parse(2) == Anchor.CENTER

    def test_invalid(self):
        """Test unknown anchors raise."""
        with pytest.raises(InvalidSpecError):
            Anchor.parse("x")
        with pytest.raises(InvalidSpecError):
            Anchor.parse(4)


class TestPasteSignature:
    """Tests for paste signatures."""

    def test_stable_across_apply(self, red_square, transparent_canvas):
        """Test applying does not change the signature."""
        paste = PasteTransformation(red_square, alpha="50%")
        before = paste.get_signature()
        paste.apply(transparent_canvas)
        assert paste.get_signature() == before

    def test_configuration_matters(self, red_square):
        """Test position, opacity, image and queued steps change the signature."""
        base = PasteTransformation(red_square).get_signature()
        assert PasteTransformation(red_square).set_position(1, 1).get_signature() != base
        assert PasteTransformation(red_square, alpha="50%").get_signature() != base
        assert PasteTransformation(ImageResource.create(20, 20, "#00ff00")).get_signature() != base
        queued = PasteTransformation(red_square).add_transformation(AlphaTransformation("50%"))
        assert queued.get_signature() != base

    def test_equivalent_settings(self, red_square):
        """Test equivalent opacity and size values share a signature."""
        assert PasteTransformation(red_square, alpha=1).get_signature() == \
            PasteTransformation(red_square, alpha="100%").get_signature()
        assert PasteTransformation(red_square, alpha=0.5).get_signature() == \
            PasteTransformation(red_square, alpha="50%").get_signature()
        assert PasteTransformation(red_square, 50).get_signature() == \
            PasteTransformation(red_square, 50.0).get_signature()

    def test_same_configuration(self, red_square):
        """Test equal configurations share a signature."""
        assert PasteTransformation(red_square, 50).get_signature() == \
            PasteTransformation(red_square.clone(), 50).get_signature()
