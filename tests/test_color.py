"""
Tests for Color parsing, arithmetic and comparison.

Tests cover:
- Parsing hex, rgb(), rgba() and number strings
- Channel normalization and clamping
- Serialization to hex, rgb() and percentages
- Lighten, darken, opacity, mix and channel arithmetic
- Tolerance-based comparison
"""

import unittest

from Imagoid_Libs.errors import InvalidColorSyntaxError
from Imagoid_Libs.ImageEditingLib.color import Color, normalise_number


class TestNormaliseNumber(unittest.TestCase):
    """Test conversion of parsable numbers to the 0-1 scale."""

    def test_unit_scale_kept(self):
        """Test numbers up to 1 are taken as is."""
        self.assertEqual(normalise_number(0.5), 0.5)
        self.assertEqual(normalise_number(1), 1.0)

    def test_byte_scale(self):
        """Test numbers above 1 use the 0-255 scale."""
        self.assertAlmostEqual(normalise_number(255), 1.0)
        self.assertAlmostEqual(normalise_number(51), 0.2)
        self.assertEqual(normalise_number(300), 1.0)

    def test_percentage(self):
        """Test percentage strings."""
        self.assertAlmostEqual(normalise_number("50%"), 0.5)
        self.assertAlmostEqual(normalise_number("100%"), 1.0)

    def test_hex_digits(self):
        """Test one and two hexadecimal digits."""
        self.assertAlmostEqual(normalise_number("ff"), 1.0)
        self.assertAlmostEqual(normalise_number("f"), 1.0)

    def test_negative(self):
        """Test negatives are clamped unless allowed."""
        self.assertEqual(normalise_number(-1), 0.0)
        self.assertEqual(normalise_number(-0.5, allow_negative=True), -0.5)
        self.assertAlmostEqual(normalise_number(-51, allow_negative=True), -0.2)

    def test_invalid(self):
        """Test unparsable values raise."""
        with self.assertRaises(InvalidColorSyntaxError):
            normalise_number("banana")
        with self.assertRaises(InvalidColorSyntaxError):
            normalise_number(None)


class TestColorParsing(unittest.TestCase):
    """Test building colors from strings and values."""

    def test_rgba_to_hex(self):
        """Test rgba() with a 0-1 alpha serializes to 8-digit hex."""
        self.assertEqual(Color("rgba(255,0,0,0.5)").get_hex(), "#ff000080")

    def test_default_is_opaque_white(self):
        """Test a color without arguments is opaque white."""
        color = Color()
        self.assertEqual(color.get_hex(), "#ffffff")
        self.assertEqual(color.a, 1.0)

    def test_short_hex(self):
        """Test 3 and 4 digit hex."""
        self.assertEqual(Color("#f00").get_hex(), "#ff0000")
        self.assertEqual(Color("#f008").get_hex(), "#ff000088")

    def test_grayscale_hex(self):
        """Test 1 and 2 digit hex give opaque gray."""
        self.assertEqual(Color("#80").get_hex(), "#808080")
        self.assertEqual(Color("#f").get_hex(), "#ffffff")

    def test_long_hex(self):
        """Test 6 and 8 digit hex, case insensitive."""
        self.assertEqual(Color("#123456").get_hex(), "#123456")
        self.assertEqual(Color("#AABBCC00").get_hex(), "#aabbcc00")

    def test_invalid_hex_length(self):
        """Test 5 and 7 digit hex raise."""
        with self.assertRaises(InvalidColorSyntaxError):
            Color("#12345")
        with self.assertRaises(InvalidColorSyntaxError):
            Color("#1234567")

    def test_rgb_percentages(self):
        """Test rgb() with percentages and whitespace."""
        self.assertEqual(Color("rgb(100%, 0, 50%)").get_hex(), "#ff0080")

    def test_number_string_is_gray(self):
        """Test a bare number string is a gray level."""
        self.assertEqual(Color("0.5").get_hex(), "#808080")

    def test_invalid_string(self):
        """Test garbage raises a ValueError subclass."""
        with self.assertRaises(InvalidColorSyntaxError):
            Color("not a color")
        with self.assertRaises(ValueError):
            Color("rgb(1,2)")

    def test_separate_channels(self):
        """Test three and four channel arguments."""
        self.assertEqual(Color(255, 0, 0).get_hex(), "#ff0000")
        self.assertEqual(Color(0, 0, 1, 0.5).get_hex(), "#0000ff80")

    def test_sequence(self):
        """Test list input."""
        self.assertEqual(Color([0, 0, 1]).get_hex(), "#0000ff")

    def test_copy_from_color(self):
        """Test building from another color copies it."""
        original = Color("#123456")
        copy = Color(original)
        copy.r = 0
        self.assertEqual(original.get_hex(), "#123456")

    def test_parse_and_build(self):
        """Test the classmethod constructors."""
        self.assertEqual(Color.parse("#00ff00").get_hex(), "#00ff00")
        existing = Color("#00ff00")
        self.assertIs(Color.build(existing), existing)
        self.assertEqual(Color.build("#0000ff").get_hex(), "#0000ff")


class TestColorChannels(unittest.TestCase):
    """Test channel setters and serialization."""

    def test_setters_normalize_and_clamp(self):
        """Test setters accept any parsable number and clamp to 0-1."""
        color = Color()
        color.r = 300
        color.g = "50%"
        color.b = -5
        color.a = 51
        self.assertEqual(color.r, 1.0)
        self.assertAlmostEqual(color.g, 0.5)
        self.assertEqual(color.b, 0.0)
        self.assertAlmostEqual(color.a, 0.2)

    def test_get_rgb(self):
        """Test rgb() and rgba() output."""
        self.assertEqual(Color("#ff0000").get_rgb(), "rgb(255,0,0)")
        self.assertEqual(Color("rgba(255,0,0,0.5)").get_rgb(), "rgba(255,0,0,128)")

    def test_get_rgb_percentage(self):
        """Test percentage output."""
        self.assertEqual(Color("#ff0000").get_rgb_percentage(), "rgb(100%,0,0)")

    def test_get_rgba_bytes(self):
        """Test byte tuple output."""
        self.assertEqual(Color("#ff000080").get_rgba_bytes(), (255, 0, 0, 128))

    def test_str(self):
        """Test str() is the hex form."""
        self.assertEqual(str(Color("#abc")), "#aabbcc")


class TestColorArithmetic(unittest.TestCase):
    """Test the mutating color operations."""

    def test_lighten_darken(self):
        """Test lighten and darken, including negative amounts."""
        self.assertEqual(Color("#000000").lighten(0.5).get_hex(), "#808080")
        self.assertEqual(Color("#ffffff").darken(0.5).get_hex(), "#808080")
        self.assertEqual(Color("#ffffff").lighten(-0.5).get_hex(), "#808080")
        self.assertEqual(Color("#000000").darken(-0.5).get_hex(), "#808080")

    def test_lighten_returns_self(self):
        """Test mutators chain."""
        color = Color("#000000")
        self.assertIs(color.lighten(0.1), color)

    def test_opacity(self):
        """Test increase and decrease of opacity."""
        color = Color("#000000")
        color.a = 0.4
        color.increase_opacity(0.5)
        self.assertAlmostEqual(color.a, 0.7)

        color = Color("#000000")
        color.a = 0.4
        color.decrease_opacity(0.5)
        self.assertAlmostEqual(color.a, 0.2)

    def test_mix(self):
        """Test mixing is weighted by the other color's alpha."""
        self.assertEqual(Color("#000000").mix(Color("#ffffff")).get_hex(), "#808080")
        self.assertEqual(Color("#000000").mix(Color("#ffffff00")).get_hex(), "#000000")
        self.assertEqual(Color("#000000").mix(Color("#ffffff"), 1).get_hex(), "#ffffff")

    def test_mix_requires_color(self):
        """Test mixing with a non-Color raises."""
        with self.assertRaises(TypeError):
            Color("#000000").mix("#ffffff")

    def test_luminosity_and_desaturate(self):
        """Test luminosity weights and desaturation."""
        self.assertAlmostEqual(Color("#ffffff").luminosity(), 1.0)
        self.assertAlmostEqual(Color("#ff0000").luminosity(), 0.6 / 1.9)
        gray = Color("#ff0000").desaturate()
        self.assertAlmostEqual(gray.r, 0.6 / 1.9)
        self.assertEqual(gray.r, gray.g)
        self.assertEqual(gray.g, gray.b)

    def test_lightness(self):
        """Test lightness is the channel average."""
        self.assertAlmostEqual(Color("#ff0000").lightness(), 1 / 3)

    def test_invert_keeps_alpha(self):
        """Test invert flips RGB only."""
        self.assertEqual(Color("#ff000080").invert().get_hex(), "#00ffff80")

    def test_add_color(self):
        """Test signed addition with clamping."""
        color = Color("#000000").add_color(0.1)
        self.assertAlmostEqual(color.r, 0.1)
        self.assertEqual(Color("#000000").add_color(-0.5).get_hex(), "#000000")
        self.assertEqual(Color("#000000").add_color(1, 0, 0).get_hex(), "#ff0000")

    def test_multiply_color(self):
        """Test positive factors move toward white, negative toward black."""
        self.assertEqual(Color("#000000").multiply_color(0.5).get_hex(), "#808080")
        self.assertEqual(Color("#ffffff").multiply_color(-0.5).get_hex(), "#808080")


class TestColorComparison(unittest.TestCase):
    """Test tolerance-based comparison."""

    def test_within_tolerance(self):
        """Test near colors compare equal within tolerance."""
        self.assertTrue(Color("#000000").is_same_as(Color("#010101"), 0.01))
        self.assertFalse(Color("#000000").is_same_as(Color("#ffffff"), 0.01))

    def test_zero_tolerance(self):
        """Test zero tolerance still allows float rounding but not one step."""
        self.assertTrue(Color("#123456").is_same_as("#123456"))
        self.assertFalse(Color("#000000").is_same_as("#010101"))

    def test_accepts_string(self):
        """Test the other color can be given as a string."""
        self.assertTrue(Color("#ff0000").is_same_as("rgb(255,0,0)"))

    def test_transparents(self):
        """Test fully transparent colors match regardless of RGB."""
        self.assertTrue(Color("#ff000000").is_same_as("#00ff0000"))
        self.assertFalse(Color("#ff000000").is_same_as("#00ff0000", transparents_are_same=False))

    def test_ignore_alpha(self):
        """Test comparing RGB only."""
        self.assertFalse(Color("#ff0000").is_same_as("#ff000080"))
        self.assertTrue(Color("#ff0000").is_same_as("#ff000080", compare_alpha=False))

    def test_static_compare(self):
        """Test the static form."""
        self.assertTrue(Color.compare(Color("#ff0000"), Color("#fe0000"), 0.01))


if __name__ == "__main__":
    unittest.main()
