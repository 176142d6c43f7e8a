"""Tests for logo bitmap conversion."""

import pytest
from PIL import Image, ImageDraw

from zpllabels.graphics import (
    LogoError,
    fit_image,
    load_image,
    logo_from_image,
    to_graphic_field,
)
from zpllabels.label import LabelDraft
from zpllabels.zpl import encode


class TestToGraphicField:
    """Test 1-bit image to ^GFA hex conversion."""

    def test_black_pixels_are_set_bits(self):
        """Black in PIL becomes 1 in ZPL."""
        img = Image.new("1", (16, 2), color=1)
        draw = ImageDraw.Draw(img)
        draw.rectangle([0, 0, 7, 1], fill=0)

        graphic = to_graphic_field(img)
        assert graphic.bytes_per_row == 2
        assert graphic.data == "FF00FF00"
        assert graphic.total_bytes == 4
        assert graphic.height == 2

    def test_row_padding(self):
        """Rows are padded to whole bytes with white."""
        img = Image.new("1", (3, 1), color=0)
        graphic = to_graphic_field(img)
        assert graphic.bytes_per_row == 1
        assert graphic.data == "E0"

    def test_converts_non_1bit(self):
        """Grayscale input is converted first."""
        img = Image.new("L", (8, 1), color=0)
        assert to_graphic_field(img).data == "FF"


class TestFitImage:
    """Test fitting images into the logo box."""

    def test_output_size_and_mode(self):
        img = Image.new("RGB", (400, 100), color=(0, 0, 0))
        fitted = fit_image(img, 200, 200)
        assert fitted.size == (200, 200)
        assert fitted.mode == "1"

    def test_transparent_becomes_white(self):
        img = Image.new("RGBA", (10, 10), color=(0, 0, 0, 0))
        fitted = fit_image(img, 16, 16)
        assert to_graphic_field(fitted).data == "00" * 32

    def test_centred(self):
        """A small black image lands in the middle of the box."""
        img = Image.new("L", (8, 8), color=0)
        fitted = fit_image(img, 24, 8)
        assert to_graphic_field(fitted).data == "00FF00" * 8


class TestLoadImage:
    """Test image loading."""

    def test_load_path(self, tmp_path):
        path = tmp_path / "logo.png"
        Image.new("RGB", (4, 4), color=(255, 255, 255)).save(path)
        assert load_image(path).size == (4, 4)

    def test_load_bytes(self, tmp_path):
        path = tmp_path / "logo.png"
        Image.new("RGB", (4, 4)).save(path)
        assert load_image(path.read_bytes()).size == (4, 4)

    def test_missing_file(self):
        with pytest.raises(LogoError, match="not found"):
            load_image("/nonexistent/logo.png")

    def test_invalid_bytes(self):
        with pytest.raises(LogoError, match="Failed to load"):
            load_image(b"not an image")

    def test_unsupported_type(self):
        with pytest.raises(LogoError, match="Unsupported image type"):
            load_image(12345)


class TestLogoInLabel:
    """Test logos end to end."""

    def test_logo_from_image_fills_box(self):
        graphic = logo_from_image(Image.new("RGB", (10, 10), color=(255, 255, 255)))
        assert graphic.bytes_per_row == 25
        assert graphic.height == 200

    def test_encode_with_logo_is_deterministic(self):
        img = Image.new("L", (50, 50), color=0)
        first = encode(LabelDraft("X", "1"), logo=logo_from_image(img))
        second = encode(LabelDraft("X", "1"), logo=logo_from_image(img))
        assert first == second
        assert "^FO30,110^GFA,5000,5000,25," in first
