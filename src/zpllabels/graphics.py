"""
Logo bitmaps for ZPL labels.

Converts an image to the ASCII hex payload of a ^GFA graphic field so a real
logo can replace the placeholder box on the label.
"""

from io import BytesIO
from pathlib import Path
from typing import Union

from PIL import Image

from .label import LabelPrinterError
from .zpl import LOGO_SIZE, GraphicField


class LogoError(LabelPrinterError):
    """Error loading or converting a logo image."""

    pass


ImageSource = Union[str, Path, bytes, Image.Image]


def load_image(image: ImageSource) -> Image.Image:
    """
    Load an image from a path, raw bytes or a PIL Image.

    Raises:
        LogoError: If the image cannot be loaded
    """
    try:
        if isinstance(image, (str, Path)):
            path = Path(image)
            if not path.exists():
                raise LogoError(f"Logo file not found: {path}")
            img = Image.open(path)
            img.load()
        elif isinstance(image, bytes):
            img = Image.open(BytesIO(image))
            img.load()
        elif isinstance(image, Image.Image):
            img = image
        else:
            raise LogoError(f"Unsupported image type: {type(image)}")
        return img
    except LogoError:
        raise
    except Exception as e:
        raise LogoError(f"Failed to load logo: {e}") from e


def fit_image(img: Image.Image, width: int, height: int) -> Image.Image:
    """
    Scale an image to fit inside width x height and convert it to 1-bit.

    Transparent pixels become white. Aspect ratio is kept; the result is
    centred on a white canvas of exactly width x height.
    """
    if img.mode in ("RGBA", "LA", "P"):
        rgba = img.convert("RGBA")
        background = Image.new("RGBA", rgba.size, (255, 255, 255, 255))
        img = Image.alpha_composite(background, rgba)

    gray = img.convert("L")
    gray.thumbnail((width, height))

    canvas = Image.new("L", (width, height), color=255)
    canvas.paste(gray, ((width - gray.width) // 2, (height - gray.height) // 2))

    # Hard threshold keeps output identical for identical input
    return canvas.point(lambda x: 0 if x < 128 else 255, mode="1")


def to_graphic_field(img: Image.Image) -> GraphicField:
    """
    Convert a 1-bit image to ^GFA hex data.

    ZPL: 1 = black (print), 0 = white. PIL 1-bit: 0 = black, 255 = white,
    so every pixel is inverted.
    """
    if img.mode != "1":
        img = img.convert("1")

    width, height = img.size
    bytes_per_row = (width + 7) // 8
    data = bytearray()

    for y_pos in range(height):
        row = bytearray(bytes_per_row)
        for x_pos in range(width):
            if img.getpixel((x_pos, y_pos)) == 0:
                row[x_pos // 8] |= 0x80 >> (x_pos % 8)
        data.extend(row)

    return GraphicField(bytes_per_row=bytes_per_row, data=data.hex().upper())


def logo_from_image(image: ImageSource, width: int = LOGO_SIZE,
                    height: int = LOGO_SIZE) -> GraphicField:
    """
    Load an image and turn it into a logo graphic for encode().

    Args:
        image: Image source (path, bytes, or PIL Image)
        width, height: Logo box in dots

    Returns:
        GraphicField sized to the logo box

    Raises:
        LogoError: If the image cannot be loaded
    """
    return to_graphic_field(fit_image(load_image(image), width, height))
