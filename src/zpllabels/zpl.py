"""
ZPL (Zebra Programming Language) encoding for retail price labels.

ZPL is a text-based command language. Every command starts with a caret (^)
or, for immediate commands, a tilde (~). A label format is enclosed in
^XA ... ^XZ and each field is placed with ^FO x,y ... ^FS.

The layout targets a 4" x 2" label at 203 dpi (812 x 406 dots).

Reference: ZPL II Programming Guide
"""

import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Optional

from .label import Label, PriceLike, clean_features, to_decimal

# Label geometry (dots at 203 dpi)
DPI = 203
LABEL_WIDTH_DOTS = 812   # 4 inches
LABEL_LENGTH_DOTS = 406  # 2 inches
UTF8_CHARSET = 28

CENTS = Decimal("0.01")
CURRENCY_SYMBOL = "$"
TAX_CAPTION = "Sales Tax Incl."
LOGO_CAPTION = "LOGO"

# Field hex indicator used with ^FH (ZPL default is underscore)
HEX_INDICATOR = "_"

# Characters that would start a command or an escape inside field data
_RESERVED = {
    "^": "_5E",
    "~": "_7E",
    "_": "_5F",
    "\\": "_5C",  # ^FB reads \& as a line break
}
_LINE_BREAKS = re.compile(r"[\r\n\t]+")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


@dataclass(frozen=True)
class FieldBlock:
    """^FB parameters: wraps field data into a fixed-width block."""
    width: int
    max_lines: int = 1
    line_spacing: int = 0
    justification: str = "L"  # L, C, R or J
    hanging_indent: int = 0

    def command(self) -> str:
        return (
            f"^FB{self.width},{self.max_lines},{self.line_spacing},"
            f"{self.justification},{self.hanging_indent}"
        )


@dataclass(frozen=True)
class GraphicField:
    """
    ASCII hex bitmap for ^GFA.

    Attributes:
        bytes_per_row: Row width in bytes (8 dots per byte)
        data: Hex digits, two per byte, rows concatenated
    """
    bytes_per_row: int
    data: str

    @property
    def total_bytes(self) -> int:
        return len(self.data) // 2

    @property
    def height(self) -> int:
        if self.bytes_per_row == 0:
            return 0
        return self.total_bytes // self.bytes_per_row


@dataclass(frozen=True)
class PriceTier:
    """Font size and horizontal shift for a price with a given digit count."""
    digits: Optional[int]  # None matches every count not listed before it
    font_size: int
    x_offset: int


# Ordered tier table; the last entry catches 4 or more digits
PRICE_TIERS: tuple[PriceTier, ...] = (
    PriceTier(digits=1, font_size=110, x_offset=40),
    PriceTier(digits=2, font_size=95, x_offset=20),
    PriceTier(digits=3, font_size=80, x_offset=0),
    PriceTier(digits=None, font_size=65, x_offset=-20),
)

# ---- Layout ----

NAME_X, NAME_Y = 30, 20
NAME_FONT_SIZE = 28
NAME_BLOCK = FieldBlock(width=LABEL_WIDTH_DOTS - 2 * NAME_X, max_lines=2)

LOGO_X, LOGO_Y = 30, 110
LOGO_SIZE = 200
LOGO_BORDER = 3
LOGO_CAPTION_FONT_SIZE = 24

FEATURE_X = 280
FEATURE_BASE_Y = 110
FEATURE_LINE_HEIGHT = 30
FEATURE_FONT_SIZE = 24

PRICE_X, PRICE_Y = 330, 215

CAPTION_X, CAPTION_Y = 410, 335
CAPTION_FONT_SIZE = 22


def escape_field_data(text: str) -> str:
    """
    Neutralize user text for use after ^FH^FD.

    Reserved characters become hex escapes, line breaks and tabs collapse to
    one space, and remaining control characters are dropped.
    """
    text = _LINE_BREAKS.sub(" ", text)
    text = _CONTROL_CHARS.sub("", text)
    return "".join(_RESERVED.get(ch, ch) for ch in text)


def quantize_price(price: PriceLike) -> Decimal:
    """Round a price to cents, whatever its magnitude."""
    value = to_decimal(price)
    with localcontext() as ctx:
        # integer digits, a possible carry, and two decimals
        ctx.prec = max(ctx.prec, value.adjusted() + 4)
        return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def format_price(price: PriceLike) -> str:
    """Format a price as printed: symbol, two decimals, no separators."""
    return f"{CURRENCY_SYMBOL}{quantize_price(price):f}"


def price_digits(price: PriceLike) -> int:
    """Number of digits in the integer part of the printed price."""
    return len(str(int(quantize_price(price))))


def select_tier(digits: int) -> PriceTier:
    """Look up the price tier for an integer digit count."""
    for tier in PRICE_TIERS:
        if tier.digits is None or tier.digits == digits:
            return tier
    return PRICE_TIERS[-1]


class ZPLCommand:
    """
    ZPL command builder.

    Collects one directive per line. Text fields always go through
    escape_field_data() and carry ^FH, so field data cannot open a command.
    """

    NEWLINE = "\n"

    def __init__(self):
        self._lines: list[str] = []

    def clear(self):
        """Clear all queued commands."""
        self._lines.clear()

    def get_commands(self) -> str:
        """Get all commands as one newline-terminated string."""
        return "".join(line + self.NEWLINE for line in self._lines)

    def _add(self, cmd: str):
        """Add a command line."""
        self._lines.append(cmd)

    # ---- Format Commands ----

    def start_format(self):
        """Begin a label format."""
        self._add("^XA")

    def end_format(self):
        """End a label format; the printer prints on receipt."""
        self._add("^XZ")

    def change_encoding(self, charset: int = UTF8_CHARSET):
        """Select the character set for field data (28 = UTF-8)."""
        self._add(f"^CI{charset}")

    def print_width(self, dots: int):
        """Set print width."""
        self._add(f"^PW{dots}")

    def label_length(self, dots: int):
        """Set label length."""
        self._add(f"^LL{dots}")

    def print_quantity(self, copies: int):
        """Print this format `copies` times."""
        self._add(f"^PQ{copies}")

    # ---- Field Commands ----

    def text(self, x: int, y: int, size: int, content: str,
             block: Optional[FieldBlock] = None):
        """
        Place a text field using the scalable font 0.

        Args:
            x, y: Field origin in dots
            size: Character height and width in dots
            content: Raw text; escaped here
            block: Optional field block for wrapping/justification
        """
        fb = block.command() if block else ""
        self._add(
            f"^FO{x},{y}^A0N,{size},{size}{fb}"
            f"^FH{HEX_INDICATOR}^FD{escape_field_data(content)}^FS"
        )

    def box(self, x: int, y: int, width: int, height: int, thickness: int):
        """Draw a rectangle outline (^GB)."""
        self._add(f"^FO{x},{y}^GB{width},{height},{thickness}^FS")

    def graphic(self, x: int, y: int, graphic: GraphicField):
        """Draw an ASCII hex bitmap (^GFA)."""
        total = graphic.total_bytes
        self._add(
            f"^FO{x},{y}^GFA,{total},{total},{graphic.bytes_per_row},"
            f"{graphic.data}^FS"
        )

    # ---- Convenience Methods ----

    def setup_label(self):
        """Common opening sequence for a 4x2 label."""
        self.start_format()
        self.change_encoding()
        self.print_width(LABEL_WIDTH_DOTS)
        self.label_length(LABEL_LENGTH_DOTS)

    def logo_placeholder(self, x: int, y: int, size: int = LOGO_SIZE):
        """Outlined square with a centred caption where a logo would go."""
        self.box(x, y, size, size, LOGO_BORDER)
        caption_y = y + (size - LOGO_CAPTION_FONT_SIZE) // 2
        self.text(x, caption_y, LOGO_CAPTION_FONT_SIZE, LOGO_CAPTION,
                  block=FieldBlock(width=size, justification="C"))


def encode(label: Label, logo: Optional[GraphicField] = None) -> str:
    """
    Encode a label as a complete ZPL format.

    Blank features are skipped and later features move up, so there are
    no gaps. The price size and position come from PRICE_TIERS.

    Args:
        label: Draft or queued label
        logo: Optional bitmap drawn instead of the logo placeholder

    Returns:
        ZPL command stream, identical for identical input
    """
    cmd = ZPLCommand()
    cmd.setup_label()

    cmd.text(NAME_X, NAME_Y, NAME_FONT_SIZE, label.product_name, block=NAME_BLOCK)

    if logo is None:
        cmd.logo_placeholder(LOGO_X, LOGO_Y)
    else:
        cmd.graphic(LOGO_X, LOGO_Y, logo)

    for index, feature in enumerate(clean_features(label.features)):
        y = FEATURE_BASE_Y + index * FEATURE_LINE_HEIGHT
        cmd.text(FEATURE_X, y, FEATURE_FONT_SIZE, f"- {feature}")

    tier = select_tier(price_digits(label.price))
    cmd.text(PRICE_X + tier.x_offset, PRICE_Y, tier.font_size,
             format_price(label.price))

    cmd.text(CAPTION_X, CAPTION_Y, CAPTION_FONT_SIZE, TAX_CAPTION)

    cmd.end_format()
    return cmd.get_commands()


def with_copies(command_stream: str, copies: int) -> str:
    """
    Insert ^PQ before the final ^XZ to print several copies.

    Raises:
        ValueError: If copies is less than 1 or the stream has no ^XZ
    """
    if copies < 1:
        raise ValueError(f"copies must be at least 1, got {copies}")
    if copies == 1:
        return command_stream

    head, sep, tail = command_stream.rpartition("^XZ")
    if not sep:
        raise ValueError("Command stream has no ^XZ end-of-format marker")
    return f"{head}^PQ{copies}{ZPLCommand.NEWLINE}^XZ{tail}"
