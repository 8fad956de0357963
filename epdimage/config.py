"""
Conversion options and display product presets.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, NamedTuple, Optional

from .errors import UnsupportedConfiguration

# How many hex bytes are written per line of output
BYTES_PER_LINE = 16

VALID_ROTATIONS = (0, 90, 180, 270)


class OutputMode(Enum):
    """Target display color scheme."""
    BW = "BW"          # black/white
    BWR = "BWR"        # black/white/red
    BWY = "BWY"        # black/white/yellow
    BWYR = "BWYR"      # black/white/yellow/red, packed 2 bits per pixel
    GRAY4 = "4GRAY"    # 2-bit grayscale

    @classmethod
    def parse(cls, name: str) -> "OutputMode":
        key = name.strip().upper()
        for mode in cls:
            if key in (mode.value, mode.name):
                return mode
        raise UnsupportedConfiguration(f"Invalid output mode: {name}")


class Product(NamedTuple):
    name: str
    width: int
    height: int
    mode: OutputMode


# Good Display panels with known size and color capability
PRODUCTS: Dict[str, Product] = {
    p.name: p for p in (
        Product("GDEW0154M10", 152, 152, OutputMode.BW),
        Product("GDEY0213B74", 122, 250, OutputMode.BW),
        Product("GDEY0266T90", 152, 296, OutputMode.BW),
        Product("GDEY027T91", 176, 264, OutputMode.BW),
        Product("GDEY037T03", 240, 416, OutputMode.BW),
        Product("GDEQ042Z21", 400, 300, OutputMode.BWR),
        Product("GDEY0579T93", 792, 272, OutputMode.BW),
        Product("GDEY075T7", 800, 480, OutputMode.BWR),
    )
}


def find_product(name: str) -> Product:
    try:
        return PRODUCTS[name.strip().upper()]
    except KeyError:
        raise UnsupportedConfiguration(f"Unknown display product: {name}") from None


@dataclass
class ConversionOptions:
    """Everything the pipeline needs to know besides the pixels."""
    mode: OutputMode = OutputMode.BW
    dither: bool = False
    rotation: int = 0
    mirror: bool = False
    flip_vertical: bool = False
    invert: bool = False
    # legacy path: copy an already 1-bpp source without recoding
    direct_copy: bool = False
    product: Optional[Product] = None
    bytes_per_line: int = BYTES_PER_LINE

    def validate(self):
        if self.rotation not in VALID_ROTATIONS:
            raise UnsupportedConfiguration("Rotation angle must be 0, 90, 180 or 270")
        if self.bytes_per_line < 1:
            raise UnsupportedConfiguration("bytes_per_line must be at least 1")
        if self.direct_copy and self.mode is not OutputMode.BW:
            raise UnsupportedConfiguration("Direct 1-bpp copy only produces BW output")
        if self.direct_copy and self.dither:
            raise UnsupportedConfiguration("Direct 1-bpp copy cannot be combined with dithering")
        return self

    def apply_product(self, width: int, height: int) -> "ConversionOptions":
        """Options with mode and orientation taken from the product preset.

        Portrait panels get an extra 90 degrees of rotation when the
        source image is landscape. A new object is returned; self is
        left untouched.
        """
        if self.product is None:
            return self
        rotation = self.rotation
        if self.product.width < self.product.height and width > height:
            rotation = (rotation + 90) % 360
        return replace(self, mode=self.product.mode, rotation=rotation)
