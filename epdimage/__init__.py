"""
epdimage - prepare image data for e-paper displays.

Quantizes a BMP or JPEG image to a small e-paper palette (black/white plus
optional red, yellow or gray levels), splits it into the 1 or 2 memory planes
the display controller expects and renders them as C byte arrays.
"""

from .buffer import Palette, PixelBuffer, aligned_pitch
from .config import ConversionOptions, OutputMode, PRODUCTS
from .errors import (
    EpdImageError,
    InvalidSourceFormat,
    UnsupportedConfiguration,
    UnsupportedGeometry,
)
from .packer import Plane
from .pipeline import ConversionResult, convert

__version__ = "1.0.0"

__all__ = [
    "ConversionOptions",
    "ConversionResult",
    "EpdImageError",
    "InvalidSourceFormat",
    "OutputMode",
    "PRODUCTS",
    "Palette",
    "PixelBuffer",
    "Plane",
    "UnsupportedConfiguration",
    "UnsupportedGeometry",
    "aligned_pitch",
    "convert",
]
