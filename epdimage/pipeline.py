"""
Conversion driver: one sequential pass from pixels to packed planes.

    orientation -> product preset -> mirror -> flip -> invert
        -> dither -> rotate -> match + pack
"""

import logging
from dataclasses import dataclass
from typing import List

from .buffer import PixelBuffer
from .config import ConversionOptions, OutputMode
from .dither import dither
from .errors import UnsupportedConfiguration
from .packer import Plane, copy_1bpp_plane, pack_planes
from .transforms import flip_vertical, invert, mirror_horizontal, normalize_orientation, rotate

logger = logging.getLogger(__name__)


@dataclass
class ConversionResult:
    planes: List[Plane]
    width: int
    height: int
    mode: OutputMode

    @property
    def total_bytes(self) -> int:
        return sum(p.size for p in self.planes)


def convert(buffer: PixelBuffer, options: ConversionOptions = None) -> ConversionResult:
    """Run the whole pipeline on buffer.

    The buffer is owned by the conversion and modified in place; options
    are only read.
    """
    if options is None:
        options = ConversionOptions()
    normalize_orientation(buffer)
    options = options.apply_product(buffer.width, buffer.height)
    options.validate()
    mode = options.mode

    if options.mirror:
        mirror_horizontal(buffer)
    if options.flip_vertical:
        flip_vertical(buffer)
    if options.invert:
        invert(buffer)
    if options.dither:
        if mode is not OutputMode.BW and buffer.bpp < 24:
            raise UnsupportedConfiguration("Color dithering requires a full color (24/32-bit) source image")
        buffer = dither(buffer, mode)
    buffer = rotate(buffer, options.rotation)

    if options.direct_copy:
        planes = [copy_1bpp_plane(buffer)]
    else:
        planes = pack_planes(buffer, mode)
    logger.info("Converted %dx%d %d-bpp image to %s (%d plane(s))",
                buffer.width, buffer.height, buffer.bpp, mode.value, len(planes))
    return ConversionResult(planes, buffer.width, buffer.height, mode)
