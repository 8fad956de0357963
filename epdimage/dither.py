"""
Floyd-Steinberg error diffusion ahead of color matching.

The error split uses integer shifts instead of exact sixteenths:

    h  = err >> 1
    e1 = (7 * h) >> 3   # right neighbour         (~7/16)
    e2 = h - e1         # down-right              (~1/16)
    e3 = (5 * h) >> 3   # straight down           (~5/16)
    e4 = h - e3         # down-left               (~3/16)

and must stay that way for the output to be reproducible bit for bit.

Column 0 never receives error carried from the row above: the forward
error is reset at the start of each row and the slots left of column 1
are written but never read.
"""

import logging
from typing import List

import numpy as np

from .buffer import PixelBuffer, aligned_pitch
from .config import OutputMode
from .errors import UnsupportedConfiguration
from .matcher import ColorMatcher, luma
from .sampler import PixelSampler

logger = logging.getLogger(__name__)

# slot x + GUARD holds the error waiting for column x on the next row
GUARD = 1


def split_error(err: int):
    """Return the (right, down-right, down, down-left) shares of err."""
    h = err >> 1
    e1 = (7 * h) >> 3
    e2 = h - e1
    e3 = (5 * h) >> 3
    e4 = h - e3
    return e1, e2, e3, e4


class ErrorAccumulator:
    """Running per-column error for 1 or 3 channels.

    Sized to the image width plus a guard slot on each side so the
    neighbour writes never need bounds checks. With byte_wide set the
    slots wrap like unsigned 8-bit storage.
    """

    def __init__(self, width: int, channels: int = 1, byte_wide: bool = False):
        self.width = width
        self.channels = channels
        self.byte_wide = byte_wide
        self.slots: List[List[int]] = [[0] * (width + 2 * GUARD) for _ in range(channels)]

    def diffuse(self, channel: int, x: int, err: int) -> int:
        """Spread err from column x to the row below.

        Returns the error carried forward to column x + 1 of this row.
        """
        e1, e2, e3, e4 = split_error(err)
        slots = self.slots[channel]
        forward = e1 + slots[x + 2]
        slots[x + 2] = e2
        slots[x + 1] += e3
        slots[x] += e4
        if self.byte_wide:
            slots[x + 2] &= 0xff
            slots[x + 1] &= 0xff
            slots[x] &= 0xff
        return forward

    def carried(self, channel: int = 0) -> List[int]:
        """Slots that are read back on the next row (columns 1..width-1)."""
        return self.slots[channel][GUARD + 1:self.width + GUARD]

    def total(self, channel: int = 0) -> int:
        return sum(self.carried(channel))


def _clip(value: int) -> int:
    if value < 0:
        return 0
    if value > 255:
        return 255
    return value


def dither_gray(buffer: PixelBuffer, accumulator: ErrorAccumulator = None) -> PixelBuffer:
    """Dither to black/white.

    Returns a new 1-bpp buffer (bit set = white) with the same size.
    """
    width, height = buffer.width, buffer.height
    if accumulator is None:
        accumulator = ErrorAccumulator(width, 1, byte_wide=True)
    sampler = PixelSampler(buffer)
    out = np.zeros((height, aligned_pitch(width, 1)), dtype=np.uint8)
    row_bytes = (width + 7) // 8
    for y in range(height):
        bits = np.zeros(width, dtype=np.uint8)
        forward = 0
        for x, (r, g, b) in enumerate(sampler.row(y)):
            # make the white end of the spectrum less "blown out"
            value = (luma(r, g, b) * 2) // 3 + forward
            if value > 255:
                value = 255
            top = value & 0x80
            if top:
                bits[x] = 1
            forward = accumulator.diffuse(0, x, value - top)
        out[y, :row_bytes] = np.packbits(bits)
    logger.debug("Dithered %dx%d image to 1-bpp", width, height)
    return PixelBuffer(width, height, 1, out)


def dither_color(buffer: PixelBuffer, mode: OutputMode, accumulator: ErrorAccumulator = None) -> PixelBuffer:
    """Dither a 24/32-bpp buffer in place to the colors of mode.

    Each pixel is replaced with the panel color it matches; the residual
    of the original value against that color is diffused per channel.
    """
    if buffer.bpp < 24:
        raise UnsupportedConfiguration("Color dithering requires a full color (24/32-bit) source image")
    width, height = buffer.width, buffer.height
    if accumulator is None:
        accumulator = ErrorAccumulator(width, 3)
    matcher = ColorMatcher(mode)
    step = buffer.bpp >> 3
    diffuse = accumulator.diffuse
    for y in range(height):
        row = buffer.data[y, :width * step].tolist()
        fr = fg = fb = 0
        for x in range(width):
            i = x * step
            b, g, r = row[i], row[i + 1], row[i + 2]
            r1, g1, b1 = matcher.best_color(_clip(r + fr), _clip(g + fg), _clip(b + fb))
            fr = diffuse(0, x, r - r1)
            fg = diffuse(1, x, g - g1)
            fb = diffuse(2, x, b - b1)
            row[i], row[i + 1], row[i + 2] = b1, g1, r1
        buffer.data[y, :width * step] = row
    logger.debug("Dithered %dx%d image to %s colors", width, height, mode.value)
    return buffer


def dither(buffer: PixelBuffer, mode: OutputMode) -> PixelBuffer:
    """Dither buffer for mode; the result may be a new buffer."""
    if mode is OutputMode.BW:
        return dither_gray(buffer)
    return dither_color(buffer, mode)
