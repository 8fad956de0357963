"""
Pack per-pixel symbols into the memory planes e-paper controllers use.

Rows are packed MSB first and never share a byte; a row that ends
mid-byte is padded with zero bits on the right.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Sequence

import numpy as np

from .buffer import PixelBuffer
from .config import OutputMode
from .errors import UnsupportedConfiguration
from .matcher import ColorMatcher, match_bw
from .sampler import PixelSampler

logger = logging.getLogger(__name__)


@dataclass
class Plane:
    """One packed output plane."""
    width: int
    height: int
    bits_per_pixel: int
    data: bytes
    index: int = 0
    # packed multi-bit planes are emitted without an index suffix
    packed: bool = False

    @property
    def pitch(self) -> int:
        return plane_pitch(self.width, self.bits_per_pixel)

    @property
    def size(self) -> int:
        return len(self.data)

    def row(self, y: int) -> bytes:
        return self.data[y * self.pitch:(y + 1) * self.pitch]


def plane_pitch(width: int, bits_per_pixel: int = 1) -> int:
    """Bytes per packed row, no alignment."""
    return (width * bits_per_pixel + 7) // 8


def pack_bits(bits: Sequence[int]) -> bytes:
    """8 pixels per byte, first pixel in the MSB."""
    return np.packbits(np.asarray(bits, dtype=np.uint8) & 1).tobytes()


def pack_2bit(symbols: Sequence[int]) -> bytes:
    """4 pixels per byte, 2 bits each, first pixel in the top bits."""
    count = len(symbols)
    padded = np.zeros((count + 3) // 4 * 4, dtype=np.uint8)
    padded[:count] = np.asarray(symbols, dtype=np.uint8) & 3
    quads = padded.reshape(-1, 4)
    packed = (quads[:, 0] << 6) | (quads[:, 1] << 4) | (quads[:, 2] << 2) | quads[:, 3]
    return packed.astype(np.uint8).tobytes()


def plane_bits(mode: OutputMode) -> List[int]:
    """Which symbol bit lands in each 1-bpp plane."""
    if mode is OutputMode.BW:
        return [0]
    if mode is OutputMode.BWYR:
        return []
    return [0, 1]


def pack_symbol_rows(rows: Iterable[Sequence[int]], width: int, height: int, mode: OutputMode) -> List[Plane]:
    """Pack rows of symbols into the planes for mode.

    BW gives one 1-bpp plane; BWR, BWY and 4GRAY split each 2-bit symbol
    into two 1-bpp planes (bit 0, then bit 1); BWYR keeps all 2 bits in a
    single packed plane.
    """
    if mode is OutputMode.BWYR:
        packed = bytearray()
        for symbols in rows:
            packed += pack_2bit(symbols)
        return [Plane(width, height, 2, bytes(packed), packed=True)]

    bits = plane_bits(mode)
    planes = [bytearray() for _ in bits]
    for symbols in rows:
        symbols = np.asarray(symbols, dtype=np.uint8)
        for data, bit in zip(planes, bits):
            data += pack_bits((symbols >> bit) & 1)
    return [Plane(width, height, 1, bytes(data), index=i) for i, data in enumerate(planes)]


def quantize_rows(buffer: PixelBuffer, matcher: ColorMatcher):
    """Yield one list of symbols per row; symbols are not kept around."""
    sampler = PixelSampler(buffer)
    symbol = matcher.symbol
    for y in range(buffer.height):
        yield [symbol(r, g, b) for r, g, b in sampler.row(y)]


def pack_planes(buffer: PixelBuffer, mode: OutputMode) -> List[Plane]:
    planes = pack_symbol_rows(quantize_rows(buffer, ColorMatcher(mode)),
                              buffer.width, buffer.height, mode)
    logger.debug("Packed %d plane(s) of %d bytes for %s", len(planes), planes[0].size, mode.value)
    return planes


def copy_1bpp_plane(buffer: PixelBuffer) -> Plane:
    """Copy a 1-bpp source straight into a BW plane.

    Source rows are dword aligned, plane rows are tight. The panel marks
    white with 1, so the bits are inverted when the source palette puts
    black at index 1 (the usual BMP layout is the other way round);
    without a palette a set bit is already white. Padding bits past the
    last pixel stay 0.
    """
    if buffer.bpp != 1:
        raise UnsupportedConfiguration(
            f"Direct copy needs a 1-bpp source image, this one is {buffer.bpp}-bpp")
    pitch = plane_pitch(buffer.width)
    rows = buffer.data[:, :pitch].copy()
    if buffer.palette is not None:
        zero, one = match_bw(*buffer.palette[0]), match_bw(*buffer.palette[1])
        if zero == one:
            # both entries land on the same panel color
            rows[:] = 0xff if one else 0
        elif not one:
            np.bitwise_not(rows, out=rows)
    tail = buffer.width & 7
    if tail:
        rows[:, -1] &= (0xff << (8 - tail)) & 0xff
    return Plane(buffer.width, buffer.height, 1, rows.tobytes())
