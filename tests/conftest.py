import struct

import numpy as np
import pytest

from epdimage.buffer import Palette, PixelBuffer, aligned_pitch


def make_bmp(width, height, bpp, rows, palette=None, top_down=False):
    """Build a BMP file from top-down rows of packed pixel bytes."""
    pitch = aligned_pitch(width, bpp)
    stored = list(rows) if top_down else list(reversed(rows))
    pixels = b''.join(bytes(r).ljust(pitch, b'\0') for r in stored)
    table = b''
    if palette is not None:
        table = b''.join(bytes((b, g, r, 0)) for r, g, b in palette)
    offbits = 14 + 40 + len(table)
    header = struct.pack('<2sIHHI', b'BM', offbits + len(pixels), 0, 0, offbits)
    info = struct.pack('<IiiHHIIiiII', 40, width, -height if top_down else height, 1, bpp,
                       0, len(pixels), 2835, 2835, len(palette or ()), 0)
    return header + info + table + pixels


def rgb_buffer(pixels, bpp=24):
    """24/32-bpp buffer from a list of rows of (r, g, b)."""
    height, width = len(pixels), len(pixels[0])
    buf = PixelBuffer.blank(width, height, bpp)
    step = bpp // 8
    for y, row in enumerate(pixels):
        for x, (r, g, b) in enumerate(row):
            buf.data[y, x * step:x * step + 3] = (b, g, r)
    return buf


def flat_rgb(width, height, color, bpp=24):
    return rgb_buffer([[color] * width for _ in range(height)], bpp)


def unpack_plane(plane):
    """Test-only inverse of the plane packer: rows of per-pixel values."""
    rows = []
    per_byte = 8 // plane.bits_per_pixel
    mask = (1 << plane.bits_per_pixel) - 1
    for y in range(plane.height):
        row = plane.row(y)
        values = []
        for x in range(plane.width):
            byte = row[x // per_byte]
            shift = 8 - plane.bits_per_pixel * (x % per_byte + 1)
            values.append((byte >> shift) & mask)
        rows.append(values)
    return rows


@pytest.fixture
def bw_palette():
    return [(0, 0, 0), (255, 255, 255)]


@pytest.fixture
def random_rgb():
    rng = np.random.default_rng(1234)

    def build(width, height, bpp=24):
        buf = PixelBuffer.blank(width, height, bpp)
        step = bpp // 8
        buf.data[:, :width * step] = rng.integers(0, 256, size=(height, width * step), dtype=np.uint8)
        return buf
    return build


@pytest.fixture
def grey_palette():
    return Palette.grey()
