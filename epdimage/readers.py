"""
Load BMP and JPEG files into a PixelBuffer.

BMP headers are read at fixed offsets (BITMAPINFOHEADER only, no RLE).
JPEG decoding is done by Pillow; decoded scanlines are handed to a row
callback as RGB565 (or 8-bit gray) and expanded into the buffer.
"""

import io
import logging
import struct
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from .buffer import SUPPORTED_BPP, Palette, PixelBuffer, aligned_pitch
from .errors import InvalidSourceFormat

logger = logging.getLogger(__name__)

BMP_SIGNATURE = b"BM"
JPEG_SIGNATURE = b"\xff\xd8"

# In file offsets
BMP_OFFSET_PIXEL_ARRAY = 10
BMP_OFFSET_HEADER_SIZE = 14
BMP_OFFSET_WIDTH = 18
BMP_OFFSET_HEIGHT = 22
BMP_OFFSET_BPP = 28
BMP_OFFSET_COMPRESSION = 30
BMP_OFFSET_COLORS_USED = 46
BMP_MIN_HEADER = 54


def read_bmp(data: bytes) -> PixelBuffer:
    """Parse an uncompressed Windows BMP.

    A positive height means the rows are stored bottom-up; the returned
    buffer keeps that order and records it in top_down.
    """
    if len(data) < BMP_MIN_HEADER or data[:2] != BMP_SIGNATURE:
        raise InvalidSourceFormat("Invalid BMP file: missing 'BM' header")
    offbits = struct.unpack_from("<I", data, BMP_OFFSET_PIXEL_ARRAY)[0]
    header_size = struct.unpack_from("<I", data, BMP_OFFSET_HEADER_SIZE)[0]
    width = struct.unpack_from("<i", data, BMP_OFFSET_WIDTH)[0]
    height = struct.unpack_from("<i", data, BMP_OFFSET_HEIGHT)[0]
    bpp = struct.unpack_from("<H", data, BMP_OFFSET_BPP)[0]
    compression = struct.unpack_from("<I", data, BMP_OFFSET_COMPRESSION)[0]
    if compression != 0:  # 1/2/4 = RLE compressed
        raise InvalidSourceFormat(f"Unsupported BMP compression type {compression}")
    if bpp not in SUPPORTED_BPP:
        raise InvalidSourceFormat(f"Unsupported BMP bit depth {bpp}")
    if width <= 0 or height == 0:
        raise InvalidSourceFormat(f"Invalid BMP size {width}x{height}")

    palette = None
    if bpp <= 8:
        colors = struct.unpack_from("<I", data, BMP_OFFSET_COLORS_USED)[0]
        if colors == 0 or colors > (1 << bpp):
            colors = 1 << bpp  # full palette
        start = BMP_OFFSET_HEADER_SIZE + header_size
        table = data[start:start + 4 * colors]
        if len(table) < 4 * colors:
            raise InvalidSourceFormat("BMP color palette is truncated")
        # stored as B, G, R, x
        palette = Palette([(table[i + 2], table[i + 1], table[i]) for i in range(0, len(table), 4)])

    top_down = height < 0
    height = abs(height)
    pitch = aligned_pitch(width, bpp)
    pixels = data[offbits:offbits + pitch * height]
    if len(pixels) < pitch * height:
        raise InvalidSourceFormat(
            f"BMP pixel data is truncated: expected {pitch * height} bytes, found {len(pixels)}")
    logger.debug("BMP %dx%d, %d-bpp, %s", width, height, bpp, "top-down" if top_down else "bottom-up")
    return PixelBuffer.from_bytes(pixels, width, height, bpp, palette, top_down, pitch)


def rgb888_to_rgb565(rgb: np.ndarray) -> np.ndarray:
    """Convert an (..., 3) RGB888 array to RGB565 values."""
    r = rgb[..., 0].astype(np.uint16)
    g = rgb[..., 1].astype(np.uint16)
    b = rgb[..., 2].astype(np.uint16)
    return ((r & 0xF8) << 8) | ((g & 0xFC) << 3) | (b >> 3)


def rgb565_to_bgr888(pixels: np.ndarray) -> np.ndarray:
    """Expand RGB565 values to (..., 3) B, G, R bytes, replicating the top bits."""
    pixels = np.asarray(pixels, dtype=np.uint16)
    r = pixels >> 11
    g = (pixels >> 5) & 0x3f
    b = pixels & 0x1f
    r = (r << 3) | (r >> 2)
    g = (g << 2) | (g >> 4)
    b = (b << 3) | (b >> 2)
    return np.stack([b, g, r], axis=-1).astype(np.uint8)


class JpegRowSink:
    """Receives decoded scanlines and stores them in a PixelBuffer.

    16-bpp (RGB565) rows become 24-bpp B, G, R; 8-bpp gray rows are
    copied as palette indices into a gray palette.
    """

    def __init__(self, width: int, height: int, bpp: int):
        if bpp == 8:
            self.buffer = PixelBuffer.blank(width, height, 8, Palette.grey())
        else:
            self.buffer = PixelBuffer.blank(width, height, 24)
        self.source_bpp = bpp

    def draw(self, y: int, pixels, x: int = 0) -> bool:
        """Store one decoded row; returning True keeps the decoder going."""
        pixels = np.asarray(pixels)
        count = pixels.shape[0]
        if self.source_bpp == 16:
            row = rgb565_to_bgr888(pixels).reshape(-1)
            self.buffer.data[y, x * 3:(x + count) * 3] = row
        else:
            self.buffer.data[y, x:x + count] = pixels.astype(np.uint8)
        return True


def read_jpeg(data: bytes) -> PixelBuffer:
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidSourceFormat(f"Invalid JPEG file: {e}") from e

    if img.mode == "L":
        pixels = np.asarray(img)
        sink = JpegRowSink(img.width, img.height, 8)
    else:
        # the panel pipeline works from RGB565, like the embedded decoder
        pixels = rgb888_to_rgb565(np.asarray(img.convert("RGB")))
        sink = JpegRowSink(img.width, img.height, 16)
    for y in range(img.height):
        if not sink.draw(y, pixels[y]):
            break
    logger.debug("JPEG %dx%d decoded as %d-bpp", img.width, img.height, sink.buffer.bpp)
    return sink.buffer


def load_image(path) -> PixelBuffer:
    """Read a BMP or JPEG file, picked by its signature."""
    data = Path(path).read_bytes()
    if data[:2] == BMP_SIGNATURE:
        return read_bmp(data)
    if data[:2] == JPEG_SIGNATURE:
        return read_jpeg(data)
    raise InvalidSourceFormat("Unrecognized file format. For now, only BMP and JPEG are supported")
