"""
Geometry and color transforms applied to the raw pixels before matching.
"""

import logging

import numpy as np

from .buffer import PixelBuffer, aligned_pitch
from .errors import UnsupportedGeometry

logger = logging.getLogger(__name__)

# Table to flip the bit direction of a byte
BIT_REVERSE = np.array([int(f"{i:08b}"[::-1], 2) for i in range(256)], dtype=np.uint8)


def flip_vertical(buffer: PixelBuffer) -> PixelBuffer:
    """Swap row i with row height-1-i, padding included."""
    buffer.data[:] = buffer.data[::-1].copy()
    return buffer


def normalize_orientation(buffer: PixelBuffer) -> PixelBuffer:
    """Make bottom-up (BMP style) buffers top-down."""
    if not buffer.top_down:
        flip_vertical(buffer)
        buffer.top_down = True
    return buffer


def _unpack_nibbles(buffer: PixelBuffer) -> np.ndarray:
    """(height, width) array of 4-bit pixel values."""
    packed = buffer.data[:, :(buffer.width + 1) // 2]
    pixels = np.empty((buffer.height, packed.shape[1] * 2), dtype=np.uint8)
    pixels[:, 0::2] = packed >> 4
    pixels[:, 1::2] = packed & 0xf
    return pixels[:, :buffer.width]


def _pack_nibbles(pixels: np.ndarray, out: np.ndarray):
    """Store (height, width) 4-bit values into out; the unused low nibble
    of an odd-width row keeps its old value."""
    height, width = pixels.shape
    n = (width + 1) // 2
    padded = np.zeros((height, n * 2), dtype=np.uint8)
    padded[:, :width] = pixels
    if width & 1:
        padded[:, width] = out[:, n - 1] & 0xf
    out[:, :n] = (padded[:, 0::2] << 4) | padded[:, 1::2]


def mirror_horizontal(buffer: PixelBuffer) -> PixelBuffer:
    """Mirror each row left to right.

    1-bpp images must be a multiple of 8 pixels wide, the bit-reversal
    table works on whole bytes only.
    """
    w = buffer.width
    data = buffer.data
    if buffer.bpp == 1:
        if w & 7:
            raise UnsupportedGeometry(
                f"Mirroring a 1-bpp image needs a width that is a multiple of 8 (got {w})")
        n = w >> 3
        data[:, :n] = BIT_REVERSE[data[:, n - 1::-1]]
    elif buffer.bpp == 4:
        if w & 1:
            _pack_nibbles(_unpack_nibbles(buffer)[:, ::-1], data)
        else:
            # whole bytes: reverse byte order and swap the two nibbles
            n = w >> 1
            swapped = data[:, n - 1::-1]
            data[:, :n] = (swapped << 4) | (swapped >> 4)
    elif buffer.bpp == 8:
        data[:, :w] = data[:, w - 1::-1].copy()
    else:
        step = buffer.bpp >> 3
        pixels = data[:, :w * step].reshape(buffer.height, w, step)
        data[:, :w * step] = pixels[:, ::-1].reshape(buffer.height, w * step).copy()
    return buffer


def invert(buffer: PixelBuffer) -> PixelBuffer:
    """Bitwise NOT over the whole pixel data."""
    np.bitwise_not(buffer.data, out=buffer.data)
    return buffer


def rotate_180(buffer: PixelBuffer) -> PixelBuffer:
    flip_vertical(buffer)
    return mirror_horizontal(buffer)


def _rotate_90_4bpp(buffer: PixelBuffer) -> PixelBuffer:
    """Clockwise transpose into a new buffer with swapped dimensions."""
    pixels = np.rot90(_unpack_nibbles(buffer), k=-1)
    new_width, new_height = buffer.height, buffer.width
    data = np.zeros((new_height, aligned_pitch(new_width, 4)), dtype=np.uint8)
    _pack_nibbles(pixels, data)
    return PixelBuffer(new_width, new_height, 4, data, buffer.palette)


def rotate(buffer: PixelBuffer, degrees: int) -> PixelBuffer:
    """Rotate clockwise by 0, 90, 180 or 270 degrees.

    90/270 are only implemented for 4-bpp images; for other bit depths
    they leave the image unchanged. The returned buffer may be a new one.
    """
    if degrees == 0:
        return buffer
    if degrees == 180:
        return rotate_180(buffer)
    if buffer.bpp != 4:
        logger.warning("%d degree rotation is not supported for %d-bpp images, skipped",
                       degrees, buffer.bpp)
        return buffer
    rotated = _rotate_90_4bpp(buffer)
    if degrees == 270:
        rotate_180(rotated)
    return rotated
