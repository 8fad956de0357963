"""
Read RGB values out of a PixelBuffer regardless of its bit depth.
"""

from typing import List

import numpy as np

from .buffer import RGB, PixelBuffer


class PixelSampler:
    """Returns (r, g, b) for any pixel of the buffer.

    No bounds checking is done; callers stay inside width x height.
    1, 4 and 8-bpp pixels go through the palette (a 1-bpp buffer without
    one is plain black/white, bit set = white), 24/32-bpp are stored as
    B, G, R[, x].
    """

    def __init__(self, buffer: PixelBuffer):
        self.buffer = buffer
        self._palette = buffer.palette.as_array() if buffer.palette is not None else None

    def sample(self, x: int, y: int) -> RGB:
        buf = self.buffer
        row = buf.data[y]
        if buf.bpp == 1:
            bit = (int(row[x >> 3]) >> (7 - (x & 7))) & 1
            if self._palette is not None:
                r, g, b = self._palette[bit]
                return int(r), int(g), int(b)
            v = 255 if bit else 0
            return v, v, v
        if buf.bpp == 4:
            uc = int(row[x >> 1])
            if (x & 1) == 0:
                uc >>= 4
            r, g, b = self._palette[uc & 0xf]
            return int(r), int(g), int(b)
        if buf.bpp == 8:
            r, g, b = self._palette[row[x]]
            return int(r), int(g), int(b)
        offset = x * (buf.bpp >> 3)
        b, g, r = row[offset:offset + 3]
        return int(r), int(g), int(b)

    def row_array(self, y: int) -> np.ndarray:
        """All pixels of row y as a (width, 3) uint8 array of R, G, B."""
        buf = self.buffer
        w = buf.width
        row = buf.data[y]
        if buf.bpp == 1:
            bits = np.unpackbits(row[:(w + 7) // 8])[:w]
            if self._palette is not None:
                return self._palette[bits]
            grey = bits * np.uint8(255)
            return np.stack([grey, grey, grey], axis=-1)
        if buf.bpp == 4:
            packed = row[:(w + 1) // 2]
            indices = np.empty(packed.size * 2, dtype=np.uint8)
            indices[0::2] = packed >> 4
            indices[1::2] = packed & 0xf
            return self._palette[indices[:w]]
        if buf.bpp == 8:
            return self._palette[row[:w]]
        step = buf.bpp >> 3
        pixels = row[:w * step].reshape(w, step)
        return pixels[:, [2, 1, 0]]

    def row(self, y: int) -> List[RGB]:
        return [tuple(px) for px in self.row_array(y).tolist()]
