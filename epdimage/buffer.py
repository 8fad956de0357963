"""
In-memory pixel buffer shared by every pipeline stage.

Rows are stored top to bottom once the orientation has been normalized,
each row padded to a 4-byte boundary like a Windows BMP.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

SUPPORTED_BPP = (1, 4, 8, 24, 32)

RGB = Tuple[int, int, int]


def aligned_pitch(width: int, bpp: int) -> int:
    """Bytes per row, dword aligned."""
    pitch = (width * bpp + 7) // 8
    return (pitch + 3) & ~3


class Palette:
    """Immutable 256-entry color table for 1, 4 and 8-bpp images."""

    SIZE = 256

    def __init__(self, colors: Sequence[RGB]):
        if len(colors) > self.SIZE:
            raise ValueError(f"palette holds at most {self.SIZE} colors")
        table = np.zeros((self.SIZE, 3), dtype=np.uint8)
        if len(colors):
            table[:len(colors)] = np.asarray(colors, dtype=np.uint8).reshape(-1, 3)
        table.flags.writeable = False
        self._table = table

    @classmethod
    def grey(cls) -> "Palette":
        """Identity gray ramp, used for 8-bit grayscale sources."""
        return cls([(i, i, i) for i in range(cls.SIZE)])

    def __getitem__(self, index: int) -> RGB:
        r, g, b = self._table[index]
        return int(r), int(g), int(b)

    def as_array(self) -> np.ndarray:
        """Read-only (256, 3) uint8 array of R, G, B."""
        return self._table


@dataclass(eq=False)
class PixelBuffer:
    width: int
    height: int
    bpp: int
    data: np.ndarray
    palette: Optional[Palette] = None
    top_down: bool = True

    def __post_init__(self):
        if self.bpp not in SUPPORTED_BPP:
            raise ValueError(f"unsupported bits per pixel: {self.bpp}")
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"invalid image size {self.width}x{self.height}")
        if self.bpp in (4, 8) and self.palette is None:
            raise ValueError(f"{self.bpp}-bpp images need a palette")
        if self.data.dtype != np.uint8 or self.data.ndim != 2:
            raise ValueError("pixel data must be a 2-D uint8 array")
        if self.data.shape[0] != self.height:
            raise ValueError("pixel data row count does not match height")
        if self.data.shape[1] < aligned_pitch(self.width, self.bpp):
            raise ValueError("pixel data rows are narrower than the aligned pitch")

    @property
    def pitch(self) -> int:
        return self.data.shape[1]

    @property
    def row_bytes(self) -> int:
        """Bytes of each row that hold pixels (the rest is padding)."""
        return (self.width * self.bpp + 7) // 8

    @classmethod
    def blank(cls, width: int, height: int, bpp: int, palette: Optional[Palette] = None) -> "PixelBuffer":
        data = np.zeros((height, aligned_pitch(width, bpp)), dtype=np.uint8)
        return cls(width, height, bpp, data, palette)

    @classmethod
    def from_bytes(cls, raw, width: int, height: int, bpp: int,
                   palette: Optional[Palette] = None, top_down: bool = True,
                   pitch: Optional[int] = None) -> "PixelBuffer":
        """Wrap raw row data; the bytes are copied."""
        if pitch is None:
            pitch = aligned_pitch(width, bpp)
        flat = np.frombuffer(bytes(raw), dtype=np.uint8)
        if flat.size < pitch * height:
            raise ValueError(f"need {pitch * height} bytes of pixel data, got {flat.size}")
        data = flat[:pitch * height].reshape(height, pitch).copy()
        return cls(width, height, bpp, data, palette, top_down)
