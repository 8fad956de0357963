"""
Map RGB pixels to the small set of colors an e-paper panel can show.

The thresholds below were tuned by eye for readability on real panels;
they are not derived from any color model. Changing them changes the
output, so they are kept exactly as the panels were tuned.
"""

from functools import lru_cache
from typing import Callable, Dict, Tuple

from .buffer import RGB
from .config import OutputMode

# Symbols
BLACK = 0
WHITE = 1
THIRD_COLOR = 2  # red or yellow in the 3-color modes
YELLOW = 2       # 4-color mode
RED = 3          # 4-color mode

# Gray threshold used by the 3 and 4-color matchers
WHITE_LUMA = 100
# Dark "colored" pixels are shown as black (3-color modes)
DARK_LUMA = 100
DARK_CHANNEL = 80
# 4-color mode uses its own darkness floor
DARK_LUMA_4CLR = 90
# How far a channel must stand out from the others to count as colored
YELLOW_MARGIN = 32
RED_BLUE_MARGIN = 32
RED_GREEN_MARGIN = 32
RED_GREEN_MARGIN_4CLR = 70

# Entries kept per matcher cache
MATCH_CACHE_SIZE = 4096


def luma(r: int, g: int, b: int) -> int:
    return (b + r + g * 2) >> 2


@lru_cache(maxsize=MATCH_CACHE_SIZE)
def match_gray4(r: int, g: int, b: int) -> int:
    """2-bit gray level: the top 2 bits of the luma."""
    return luma(r, g, b) >> 6


@lru_cache(maxsize=MATCH_CACHE_SIZE)
def match_bw(r: int, g: int, b: int) -> int:
    # only the MSB of the gray level
    return match_gray4(r, g, b) >> 1


@lru_cache(maxsize=MATCH_CACHE_SIZE)
def match_red(r: int, g: int, b: int) -> int:
    """Black (0), white (1) or red (2)."""
    gr = luma(r, g, b)
    if r > g and r > b:  # red is dominant
        if gr < DARK_LUMA and r < DARK_CHANNEL:
            return BLACK
        if r - b > RED_BLUE_MARGIN and r - g > RED_GREEN_MARGIN:
            return THIRD_COLOR
        # pinkish/orange, use white instead
        return WHITE
    return WHITE if gr >= WHITE_LUMA else BLACK


@lru_cache(maxsize=MATCH_CACHE_SIZE)
def match_yellow(r: int, g: int, b: int) -> int:
    """Black (0), white (1) or yellow (2)."""
    gr = luma(r, g, b)
    if r > b and g > b:  # yellow is dominant?
        if gr < DARK_LUMA and r < DARK_CHANNEL:
            return BLACK
        if r - b > YELLOW_MARGIN and g - b > YELLOW_MARGIN:
            return THIRD_COLOR
        # yellowish should be white
        return WHITE
    return WHITE if gr >= WHITE_LUMA else BLACK


@lru_cache(maxsize=MATCH_CACHE_SIZE)
def match_bwyr(r: int, g: int, b: int) -> int:
    """Black (0), white (1), yellow (2) or red (3)."""
    gr = luma(r, g, b)
    if r > b or g > b:  # red or yellow is dominant
        if gr < DARK_LUMA_4CLR or (r < DARK_CHANNEL and g < DARK_CHANNEL):
            return BLACK
        # red needs a much stronger lead over green than over blue
        if r - b > RED_BLUE_MARGIN and r - g > RED_GREEN_MARGIN_4CLR:
            return RED
        if r - b > YELLOW_MARGIN and g - b > YELLOW_MARGIN:
            return YELLOW
        return WHITE
    return WHITE if gr >= WHITE_LUMA else BLACK


_BLACK = (0, 0, 0)
_WHITE = (255, 255, 255)
_RED = (255, 0, 0)
_YELLOW = (255, 255, 0)

_MATCHERS: Dict[OutputMode, Tuple[Callable[[int, int, int], int], Tuple[RGB, ...]]] = {
    OutputMode.BW: (match_bw, (_BLACK, _WHITE)),
    OutputMode.BWR: (match_red, (_BLACK, _WHITE, _RED)),
    OutputMode.BWY: (match_yellow, (_BLACK, _WHITE, _YELLOW)),
    OutputMode.BWYR: (match_bwyr, (_BLACK, _WHITE, _YELLOW, _RED)),
    OutputMode.GRAY4: (match_gray4, tuple((v, v, v) for v in (0x00, 0x55, 0xaa, 0xff))),
}


class ColorMatcher:
    """Symbol lookup for one output mode."""

    def __init__(self, mode: OutputMode):
        self.mode = mode
        self._match, self.colors = _MATCHERS[mode]

    def __repr__(self):
        return f"ColorMatcher({self.mode.value})"

    def symbol(self, r: int, g: int, b: int) -> int:
        return self._match(r, g, b)

    def color(self, symbol: int) -> RGB:
        """The RGB the panel shows for a symbol."""
        return self.colors[symbol]

    def best_color(self, r: int, g: int, b: int) -> RGB:
        return self.colors[self._match(r, g, b)]
