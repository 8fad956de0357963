import pytest

from epdimage.config import OutputMode
from epdimage.matcher import (
    BLACK, MATCH_CACHE_SIZE, RED, THIRD_COLOR, WHITE, YELLOW,
    ColorMatcher, luma, match_bw, match_bwyr, match_gray4, match_red, match_yellow,
)


def test_luma_weights_green_double():
    assert luma(0, 255, 0) == 127
    assert luma(255, 0, 0) == 63
    assert luma(0, 0, 255) == 63
    assert luma(255, 255, 255) == 255


@pytest.mark.parametrize("v", range(256))
def test_pure_gray_follows_luma_threshold(v):
    expected = WHITE if v >= 100 else BLACK
    assert match_red(v, v, v) == expected
    assert match_yellow(v, v, v) == expected
    assert match_bwyr(v, v, v) == expected
    assert match_bw(v, v, v) == (1 if v >= 128 else 0)
    assert match_gray4(v, v, v) == v >> 6


def test_red_matcher():
    assert match_red(255, 0, 0) == THIRD_COLOR
    assert match_red(200, 40, 40) == THIRD_COLOR
    # dark red is black
    assert match_red(70, 10, 10) == BLACK
    # pink: red leads but not by enough
    assert match_red(255, 230, 230) == WHITE
    # yellow is not red
    assert match_red(255, 255, 0) == WHITE


def test_yellow_matcher():
    assert match_yellow(255, 255, 0) == THIRD_COLOR
    assert match_yellow(60, 60, 0) == BLACK
    assert match_yellow(255, 255, 230) == WHITE
    # red is not yellow: g is not above b
    assert match_yellow(255, 0, 0) == BLACK


def test_4color_pure_red_is_black():
    # luma 63 < 90 trips the darkness test before the red test
    assert match_bwyr(255, 0, 0) == BLACK


def test_4color_matcher():
    assert match_bwyr(255, 100, 0) == RED
    assert match_bwyr(255, 255, 0) == YELLOW
    assert match_bwyr(230, 180, 40) == YELLOW
    # r - g of 60 is red enough for BWR, BWYR calls it yellow
    assert match_red(255, 195, 100) == THIRD_COLOR
    assert match_bwyr(255, 195, 100) == YELLOW
    assert match_bwyr(70, 70, 10) == BLACK
    assert match_bwyr(0, 0, 255) == BLACK


def test_3color_and_4color_dark_floors_differ():
    # luma 92 is below the 3-color floor but r is too bright for black
    assert match_yellow(120, 110, 30) == THIRD_COLOR
    # luma 97: black with the 3-color rule (r < 80), yellow with the 4-color rule
    assert match_yellow(79, 150, 10) == BLACK
    assert match_bwyr(79, 150, 10) == YELLOW


def test_gray4_levels():
    assert match_gray4(0, 0, 0) == 0
    assert match_gray4(64, 64, 64) == 1
    assert match_gray4(128, 128, 128) == 2
    assert match_gray4(255, 255, 255) == 3


def test_color_matcher_colors():
    bwr = ColorMatcher(OutputMode.BWR)
    assert bwr.best_color(240, 10, 10) == (255, 0, 0)
    assert bwr.best_color(30, 30, 30) == (0, 0, 0)
    bwyr = ColorMatcher(OutputMode.BWYR)
    assert bwyr.color(RED) == (255, 0, 0)
    assert bwyr.color(YELLOW) == (255, 255, 0)
    gray = ColorMatcher(OutputMode.GRAY4)
    assert gray.best_color(130, 130, 130) == (0xaa, 0xaa, 0xaa)


@pytest.mark.parametrize("mode", list(OutputMode))
def test_panel_colors_match_themselves(mode):
    matcher = ColorMatcher(mode)
    for symbol, rgb in enumerate(matcher.colors):
        if mode is OutputMode.BWYR and symbol == RED:
            continue  # pure red falls under the 4-color darkness floor
        assert matcher.symbol(*rgb) == symbol


@pytest.mark.parametrize("matcher", [match_gray4, match_bw, match_red, match_yellow, match_bwyr])
def test_matcher_caches_are_bounded(matcher):
    assert matcher.cache_info().maxsize == MATCH_CACHE_SIZE
    for v in range(MATCH_CACHE_SIZE + 10):
        matcher(v & 0xff, (v >> 8) & 0xff, 7)
    assert matcher.cache_info().currsize <= MATCH_CACHE_SIZE
