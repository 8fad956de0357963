import numpy as np
import pytest

from epdimage.buffer import Palette, PixelBuffer
from epdimage.config import OutputMode
from epdimage.errors import UnsupportedConfiguration
from epdimage.packer import (
    copy_1bpp_plane, pack_2bit, pack_bits, pack_planes, pack_symbol_rows, plane_pitch,
)

from conftest import rgb_buffer, unpack_plane


def test_pack_bits_msb_first():
    assert pack_bits([1, 0, 1, 1, 0, 0, 0, 1]) == b'\xb1'


def test_pack_bits_pads_last_byte_with_zeros_on_the_right():
    assert pack_bits([1] * 7) == b'\xfe'
    assert pack_bits([1] * 9) == b'\xff\x80'
    assert pack_bits([0, 1, 1]) == bytes([0b01100000])


def test_pack_2bit():
    assert pack_2bit([3, 2, 1, 0]) == b'\xe4'
    assert pack_2bit([3, 3, 3]) == b'\xfc'
    assert pack_2bit([1, 2, 3, 0, 2]) == bytes([0b01101100, 0b10000000])


def test_plane_pitch():
    assert plane_pitch(8) == 1
    assert plane_pitch(9) == 2
    assert plane_pitch(4, 2) == 1
    assert plane_pitch(5, 2) == 2


def test_exact_multiple_width_has_no_padding():
    rows = [[1, 0] * 8]
    plane, = pack_symbol_rows(rows, 16, 1, OutputMode.BW)
    assert plane.data == b'\xaa\xaa'
    packed, = pack_symbol_rows([[1, 2, 3, 0] * 2], 8, 1, OutputMode.BWYR)
    assert packed.data == b'\x6c\x6c'


def test_rows_do_not_share_bytes():
    rows = [[1, 1, 1], [0, 0, 1]]
    plane, = pack_symbol_rows(rows, 3, 2, OutputMode.BW)
    assert plane.pitch == 1
    assert plane.data == b'\xe0\x20'


def test_split_planes_take_bit0_then_bit1():
    plane0, plane1 = pack_symbol_rows([[2, 1, 0, 3]], 4, 1, OutputMode.GRAY4)
    assert plane0.index == 0 and plane1.index == 1
    assert plane0.data == bytes([0b01010000])
    assert plane1.data == bytes([0b10010000])


@pytest.mark.parametrize("width", [1, 3, 7, 8, 9, 15, 16, 17])
def test_round_trip(width):
    rng = np.random.default_rng(width)
    height = 3
    binary = rng.integers(0, 2, size=(height, width)).tolist()
    quad = rng.integers(0, 4, size=(height, width)).tolist()

    plane, = pack_symbol_rows(binary, width, height, OutputMode.BW)
    assert plane.size == plane_pitch(width) * height
    assert unpack_plane(plane) == binary

    packed, = pack_symbol_rows(quad, width, height, OutputMode.BWYR)
    assert packed.packed
    assert packed.size == plane_pitch(width, 2) * height
    assert unpack_plane(packed) == quad

    low, high = pack_symbol_rows(quad, width, height, OutputMode.BWR)
    merged = [[l | (h << 1) for l, h in zip(lr, hr)]
              for lr, hr in zip(unpack_plane(low), unpack_plane(high))]
    assert merged == quad


def test_width_one_short_of_boundary_matches_hand_packed():
    plane, = pack_symbol_rows([[1, 0, 1, 0, 1, 0, 1]], 7, 1, OutputMode.BW)
    assert plane.data == bytes([0b10101010])
    packed, = pack_symbol_rows([[3, 1, 2]], 3, 1, OutputMode.BWYR)
    assert packed.data == bytes([0b11011000])


def test_pack_planes_bwr():
    buf = rgb_buffer([[(255, 0, 0), (255, 255, 255), (0, 0, 0), (255, 255, 0)]])
    plane0, plane1 = pack_planes(buf, OutputMode.BWR)
    assert plane0.data == bytes([0b01010000])
    assert plane1.data == bytes([0b10000000])


def test_copy_1bpp_plane_inverts_when_index_1_is_black():
    buf = PixelBuffer.blank(10, 2, 1, Palette([(255, 255, 255), (0, 0, 0)]))
    buf.data[0, :2] = (0xf0, 0x40)
    buf.data[1, :2] = (0x00, 0xff)
    plane = copy_1bpp_plane(buf)
    assert plane.pitch == 2
    assert plane.data == bytes([0x0f, 0x80, 0xff, 0x00])


def test_copy_1bpp_plane_keeps_bits_when_index_1_is_white():
    buf = PixelBuffer.blank(10, 1, 1, Palette([(0, 0, 0), (255, 255, 255)]))
    buf.data[0, :2] = (0xf0, 0x7f)
    assert copy_1bpp_plane(buf).data == bytes([0xf0, 0x40])
    buf.palette = None
    assert copy_1bpp_plane(buf).data == bytes([0xf0, 0x40])


def test_copy_1bpp_plane_single_panel_color():
    buf = PixelBuffer.blank(10, 1, 1, Palette([(20, 20, 20), (60, 60, 60)]))
    buf.data[0, :2] = (0xa5, 0xff)
    assert copy_1bpp_plane(buf).data == bytes([0x00, 0x00])


def test_copy_1bpp_plane_needs_1bpp_source():
    with pytest.raises(UnsupportedConfiguration):
        copy_1bpp_plane(rgb_buffer([[(0, 0, 0)]]))
