"""Tests for byte-order resolution and host normalization."""

import pytest

from jpegexif.byteorder import (
    BIG_ENDIAN_MARK, LITTLE_ENDIAN_MARK,
    resolve_data_order, swab16, swab32, to_host_long, to_host_short,
)


class TestResolveDataOrder:
    def test_little_endian_mark(self):
        assert resolve_data_order(LITTLE_ENDIAN_MARK) == '<'
        assert resolve_data_order(b'II') == '<'

    def test_big_endian_mark(self):
        assert resolve_data_order(BIG_ENDIAN_MARK) == '>'
        assert resolve_data_order(b'MM') == '>'

    @pytest.mark.parametrize('marker', [0, 0x4D49, 0x494D, b'IM', b'\x00\x00', b'I', b'IIx'])
    def test_invalid_marks(self, marker):
        assert resolve_data_order(marker) is None


class TestSwap:
    def test_swab16(self):
        assert swab16(0x1234) == 0x3412
        assert swab16(0x00FF) == 0xFF00

    def test_swab32(self):
        assert swab32(0x12345678) == 0x78563412
        assert swab32(0x000000FF) == 0xFF000000

    def test_double_swap_is_identity(self):
        assert swab16(swab16(0xBEEF)) == 0xBEEF
        assert swab32(swab32(0xDEADBEEF)) == 0xDEADBEEF


class TestToHost:
    def test_same_order_untouched(self):
        assert to_host_short(0x1234, True, True) == 0x1234
        assert to_host_short(0x1234, False, False) == 0x1234
        assert to_host_long(0x12345678, True, True) == 0x12345678
        assert to_host_long(0x12345678, False, False) == 0x12345678

    def test_differing_order_swapped(self):
        assert to_host_short(0x1234, True, False) == 0x3412
        assert to_host_short(0x1234, False, True) == 0x3412
        assert to_host_long(0x12345678, False, True) == 0x78563412
        assert to_host_long(0x12345678, True, False) == 0x78563412
