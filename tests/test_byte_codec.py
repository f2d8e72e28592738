"""Tests for little-endian field helpers."""

import pytest

from pfc_explorer.core.byte_codec import (
    decode_text,
    pad_int_string,
    read_cstring,
    read_uint16_le,
    read_uint16_or_zero,
    read_uint32_le,
    read_uint32_or_zero,
    to_hex_string,
)
from pfc_explorer.core.errors import CabinetError, OutOfRangeError, TruncatedReadError


class TestIntegerReads:
    """Test fixed-width integer reads."""

    def test_read_uint32(self):
        assert read_uint32_le(b'\x78\x56\x34\x12', 0) == 0x12345678

    def test_read_uint32_at_offset(self):
        assert read_uint32_le(b'\xff\x01\x00\x00\x00', 1) == 1

    def test_read_uint16(self):
        assert read_uint16_le(b'\x00\x34\x12', 1) == 0x1234

    def test_read_past_end_raises(self):
        """Test a read that needs more bytes than remain."""
        with pytest.raises(TruncatedReadError):
            read_uint32_le(b'\x01\x02\x03', 0)
        with pytest.raises(TruncatedReadError):
            read_uint16_le(b'\x01', 0)

    def test_truncated_read_is_index_error(self):
        """Test the error also reads as an out-of-range access."""
        with pytest.raises(IndexError):
            read_uint32_le(b'', 0)
        assert OutOfRangeError is TruncatedReadError
        assert issubclass(TruncatedReadError, CabinetError)

    def test_negative_offset_raises(self):
        with pytest.raises(TruncatedReadError):
            read_uint16_le(b'\x01\x02', -1)

    def test_or_zero_variants(self):
        """Test short buffers read as zero instead of raising."""
        assert read_uint32_or_zero(b'\x01\x02', 0) == 0
        assert read_uint16_or_zero(b'\x01', 0) == 0
        assert read_uint16_or_zero(b'\x01\x02', 0) == 0x0201


class TestStrings:
    """Test string helpers."""

    def test_cstring_stops_at_nul(self):
        assert read_cstring(b'abc\0def') == "abc"

    def test_cstring_without_nul_uses_whole_range(self):
        assert read_cstring(b'abcdef', 1, 4) == "bcd"

    def test_cstring_empty_range(self):
        assert read_cstring(b'abc', 5) == ""

    def test_cstring_is_latin1(self):
        assert read_cstring(b'caf\xe9\0') == "café"

    def test_decode_text_drops_trailing_nuls(self):
        assert decode_text(b'g\0\0') == "g"

    def test_hex_string(self):
        assert to_hex_string(0xAB, 4) == "00ab"
        assert to_hex_string(0x12345, 2) == "45"

    def test_pad_int_string(self):
        assert pad_int_string(42, 5) == "   42"
        assert pad_int_string(123456, 3) == "123456"
