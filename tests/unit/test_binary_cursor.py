"""
Unit tests for the bounds-checked binary cursor and writer.
"""

import pytest

from dj_metadata.core.binary_cursor import BIG_ENDIAN, LITTLE_ENDIAN, BinaryCursor, BinaryWriter
from dj_metadata.core.color import Color
from dj_metadata.core.exceptions import OutOfBoundsError


class TestBinaryCursor:
    """Test sequential reads."""

    def test_reads_big_endian_by_default(self):
        """Test integer reads advance the position."""
        cursor = BinaryCursor(b"\x01\x02\x03\x04\x05\x06\x07")
        assert cursor.read_u8() == 1
        assert cursor.read_u16() == 0x0203
        assert cursor.read_u32() == 0x04050607
        assert cursor.at_end()

    def test_per_read_endian_override(self):
        """Test the endian argument overrides the cursor default."""
        cursor = BinaryCursor(b"\x01\x00\x00\x00\x01\x00", endian=LITTLE_ENDIAN)
        assert cursor.read_u32() == 1
        assert cursor.read_u16(BIG_ENDIAN) == 0x0100

    def test_signed_and_float_reads(self):
        """Test signed integers and IEEE floats."""
        cursor = BinaryCursor(b"\xff\xff\xfe" + b"\x3f\x80\x00\x00")
        assert cursor.read_i8() == -1
        assert cursor.read_i16() == -2
        assert cursor.read_f32() == 1.0

    def test_read_uint_three_bytes(self):
        """Test arbitrary width unsigned reads."""
        assert BinaryCursor(b"\x01\x00\x00").read_uint(3) == 0x010000
        assert BinaryCursor(b"\x01\x00\x00", endian=LITTLE_ENDIAN).read_uint(3) == 1

    def test_read_past_end_raises(self):
        """Test a read past the end fails and leaves the position alone."""
        cursor = BinaryCursor(b"\x00\x01\x02")
        cursor.skip(2)
        with pytest.raises(OutOfBoundsError) as exc_info:
            cursor.read_u16()
        assert exc_info.value.offset == 2
        assert exc_info.value.length == 3
        assert cursor.position == 2

    def test_seek_bounds(self):
        """Test seeking to the end is allowed but not beyond."""
        cursor = BinaryCursor(b"abc")
        cursor.seek(3)
        assert cursor.remaining == 0
        with pytest.raises(OutOfBoundsError):
            cursor.seek(4)
        with pytest.raises(OutOfBoundsError):
            cursor.seek(-1)

    def test_cstring(self):
        """Test null-terminated strings skip their terminator."""
        cursor = BinaryCursor(b"image/png\x00\x03rest")
        assert cursor.read_cstring() == "image/png"
        assert cursor.read_u8() == 3
        assert cursor.read_rest() == b"rest"

    def test_cstring_without_terminator(self):
        """Test a missing terminator is out of bounds."""
        with pytest.raises(OutOfBoundsError):
            BinaryCursor(b"no terminator").read_cstring()

    def test_peek_does_not_move(self):
        """Test peeking at the current and an absolute offset."""
        cursor = BinaryCursor(b"ID3\x04")
        assert cursor.peek_bytes(3) == b"ID3"
        assert cursor.peek_bytes(1, offset=3) == b"\x04"
        assert cursor.position == 0

    def test_unknown_byte_order(self):
        """Test an invalid byte order is rejected."""
        with pytest.raises(ValueError):
            BinaryCursor(b"", endian="middle")


class TestBinaryWriter:
    """Test pre-sized writes."""

    def test_write_and_read_back(self):
        """Test writer output matches cursor reads."""
        writer = BinaryWriter(18, LITTLE_ENDIAN)
        writer.write_bytes(b"VDJ\x00").write_u32(830).write_f32(0.5).skip(2).write_u32(7, BIG_ENDIAN)
        data = writer.getvalue()

        cursor = BinaryCursor(data, endian=LITTLE_ENDIAN)
        assert cursor.read_bytes(4) == b"VDJ\x00"
        assert cursor.read_u32() == 830
        assert cursor.read_f32() == 0.5
        assert cursor.read_bytes(2) == b"\x00\x00"
        assert cursor.read_u32(BIG_ENDIAN) == 7

    def test_overflow_raises(self):
        """Test writing past the buffer size fails."""
        writer = BinaryWriter(3)
        with pytest.raises(OutOfBoundsError):
            writer.write_u32(1)


class TestColor:
    """Test ARGB color helpers."""

    def test_channels(self):
        color = Color.from_channels(0x80, 0x12, 0x34, 0x56)
        assert color.value == 0x80123456
        assert (color.a, color.r, color.g, color.b) == (0x80, 0x12, 0x34, 0x56)
        assert color.hex() == "#80123456"

    def test_opaque(self):
        assert Color(0x00CC0000).opaque() == Color(0xFFCC0000)
