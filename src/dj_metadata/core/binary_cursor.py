"""
Bounds-checked Binary Cursor

Sequential reader and pre-sized writer for fixed-width integers, floats,
raw byte runs and null-terminated strings. Every access is checked against
the underlying buffer and fails with OutOfBoundsError instead of reading or
writing past its end.
"""

import struct
from typing import Dict, Optional, Tuple

from .exceptions import OutOfBoundsError

BIG_ENDIAN = "big"
LITTLE_ENDIAN = "little"

_PREFIX = {BIG_ENDIAN: ">", LITTLE_ENDIAN: "<"}

# name -> (struct code, width)
_FORMATS: Dict[str, Tuple[str, int]] = {
    "u8": ("B", 1), "i8": ("b", 1),
    "u16": ("H", 2), "i16": ("h", 2),
    "u32": ("I", 4), "i32": ("i", 4),
    "u64": ("Q", 8), "i64": ("q", 8),
    "f32": ("f", 4), "f64": ("d", 8),
}


def _byte_order(endian: str) -> str:
    try:
        return _PREFIX[endian]
    except KeyError:
        raise ValueError(f"Unknown byte order: {endian!r}") from None


class BinaryCursor:
    """
    Read-only cursor over a byte sequence.

    The default byte order is chosen per cursor and can be overridden for a
    single read with the ``endian`` argument.
    """

    def __init__(self, data: bytes, position: int = 0, endian: str = BIG_ENDIAN):
        self._data = memoryview(bytes(data))
        self._prefix = _byte_order(endian)
        self.position = 0
        self.seek(position)

    def __len__(self) -> int:
        return len(self._data)

    @property
    def remaining(self) -> int:
        return len(self._data) - self.position

    def at_end(self) -> bool:
        return self.position >= len(self._data)

    def _check(self, size: int, offset: Optional[int] = None) -> int:
        start = self.position if offset is None else offset
        if size < 0 or start < 0 or start + size > len(self._data):
            raise OutOfBoundsError(start, size, len(self._data))
        return start

    def seek(self, position: int) -> "BinaryCursor":
        """Move to an absolute position (the end position is allowed)"""
        if position < 0 or position > len(self._data):
            raise OutOfBoundsError(position, 0, len(self._data))
        self.position = position
        return self

    def skip(self, count: int) -> "BinaryCursor":
        self._check(count)
        self.position += count
        return self

    def _unpack(self, name: str, endian: Optional[str]):
        code, width = _FORMATS[name]
        start = self._check(width)
        prefix = self._prefix if endian is None else _byte_order(endian)
        value = struct.unpack_from(prefix + code, self._data, start)[0]
        self.position = start + width
        return value

    def read_u8(self) -> int:
        return self._unpack("u8", None)

    def read_i8(self) -> int:
        return self._unpack("i8", None)

    def read_u16(self, endian: Optional[str] = None) -> int:
        return self._unpack("u16", endian)

    def read_i16(self, endian: Optional[str] = None) -> int:
        return self._unpack("i16", endian)

    def read_u32(self, endian: Optional[str] = None) -> int:
        return self._unpack("u32", endian)

    def read_i32(self, endian: Optional[str] = None) -> int:
        return self._unpack("i32", endian)

    def read_u64(self, endian: Optional[str] = None) -> int:
        return self._unpack("u64", endian)

    def read_i64(self, endian: Optional[str] = None) -> int:
        return self._unpack("i64", endian)

    def read_f32(self, endian: Optional[str] = None) -> float:
        return self._unpack("f32", endian)

    def read_f64(self, endian: Optional[str] = None) -> float:
        return self._unpack("f64", endian)

    def read_uint(self, width: int, endian: Optional[str] = None) -> int:
        """Unsigned integer of arbitrary byte width (e.g. 3-byte sizes)"""
        raw = self.read_bytes(width)
        return int.from_bytes(raw, endian or self._endian_name())

    def _endian_name(self) -> str:
        return BIG_ENDIAN if self._prefix == ">" else LITTLE_ENDIAN

    def read_bytes(self, count: int) -> bytes:
        start = self._check(count)
        self.position = start + count
        return bytes(self._data[start:start + count])

    def peek_bytes(self, count: int, offset: Optional[int] = None) -> bytes:
        start = self._check(count, offset)
        return bytes(self._data[start:start + count])

    def read_rest(self) -> bytes:
        return self.read_bytes(self.remaining)

    def read_cstring(self, encoding: str = "latin-1", limit: Optional[int] = None) -> str:
        """
        Read text up to the next null byte and advance past the terminator.

        A missing terminator is an OutOfBoundsError. ``limit`` caps how many
        bytes are searched.
        """
        end = len(self._data) if limit is None else min(len(self._data), self.position + limit)
        terminator = bytes(self._data[self.position:end]).find(b"\x00")
        if terminator < 0:
            raise OutOfBoundsError(self.position, end - self.position + 1, len(self._data))
        raw = self.read_bytes(terminator)
        self.position += 1
        return raw.decode(encoding, errors="replace")


class BinaryWriter:
    """Writer into a pre-sized output buffer"""

    def __init__(self, size: int, endian: str = BIG_ENDIAN):
        self._buffer = bytearray(size)
        self._prefix = _byte_order(endian)
        self.position = 0

    def __len__(self) -> int:
        return len(self._buffer)

    def _check(self, size: int) -> int:
        if self.position + size > len(self._buffer):
            raise OutOfBoundsError(self.position, size, len(self._buffer))
        return self.position

    def _pack(self, name: str, value, endian: Optional[str]) -> "BinaryWriter":
        code, width = _FORMATS[name]
        start = self._check(width)
        prefix = self._prefix if endian is None else _byte_order(endian)
        struct.pack_into(prefix + code, self._buffer, start, value)
        self.position = start + width
        return self

    def write_u8(self, value: int) -> "BinaryWriter":
        return self._pack("u8", value, None)

    def write_u16(self, value: int, endian: Optional[str] = None) -> "BinaryWriter":
        return self._pack("u16", value, endian)

    def write_u32(self, value: int, endian: Optional[str] = None) -> "BinaryWriter":
        return self._pack("u32", value, endian)

    def write_i32(self, value: int, endian: Optional[str] = None) -> "BinaryWriter":
        return self._pack("i32", value, endian)

    def write_u64(self, value: int, endian: Optional[str] = None) -> "BinaryWriter":
        return self._pack("u64", value, endian)

    def write_f32(self, value: float, endian: Optional[str] = None) -> "BinaryWriter":
        return self._pack("f32", value, endian)

    def write_f64(self, value: float, endian: Optional[str] = None) -> "BinaryWriter":
        return self._pack("f64", value, endian)

    def write_bytes(self, data: bytes) -> "BinaryWriter":
        start = self._check(len(data))
        self._buffer[start:start + len(data)] = data
        self.position = start + len(data)
        return self

    def skip(self, count: int) -> "BinaryWriter":
        """Leave ``count`` zero bytes (reserved fields)"""
        self._check(count)
        self.position += count
        return self

    def getvalue(self) -> bytes:
        return bytes(self._buffer)
