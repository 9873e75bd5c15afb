"""
Exception types and issue records shared by all codecs.

Absent sub-formats are reported as ``None`` rather than raised, and entries
a decoder does not understand become explicit ``Unknown*`` variants, so only
real faults end up here.
"""

from dataclasses import dataclass
from typing import Optional


class DJMetadataError(Exception):
    """Base exception for all codec errors"""
    pass


class OutOfBoundsError(DJMetadataError):
    """A read or write would run past the end of the byte sequence"""

    def __init__(self, offset: int, size: int, length: int):
        self.offset = offset
        self.size = size
        self.length = length
        super().__init__(
            f"Cannot access {size} byte(s) at offset {offset} "
            f"(buffer length {length})"
        )


class InvalidFormatError(DJMetadataError):
    """A structural invariant of the format is violated"""
    pass


class MissingMediaError(DJMetadataError):
    """A sample container without media payload cannot be serialized"""
    pass


class DecodeError(DJMetadataError):
    """Fatal failure while decoding one sub-format"""

    def __init__(self, sub_format: str, offset: int, message: str,
                 cause: Optional[Exception] = None):
        self.sub_format = sub_format
        self.offset = offset
        self.message = message
        self.cause = cause
        super().__init__(f"{sub_format} at offset {offset}: {message}")


@dataclass(frozen=True)
class DecodeIssue:
    """Non-fatal problem recorded while decoding"""
    sub_format: str
    offset: int
    message: str

    def __str__(self) -> str:
        return f"{self.sub_format} @ {self.offset}: {self.message}"
