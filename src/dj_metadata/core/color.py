"""Packed 32-bit ARGB color value"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Color:
    """ARGB color packed into one unsigned 32-bit integer"""
    value: int = 0

    def __post_init__(self):
        object.__setattr__(self, "value", int(self.value) & 0xFFFFFFFF)

    @classmethod
    def from_channels(cls, a: int, r: int, g: int, b: int) -> "Color":
        return cls((a & 0xFF) << 24 | (r & 0xFF) << 16 | (g & 0xFF) << 8 | (b & 0xFF))

    @property
    def a(self) -> int:
        return self.value >> 24

    @property
    def r(self) -> int:
        return self.value >> 16 & 0xFF

    @property
    def g(self) -> int:
        return self.value >> 8 & 0xFF

    @property
    def b(self) -> int:
        return self.value & 0xFF

    def opaque(self) -> "Color":
        """Same color with the alpha channel forced to 0xFF"""
        return Color(self.value | 0xFF000000)

    def to_number(self) -> int:
        return self.value

    def hex(self) -> str:
        return f"#{self.value:08X}"

    def __int__(self) -> int:
        return self.value
