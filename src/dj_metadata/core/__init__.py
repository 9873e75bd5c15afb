"""Core components for DJ Metadata Toolkit."""

from .binary_cursor import BinaryCursor, BinaryWriter, BIG_ENDIAN, LITTLE_ENDIAN
from .color import Color
from .config_manager import ConfigManager, DJMetadataConfig, get_config_manager, get_config
from .exceptions import (
    DJMetadataError,
    OutOfBoundsError,
    InvalidFormatError,
    MissingMediaError,
    DecodeError,
    DecodeIssue,
)

__all__ = [
    "BinaryCursor",
    "BinaryWriter",
    "BIG_ENDIAN",
    "LITTLE_ENDIAN",
    "Color",
    "ConfigManager",
    "DJMetadataConfig",
    "get_config_manager",
    "get_config",
    "DJMetadataError",
    "OutOfBoundsError",
    "InvalidFormatError",
    "MissingMediaError",
    "DecodeError",
    "DecodeIssue",
]
