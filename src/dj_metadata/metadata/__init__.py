"""Tag container decoding: ID3v1, ID3v2, LYRICS3 and Serato markers."""

from .models import (
    TagFormat,
    TagFlags,
    Frame,
    TagContainer,
    TagScanResult,
    TagSummary,
    TextContent,
    UrlContent,
    UserDefinedContent,
    PictureContent,
    BinaryContent,
)
from .tag_decoder import TagDecoder, decode, decode_tags
from .lyrics3 import decode_lyrics3
from .serato_markers import SeratoDecoder, SeratoScanResult, read_serato_tags, decode_attachment

__all__ = [
    "TagFormat",
    "TagFlags",
    "Frame",
    "TagContainer",
    "TagScanResult",
    "TagSummary",
    "TextContent",
    "UrlContent",
    "UserDefinedContent",
    "PictureContent",
    "BinaryContent",
    "TagDecoder",
    "decode",
    "decode_tags",
    "decode_lyrics3",
    "SeratoDecoder",
    "SeratoScanResult",
    "read_serato_tags",
    "decode_attachment",
]
