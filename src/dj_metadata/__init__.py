"""
DJ Metadata Toolkit

Codecs for the metadata DJ software stores alongside audio: ID3 and LYRICS3
tag containers, Serato markers embedded in ID3 attachments, VirtualDJ sample
files and Chromaprint fingerprint matching.

Features:
- ID3v1/v1.1, ID3v2.2/2.3/2.4 and LYRICS3 v1/v2 tag decoding
- Serato cues, loops, beat grid, autotags and waveform overview
- VirtualDJ .vdjsample reading and writing
- Fingerprint similarity scoring with offset alignment
"""

__version__ = "1.0.0"
__author__ = "DJ Metadata Toolkit Contributors"
__license__ = "MIT"

# Export main classes and functions
from .core.config_manager import get_config_manager, DJMetadataConfig
from .core.exceptions import (
    DJMetadataError,
    OutOfBoundsError,
    InvalidFormatError,
    MissingMediaError,
    DecodeError,
    DecodeIssue,
)
from .metadata.models import TagContainer, TagFormat, TagScanResult
from .metadata.tag_decoder import TagDecoder, decode, decode_tags
from .metadata.serato_markers import SeratoDecoder, read_serato_tags
from .samples.vdj_sample import SampleContainer, decode_sample, encode_sample
from .audio.fingerprinting import Fingerprint
from .audio.fingerprint_matcher import FingerprintMatcher, compare, compare_with_offset

__all__ = [
    "__version__",
    "__author__",
    "__license__",
    "DJMetadataConfig",
    "get_config_manager",
    "DJMetadataError",
    "OutOfBoundsError",
    "InvalidFormatError",
    "MissingMediaError",
    "DecodeError",
    "DecodeIssue",
    "TagContainer",
    "TagFormat",
    "TagScanResult",
    "TagDecoder",
    "decode",
    "decode_tags",
    "SeratoDecoder",
    "read_serato_tags",
    "SampleContainer",
    "decode_sample",
    "encode_sample",
    "Fingerprint",
    "FingerprintMatcher",
    "compare",
    "compare_with_offset",
]
