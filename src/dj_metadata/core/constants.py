"""
Core Constants for DJ Metadata Toolkit

Zentrale Konfiguration aller Magic Numbers und Schwellwerte.
Values in this module are part of the on-disk formats and must not change.
"""

# ID3v2 (frame-based container)
ID3V2_MAGIC = b"ID3"
ID3V2_HEADER_SIZE = 10
ID3V2_FOOTER_SIZE = 10
ID3V2_MAX_SIZE = (1 << 28) - 1  # 28 usable bits in a synchsafe integer

ID3V2_FLAG_UNSYNC = 0x80
ID3V2_FLAG_EXTENDED = 0x40       # v2.2: compression
ID3V2_FLAG_EXPERIMENTAL = 0x20
ID3V2_FLAG_FOOTER = 0x10          # v2.4 only

# v2.3 frame flags (second byte)
FRAME23_COMPRESSED = 0x0080
FRAME23_ENCRYPTED = 0x0040
FRAME23_GROUPED = 0x0020

# v2.4 frame flags (second byte)
FRAME24_GROUPED = 0x0040
FRAME24_COMPRESSED = 0x0008
FRAME24_ENCRYPTED = 0x0004
FRAME24_UNSYNC = 0x0002
FRAME24_DATA_LENGTH = 0x0001

# ID3v1 (legacy fixed-layout trailer)
ID3V1_MAGIC = b"TAG"
ID3V1_SIZE = 128

# LYRICS3
LYRICS3_BEGIN = b"LYRICSBEGIN"
LYRICS3_V1_END = b"LYRICSEND"
LYRICS3_V2_END = b"LYRICS200"
LYRICS3_V2_FOOTER_SIZE = 15       # 6 size digits + "LYRICS200"
LYRICS3_V1_MAX_SIZE = 5100

# Serato GEOB descriptions
SERATO_ANALYSIS = "Serato Analysis"
SERATO_AUTOTAGS = "Serato Autotags"
SERATO_MARKERS = "Serato Markers_"
SERATO_MARKERS2 = "Serato Markers2"
SERATO_OVERVIEW = "Serato Overview"
SERATO_BEATGRID = "Serato BeatGrid"
SERATO_PLAYCOUNT = "SERATO_PLAYCOUNT"
SERATO_LEGACY_MARKER_SIZE = 22

# VirtualDJ sample container
VDJ_SAMPLE_MAGIC = b"VDJ\x00"
VDJ_SAMPLE_HEADER_SIZE = 0x78
VDJ_SAMPLE_VERSION = 8.30
VDJ_MAX_TOTAL_DURATION = 36000.0  # 10 hours, anything else is garbage
VDJ_MIN_GAIN = 0.0975
VDJ_MAX_GAIN = 3.7
MAX_THUMBNAIL_SIZE = 1 << 22      # 4 MiB
PNG_SIGNATURE = b"\x89PNG"

# Fingerprint matching (AcoustID matcher settings)
FINGERPRINT_MAX_ALIGN_OFFSET = 120
FINGERPRINT_MAX_BIT_ERROR = 2
FINGERPRINT_MATCH_BITS = 14
FINGERPRINT_MIN_TOP_COUNT_RATIO = 0.02
FINGERPRINT_MATCH_THRESHOLD = 0.9

# Caller-side input limits
MIN_TAG_INPUT_SIZE = 256
MAX_TAG_INPUT_SIZE = 100 << 20    # 100 MiB
