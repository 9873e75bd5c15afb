"""
VirtualDJ Sample Container (.vdjsample)

Read/write codec for the sample file format: a fixed 0x78-byte
little-endian header, followed by the UTF-8 source path, the media payload
(audio or video) and an optional PNG thumbnail.

Header layout (offsets in hex):
    00 magic "VDJ\\0"        04 version * 100       08 data offset
    0C media size           10 media type          14 tracks
    18 mode                 1C loop mode           20 f32 60/bpm
    24 f32 beat grid offset 28 f64 start           30 f64 duration
    38 f64 total duration   40 f64 end             48 f32 gain
    4C ARGB color           50 reserved            54 thumbnail offset
    58 thumbnail size       5C path offset         60 path length
    64 reserved (12)        70 key                 74 key match policy
"""

import logging
import math
import struct
from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import Optional, Tuple

from ..core.binary_cursor import LITTLE_ENDIAN, BinaryCursor, BinaryWriter
from ..core.color import Color
from ..core.constants import (
    MAX_THUMBNAIL_SIZE,
    PNG_SIGNATURE,
    VDJ_MAX_GAIN,
    VDJ_MAX_TOTAL_DURATION,
    VDJ_MIN_GAIN,
    VDJ_SAMPLE_HEADER_SIZE,
    VDJ_SAMPLE_MAGIC,
    VDJ_SAMPLE_VERSION,
)
from ..core.exceptions import (
    DecodeError,
    DecodeIssue,
    InvalidFormatError,
    MissingMediaError,
    OutOfBoundsError,
)

logger = logging.getLogger(__name__)


class MediaType(IntEnum):
    """Media type and track configuration codes"""
    AUDIO = 0
    AUDIO_VIDEO = 1
    VIDEO = 2


class SampleMode(IntEnum):
    DROP = 0
    LOOP = 1


class LoopMode(IntEnum):
    FLAT = 0
    PITCHED = 1
    SYNC_START = 2
    SYNC_LOCK = 3


class KeyMatchPolicy(IntEnum):
    DO_NOT_MATCH = 0
    MATCH_COMPATIBLE = 1
    MATCH_EXACT = 2


MEDIA_TYPE_NAMES = {0: 'audio', 1: 'audio+video', 2: 'video'}
SAMPLE_MODE_NAMES = {0: 'drop', 1: 'loop'}
LOOP_MODE_NAMES = {0: 'flat', 1: 'pitched', 2: 'sync-start', 3: 'sync-lock'}
KEY_MATCH_NAMES = {0: 'do not match', 1: 'match compatible key', 2: 'match exact key'}

# Key code -> name, per sample file generation. Code 0 means no key.
KEY_TABLES = {
    'vdj8': (
        None,
        'Am', 'A#m', 'Bm', 'Cm', 'C#m', 'Dm', 'Ebm', 'Em', 'Fm', 'F#m', 'Gm', 'G#m',
        'A', 'A#', 'B', 'C', 'C#', 'D', 'D#', 'E', 'F', 'F#', 'G', 'G#',
    ),
}
DEFAULT_KEY_TABLE = 'vdj8'


def _f32(value: float) -> float:
    """Round to the nearest single-precision value"""
    return struct.unpack('<f', struct.pack('<f', value))[0]


def normalize_key_name(name: str) -> str:
    """'am' -> 'Am', 'f#M' -> 'F#m'"""
    if 0 < len(name) <= 3:
        return name[0].upper() + name[1:].lower()
    return name


def layout_offsets(path_length: int, media_size: int, thumbnail_size: int) -> Tuple[int, int]:
    """Data offset and thumbnail offset (0 without thumbnail) for an encoded file"""
    data_offset = VDJ_SAMPLE_HEADER_SIZE + path_length
    thumbnail_offset = data_offset + media_size if thumbnail_size else 0
    return data_offset, thumbnail_offset


@dataclass(frozen=True)
class SampleContainer:
    """
    One sample file.

    ``beat_length`` is the on-disk tempo value (seconds per beat); ``bpm``
    derives from it. Single-precision fields are rounded on construction so
    that a decoded copy compares equal to the instance it was encoded from.
    Times are kept consistent: ``0 <= start_time <= end_time <=
    total_duration`` and ``duration == end_time - start_time``; a total
    duration outside (0, 36000) seconds resets all four times to 0.
    """
    media: bytes = field(default=b"", repr=False)
    path: str = ""
    thumbnail: Optional[bytes] = field(default=None, repr=False)
    version: float = VDJ_SAMPLE_VERSION
    media_type: int = MediaType.AUDIO
    tracks: int = MediaType.AUDIO
    mode: int = SampleMode.DROP
    loop_mode: int = LoopMode.FLAT
    beat_length: float = 0.5
    beat_grid_offset: float = 0.0
    start_time: float = 0.0
    duration: float = 0.0
    total_duration: float = 0.0
    end_time: float = 0.0
    gain: float = 1.0
    transparency_color: Color = Color(0)
    key: int = 0
    key_match: int = KeyMatchPolicy.DO_NOT_MATCH

    # As read from disk; encode recomputes them
    data_offset: int = field(default=0, compare=False)
    thumbnail_offset: int = field(default=0, compare=False)
    path_offset: int = field(default=VDJ_SAMPLE_HEADER_SIZE, compare=False)
    issues: Tuple[DecodeIssue, ...] = field(default=(), compare=False)

    def __post_init__(self):
        set_ = object.__setattr__
        set_(self, "media", bytes(self.media))
        set_(self, "thumbnail", bytes(self.thumbnail) if self.thumbnail else None)
        set_(self, "version", round(self.version * 100) / 100)
        set_(self, "beat_length", _f32(self.beat_length))
        set_(self, "beat_grid_offset", _f32(self.beat_grid_offset))
        set_(self, "gain", _f32(self.gain))
        if not isinstance(self.transparency_color, Color):
            set_(self, "transparency_color", Color(self.transparency_color))
        self._validate_times()

    def _validate_times(self) -> None:
        set_ = object.__setattr__
        total = self.total_duration
        if 0 < total < VDJ_MAX_TOTAL_DURATION:
            end = min(max(self.end_time, 0.0), total)
            start = min(max(self.start_time, 0.0), end)
            set_(self, "end_time", end)
            set_(self, "start_time", start)
            set_(self, "duration", end - start)
        else:
            for name in ("start_time", "duration", "total_duration", "end_time"):
                set_(self, name, 0.0)

    @property
    def media_size(self) -> int:
        return len(self.media)

    @property
    def thumbnail_size(self) -> int:
        return len(self.thumbnail) if self.thumbnail else 0

    @property
    def bpm(self) -> float:
        return 60.0 / self.beat_length if self.beat_length > 0 else 0.0

    @property
    def gain_db(self) -> float:
        return 20 * math.log10(self.gain) if self.gain > 0 else 0.0

    @property
    def media_type_name(self) -> Optional[str]:
        return MEDIA_TYPE_NAMES.get(self.media_type)

    @property
    def tracks_name(self) -> Optional[str]:
        return MEDIA_TYPE_NAMES.get(self.tracks)

    @property
    def mode_name(self) -> Optional[str]:
        return SAMPLE_MODE_NAMES.get(self.mode)

    @property
    def loop_mode_name(self) -> Optional[str]:
        return LOOP_MODE_NAMES.get(self.loop_mode)

    @property
    def key_match_name(self) -> Optional[str]:
        return KEY_MATCH_NAMES.get(self.key_match)

    def key_name(self, table: str = DEFAULT_KEY_TABLE) -> Optional[str]:
        names = KEY_TABLES[table]
        return names[self.key] if 0 <= self.key < len(names) else None

    def with_bpm(self, bpm: float) -> "SampleContainer":
        return replace(self, beat_length=60.0 / bpm if bpm > 0 else 0.0)

    def with_gain_db(self, db: float) -> "SampleContainer":
        """Set the gain in decibels, clamped to the range the player accepts"""
        gain = max(VDJ_MIN_GAIN, min(VDJ_MAX_GAIN, 10 ** (db / 20)))
        return replace(self, gain=gain)

    def with_key(self, name: Optional[str], table: str = DEFAULT_KEY_TABLE) -> "SampleContainer":
        if not name:
            return replace(self, key=0)
        names = KEY_TABLES[table]
        normalized = normalize_key_name(name)
        if normalized not in names:
            raise ValueError(f"Invalid key: {name}")
        return replace(self, key=names.index(normalized))

    def with_thumbnail(self, png: Optional[bytes]) -> "SampleContainer":
        """Attach a PNG thumbnail (max 4 MiB) or remove it with None"""
        if png is None:
            return replace(self, thumbnail=None)
        if len(png) > MAX_THUMBNAIL_SIZE:
            raise InvalidFormatError(f"Thumbnail is larger than 4 MiB ({len(png)} bytes)")
        if not png.startswith(PNG_SIGNATURE):
            raise InvalidFormatError("Thumbnail must be a PNG image")
        return replace(self, thumbnail=bytes(png))

    def with_times(self, start_time: float, end_time: float,
                   total_duration: Optional[float] = None) -> "SampleContainer":
        total = self.total_duration if total_duration is None else total_duration
        return replace(self, start_time=start_time, end_time=end_time,
                       total_duration=total, duration=end_time - start_time)

    def encode(self, drop_path: bool = False) -> bytes:
        return encode_sample(self, drop_path)


def decode_sample(data: bytes) -> SampleContainer:
    """
    Decode a complete sample file.

    Raises InvalidFormatError when the magic is missing and DecodeError when
    the header, path or media run past the end of ``data``. A corrupt path
    is dropped and recorded in ``issues``.
    """
    cursor = BinaryCursor(data, endian=LITTLE_ENDIAN)
    if cursor.peek_bytes(min(4, len(cursor))) != VDJ_SAMPLE_MAGIC:
        raise InvalidFormatError("Not a VDJ sample file")

    try:
        cursor.skip(4)
        version = cursor.read_u32() / 100
        data_offset = cursor.read_u32()
        media_size = cursor.read_u32()
        media_type = cursor.read_u32() & 0xFF
        tracks = cursor.read_u32() & 0xFF
        mode = cursor.read_u32() & 0xFF
        loop_mode = cursor.read_u32() & 0xFF
        beat_length = cursor.read_f32()
        beat_grid_offset = cursor.read_f32()
        start_time = cursor.read_f64()
        duration = cursor.read_f64()
        total_duration = cursor.read_f64()
        end_time = cursor.read_f64()
        gain = cursor.read_f32()
        color = Color(cursor.read_u32())
        cursor.skip(4)
        thumbnail_offset = cursor.read_u32()
        thumbnail_size = cursor.read_u32()
        path_offset = cursor.read_u32()
        path_length = cursor.read_u32()
        cursor.skip(12)
        key = cursor.read_u32() & 0xFF
        key_match = cursor.read_u32() & 0xFF
    except OutOfBoundsError as e:
        raise DecodeError("VDJSAMPLE", e.offset, "truncated header", e) from e

    issues = []
    try:
        raw_path = cursor.read_bytes(path_length)
        media = cursor.read_bytes(media_size)
    except OutOfBoundsError as e:
        raise DecodeError("VDJSAMPLE", e.offset, "path or media exceeds file", e) from e

    thumbnail = None
    if thumbnail_size:
        thumbnail = cursor.read_bytes(min(thumbnail_size, cursor.remaining))
        if len(thumbnail) < thumbnail_size:
            issues.append(DecodeIssue("VDJSAMPLE", cursor.position,
                                      f"thumbnail truncated to {len(thumbnail)} of {thumbnail_size} bytes"))

    try:
        path = raw_path.decode("utf-8")
    except UnicodeDecodeError:
        issues.append(DecodeIssue("VDJSAMPLE", VDJ_SAMPLE_HEADER_SIZE, "path is not valid UTF-8, discarded"))
        path = ""
        path_offset = VDJ_SAMPLE_HEADER_SIZE

    if thumbnail_offset and thumbnail_offset == path_offset:
        issues.append(DecodeIssue("VDJSAMPLE", 0x54, "thumbnail offset equals path offset, path discarded"))
        path = ""
        path_offset = VDJ_SAMPLE_HEADER_SIZE

    max_key = len(KEY_TABLES[DEFAULT_KEY_TABLE]) - 1
    if key > max_key:
        issues.append(DecodeIssue("VDJSAMPLE", 0x70, f"key code {key} out of range, clamped to {max_key}"))
        key = max_key

    for issue in issues:
        logger.warning(f"Sample container issue: {issue}")

    return SampleContainer(
        media=media,
        path=path,
        thumbnail=thumbnail,
        version=version,
        media_type=media_type,
        tracks=tracks,
        mode=mode,
        loop_mode=loop_mode,
        beat_length=beat_length,
        beat_grid_offset=beat_grid_offset,
        start_time=start_time,
        duration=duration,
        total_duration=total_duration,
        end_time=end_time,
        gain=gain,
        transparency_color=color,
        key=key,
        key_match=key_match,
        data_offset=data_offset,
        thumbnail_offset=thumbnail_offset,
        path_offset=path_offset,
        issues=tuple(issues),
    )


def encode_sample(sample: SampleContainer, drop_path: bool = False) -> bytes:
    """
    Serialize a sample; offsets are recomputed from the current contents.

    Raises MissingMediaError when the sample has no media payload.
    """
    if not sample.media:
        raise MissingMediaError("No media is set, cannot encode sample")

    raw_path = b"" if drop_path else sample.path.encode("utf-8")
    thumbnail = sample.thumbnail or b""
    data_offset, thumbnail_offset = layout_offsets(len(raw_path), sample.media_size, len(thumbnail))

    writer = BinaryWriter(data_offset + sample.media_size + len(thumbnail), LITTLE_ENDIAN)
    writer.write_bytes(VDJ_SAMPLE_MAGIC)
    writer.write_u32(round(sample.version * 100))
    writer.write_u32(data_offset)
    writer.write_u32(sample.media_size)
    writer.write_u32(sample.media_type & 0xFF)
    writer.write_u32(sample.tracks & 0xFF)
    writer.write_u32(sample.mode & 0xFF)
    writer.write_u32(sample.loop_mode & 0xFF)
    writer.write_f32(sample.beat_length)
    writer.write_f32(sample.beat_grid_offset)
    writer.write_f64(sample.start_time)
    writer.write_f64(sample.duration)
    writer.write_f64(sample.total_duration)
    writer.write_f64(sample.end_time)
    writer.write_f32(sample.gain)
    writer.write_u32(sample.transparency_color.to_number())
    writer.skip(4)
    writer.write_u32(thumbnail_offset)
    writer.write_u32(len(thumbnail))
    writer.write_u32(VDJ_SAMPLE_HEADER_SIZE)
    writer.write_u32(len(raw_path))
    writer.skip(12)
    writer.write_u32(sample.key & 0xFF)
    writer.write_u32(sample.key_match & 0xFF)

    writer.write_bytes(raw_path)
    writer.write_bytes(sample.media)
    writer.write_bytes(thumbnail)

    logger.debug(f"Encoded sample: {len(writer)} bytes, data at {data_offset}, thumbnail at {thumbnail_offset}")
    return writer.getvalue()
