"""
LYRICS3 footer decoder

A LYRICS3 block sits at the end of the input, or directly before the
128-byte legacy trailer when one is present.

v2: LYRICSBEGIN, then ``[3-char id][5-digit length][content]`` fields, then
a 6-digit block size and ``LYRICS200``.
v1: LYRICSBEGIN, lyrics text, ``LYRICSEND`` (block at most 5100 bytes).
"""

import logging
from typing import List, Optional, Tuple, Union

from ..core.binary_cursor import BinaryCursor
from ..core.constants import (
    ID3V1_MAGIC,
    ID3V1_SIZE,
    LYRICS3_BEGIN,
    LYRICS3_V1_END,
    LYRICS3_V1_MAX_SIZE,
    LYRICS3_V2_END,
    LYRICS3_V2_FOOTER_SIZE,
)
from ..core.exceptions import DecodeError, DecodeIssue, OutOfBoundsError
from .frame_tables import LYRICS3_FIELD_NAMES
from .models import (
    BinaryContent,
    Frame,
    FrameContent,
    LyricLine,
    LyricSection,
    LyricsContent,
    LyricsImage,
    LyricsImagesContent,
    LyricsIndicators,
    LyricsInfoContent,
    TagContainer,
    TagFormat,
    TextContent,
)

logger = logging.getLogger(__name__)

TEXT_FIELDS = ('EAL', 'EAR', 'ETT', 'AUT')


def lyric_time(stamp: str) -> Optional[float]:
    """Seconds for a ``[mm:ss]`` stamp, None for anything else"""
    if len(stamp) == 7 and stamp[0] == '[' and stamp[6] == ']' and stamp[3] == ':':
        minutes, seconds = stamp[1:3], stamp[4:6]
        if minutes.isdigit() and seconds.isdigit():
            return float(int(minutes) * 60 + int(seconds))
    return None


def parse_lyrics(text: str) -> Tuple[Union[LyricLine, LyricSection], ...]:
    """Split lyrics into timed lines and untimed section markers"""
    entries: List[Union[LyricLine, LyricSection]] = []
    for line in text.split('\r\n'):
        parts = line.split(']')
        if len(parts) == 1:
            if parts[0].strip():
                entries.append(LyricSection(parts[0]))
            continue
        # "[00:12][01:30]chorus" yields one entry per stamp
        for part in parts[:-1]:
            stamp = part + ']'
            entries.append(LyricLine(lyric_time(stamp), parts[-1], stamp))
    return tuple(entries)


def parse_images(text: str) -> Tuple[LyricsImage, ...]:
    images = []
    for line in text.split('\r\n'):
        if not line:
            continue
        filename, title, stamp = (line.split('||') + ['', ''])[:3]
        images.append(LyricsImage(filename, title, lyric_time(stamp), stamp))
    return tuple(images)


def parse_indicators(text: str) -> LyricsIndicators:
    flags = text.ljust(3, '0')
    return LyricsIndicators(
        has_lyrics=flags[0] == '1',
        has_timestamps=flags[1] == '1',
        inhibits_random=flags[2] == '1',
    )


def _decode_field(field_id: str, content: str) -> FrameContent:
    if field_id == 'IND':
        return parse_indicators(content)
    if field_id == 'INF':
        return LyricsInfoContent(tuple(content.split('\r\n')))
    if field_id == 'LYR':
        return LyricsContent(parse_lyrics(content))
    if field_id == 'IMG':
        return LyricsImagesContent(parse_images(content))
    if field_id in TEXT_FIELDS:
        return TextContent(content, (content,) if content else ())
    return BinaryContent(content.encode("latin-1"))


def _block_end(data: bytes) -> int:
    """Offset right after the LYRICS3 block"""
    if len(data) >= ID3V1_SIZE and data[-ID3V1_SIZE:-ID3V1_SIZE + 3] == ID3V1_MAGIC:
        return len(data) - ID3V1_SIZE
    return len(data)


def decode_lyrics3(data: bytes) -> Optional[TagContainer]:
    """Decode a LYRICS3 v2 or v1 block (None when no footer marker is found)"""
    end = _block_end(data)
    if end >= LYRICS3_V2_FOOTER_SIZE and data[end - len(LYRICS3_V2_END):end] == LYRICS3_V2_END:
        return _decode_v2(data, end)
    if end >= len(LYRICS3_V1_END) and data[end - len(LYRICS3_V1_END):end] == LYRICS3_V1_END:
        return _decode_v1(data, end)
    return None


def _decode_v2(data: bytes, end: int) -> Optional[TagContainer]:
    footer = end - LYRICS3_V2_FOOTER_SIZE
    size_text = data[footer:footer + 6]
    if not size_text.isdigit():
        logger.debug(f"LYRICS200 marker without a valid size at offset {footer}")
        return None
    size = int(size_text)
    start = footer - size

    cursor = BinaryCursor(data)
    try:
        if start < 0:
            raise OutOfBoundsError(start, size, len(data))
        block = cursor.seek(start).read_bytes(size)
    except OutOfBoundsError as e:
        raise DecodeError("LYRICS3", max(start, 0), "block size exceeds input", e) from e

    if not block.startswith(LYRICS3_BEGIN):
        logger.debug(f"LYRICS3 v2 block at offset {start} lacks LYRICSBEGIN")
        return None

    issues = []
    frames = []
    indicators = None
    fields = BinaryCursor(block, len(LYRICS3_BEGIN))
    while not fields.at_end():
        position = fields.position
        if fields.remaining < 8:
            issues.append(DecodeIssue("LYRICS3", start + position, "truncated field header"))
            break
        field_id = fields.read_bytes(3).decode("latin-1")
        length_text = fields.read_bytes(5)
        if not length_text.isdigit():
            issues.append(DecodeIssue("LYRICS3", start + position, f"field {field_id!r} has no valid length"))
            break
        length = int(length_text)
        if length > fields.remaining:
            issues.append(DecodeIssue("LYRICS3", start + position, f"field {field_id!r} exceeds block"))
            break

        offset = fields.position
        content = _decode_field(field_id, fields.read_bytes(length).decode("latin-1"))
        if isinstance(content, LyricsIndicators):
            indicators = content
        known = field_id in LYRICS3_FIELD_NAMES
        frames.append(Frame(
            frame_id=field_id,
            name=LYRICS3_FIELD_NAMES.get(field_id, 'unknown'),
            offset=offset,
            size=length,
            content=content,
            known=known,
        ))

    for issue in issues:
        logger.warning(f"LYRICS3 issue: {issue}")

    return TagContainer(
        tag_format=TagFormat.LYRICS3,
        version=2.0,
        version_raw=0x0200,
        file_offset=start,
        size=size + LYRICS3_V2_FOOTER_SIZE,
        frames=tuple(frames),
        data=block,
        lyrics_flags=indicators,
        issues=tuple(issues),
    )


def _decode_v1(data: bytes, end: int) -> Optional[TagContainer]:
    marker = end - len(LYRICS3_V1_END)
    window_start = max(0, end - LYRICS3_V1_MAX_SIZE)
    start = data.rfind(LYRICS3_BEGIN, window_start, marker)
    if start < 0:
        logger.debug("LYRICSEND without LYRICSBEGIN in the search window")
        return None

    offset = len(LYRICS3_BEGIN)
    text = data[start + offset:marker].decode("latin-1")
    frame = Frame(
        frame_id='LYR',
        name=LYRICS3_FIELD_NAMES['LYR'],
        offset=offset,
        size=marker - start - offset,
        content=LyricsContent(parse_lyrics(text)),
    )
    return TagContainer(
        tag_format=TagFormat.LYRICS3,
        version=1.0,
        version_raw=0x0100,
        file_offset=start,
        size=end - start,
        frames=(frame,),
        data=bytes(data[start:end]),
    )
