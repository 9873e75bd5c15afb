"""
ID3 Tag Decoder

Reads the legacy 128-byte trailer (1.0/1.1) and the frame-based container
(2.2/2.3/2.4) from an in-memory byte sequence. LYRICS3 footers are handled
by ``lyrics3`` and pulled in by ``TagDecoder.scan``.

Every sub-format is attempted independently: a missing magic yields None,
a truncated fixed header raises DecodeError for that sub-format only, and
problems inside single frames are recorded as issues on the container.
"""

import logging
from typing import Iterable, List, Optional, Tuple

from ..core.binary_cursor import BinaryCursor
from ..core.constants import (
    FRAME23_COMPRESSED,
    FRAME23_ENCRYPTED,
    FRAME23_GROUPED,
    FRAME24_COMPRESSED,
    FRAME24_DATA_LENGTH,
    FRAME24_ENCRYPTED,
    FRAME24_GROUPED,
    FRAME24_UNSYNC,
    ID3V1_MAGIC,
    ID3V1_SIZE,
    ID3V2_FLAG_EXPERIMENTAL,
    ID3V2_FLAG_EXTENDED,
    ID3V2_FLAG_FOOTER,
    ID3V2_FLAG_UNSYNC,
    ID3V2_FOOTER_SIZE,
    ID3V2_HEADER_SIZE,
    ID3V2_MAGIC,
    ID3V2_MAX_SIZE,
)
from ..core.exceptions import DecodeError, DecodeIssue, InvalidFormatError, OutOfBoundsError
from .frame_tables import (
    EXPERIMENTAL_PREFIXES,
    FRAMES_BY_VERSION,
    ID3V10_LAYOUT,
    ID3V11_LAYOUT,
    PICTURE_IDS,
    TEXT_ENCODINGS,
    USER_TEXT_IDS,
    USER_URL_IDS,
    frame_name,
    genre_name,
    picture_type_name,
)
from .lyrics3 import decode_lyrics3
from .models import (
    BinaryContent,
    Frame,
    FrameContent,
    PictureContent,
    TagContainer,
    TagFlags,
    TagFormat,
    TagScanResult,
    TextContent,
    UrlContent,
    UserDefinedContent,
)

SUB_FORMATS = ('id3v2', 'id3v1', 'lyrics3')


def decode_size(raw: bytes) -> int:
    """Decode a 4-byte synchronisation-safe integer (7 bits per byte)"""
    if len(raw) != 4:
        raise ValueError(f"Synchsafe integer needs 4 bytes, got {len(raw)}")
    return (raw[0] & 0x7F) << 21 | (raw[1] & 0x7F) << 14 | (raw[2] & 0x7F) << 7 | (raw[3] & 0x7F)


def encode_size(value: int) -> bytes:
    """Encode an integer in [0, 2^28) as a synchronisation-safe integer"""
    if not 0 <= value <= ID3V2_MAX_SIZE:
        raise ValueError(f"Value {value} does not fit into 28 bits")
    return bytes((value >> 21 & 0x7F, value >> 14 & 0x7F, value >> 7 & 0x7F, value & 0x7F))


def remove_unsync(data: bytes) -> bytes:
    """Undo unsynchronisation: every 0xFF 0x00 pair becomes 0xFF"""
    return data.replace(b"\xff\x00", b"\xff")


def _decode_text(raw: bytes, encoding: int) -> str:
    return raw.decode(TEXT_ENCODINGS[encoding], errors="replace")


def _split_terminated(raw: bytes, encoding: int) -> Tuple[bytes, bytes]:
    """Split at the first null terminator (two bytes wide for UTF-16)"""
    if encoding in (1, 2):
        for i in range(0, len(raw) - 1, 2):
            if raw[i] == 0 and raw[i + 1] == 0:
                return raw[:i], raw[i + 2:]
        return raw, b""
    end = raw.find(b"\x00")
    if end < 0:
        return raw, b""
    return raw[:end], raw[end + 1:]


def _split_values(raw: bytes, encoding: int) -> List[bytes]:
    """All null-separated strings; each UTF-16 string keeps its own byte order mark"""
    values = []
    while raw:
        value, raw = _split_terminated(raw, encoding)
        values.append(value)
    return values or [b""]


def _is_printable_id(raw: bytes) -> bool:
    return all(0x20 <= b <= 0x7E for b in raw)


class TagDecoder:
    """
    Scans one byte sequence for every supported tag container.

    The options mirror TagReaderConfig; the defaults impose no input size
    limits so short in-memory inputs can be decoded directly.
    """

    def __init__(self, tag_types: Optional[Iterable[str]] = None,
                 min_size: int = 0, max_size: Optional[int] = None,
                 only_first: bool = True, apply_unsync: bool = True):
        self.tag_types = tuple(tag_types) if tag_types is not None else SUB_FORMATS
        self.min_size = min_size
        self.max_size = max_size
        self.only_first = only_first
        self.apply_unsync = apply_unsync
        self.logger = logging.getLogger(__name__)

        unknown = set(self.tag_types) - set(SUB_FORMATS)
        if unknown:
            raise ValueError(f"Unknown tag types: {sorted(unknown)}")

    @classmethod
    def from_config(cls, config) -> "TagDecoder":
        """Build a decoder from a TagReaderConfig"""
        return cls(
            tag_types=config.tag_types,
            min_size=config.min_size,
            max_size=config.max_size,
            only_first=config.only_first,
            apply_unsync=config.apply_unsync,
        )

    def scan(self, data: bytes) -> TagScanResult:
        """Attempt every enabled sub-format and collect containers, issues and errors"""
        data = bytes(data)
        result = TagScanResult()

        if len(data) < self.min_size or (self.max_size is not None and len(data) > self.max_size):
            result.issues.append(DecodeIssue(
                "input", 0,
                f"Input size {len(data)} outside limits ({self.min_size}..{self.max_size})"
            ))
            self.logger.warning(f"Skipping tag scan: input size {len(data)} outside limits")
            return result

        for name in SUB_FORMATS:
            if name not in self.tag_types:
                continue
            try:
                containers = self._decode_sub_format(name, data)
            except DecodeError as e:
                self.logger.warning(f"Failed to decode {name}: {e}")
                result.errors.append(e)
                continue

            for container in containers:
                result.containers.append(container)
                result.issues.extend(container.issues)

        self.logger.debug(f"Tag scan found {len(result.containers)} container(s), "
                          f"{len(result.issues)} issue(s), {len(result.errors)} error(s)")
        return result

    def _decode_sub_format(self, name: str, data: bytes) -> List[TagContainer]:
        if name == 'id3v2':
            return self.decode_all_id3v2(data)
        if name == 'id3v1':
            container = self.decode_id3v1(data)
        else:
            container = decode_lyrics3(data)
        return [container] if container is not None else []

    # ------------------------------------------------------------------
    # Legacy trailer
    # ------------------------------------------------------------------

    def decode_id3v1(self, data: bytes) -> Optional[TagContainer]:
        """Decode the 128-byte trailer at the end of ``data`` (None if absent)"""
        if len(data) < ID3V1_SIZE:
            return None
        file_offset = len(data) - ID3V1_SIZE
        tag = bytes(data[file_offset:])
        if tag[:3] != ID3V1_MAGIC:
            return None

        is_11 = tag[125] == 0 and tag[126] != 0
        layout = ID3V11_LAYOUT if is_11 else ID3V10_LAYOUT

        frames = []
        for frame_id, offset, size in layout:
            raw = tag[offset:offset + size]
            if frame_id == 'TCON':
                text = genre_name(raw[0])
            elif frame_id == 'TRCK':
                text = str(raw[0])
            else:
                text = raw.split(b"\x00")[0].decode("latin-1").rstrip()
            frames.append(Frame(
                frame_id=frame_id,
                name=frame_name(frame_id),
                offset=offset,
                size=size,
                content=TextContent(text, (text,) if text else ()),
            ))

        return TagContainer(
            tag_format=TagFormat.ID3V1,
            version=1.1 if is_11 else 1.0,
            version_raw=0x0101 if is_11 else 0x0100,
            file_offset=file_offset,
            size=ID3V1_SIZE,
            frames=tuple(frames),
            data=tag,
        )

    # ------------------------------------------------------------------
    # Frame-based container
    # ------------------------------------------------------------------

    def decode_all_id3v2(self, data: bytes) -> List[TagContainer]:
        """Container at the start of ``data`` plus, unless only_first, any later ones"""
        containers = []
        first = self.decode_id3v2(data, 0)
        if first is not None:
            containers.append(first)
        if self.only_first:
            return containers

        position = first.size if first is not None else 1
        while True:
            position = data.find(ID3V2_MAGIC, position)
            if position < 0 or position + ID3V2_HEADER_SIZE > len(data):
                break
            if self._looks_like_header(data[position:position + ID3V2_HEADER_SIZE]):
                container = self.decode_id3v2(data, position)
                if container is not None:
                    containers.append(container)
                    position += container.size
                    continue
            position += 1
        return containers

    @staticmethod
    def _looks_like_header(header: bytes) -> bool:
        return (header[3] in FRAMES_BY_VERSION and header[4] != 0xFF
                and header[5] & 0x0F == 0 and all(b < 0x80 for b in header[6:10]))

    def decode_id3v2(self, data: bytes, offset: int = 0) -> Optional[TagContainer]:
        """
        Decode the frame-based container starting at ``offset``.

        Returns None when the magic is absent or the major version is not
        2, 3 or 4. Raises DecodeError when the 10-byte header is truncated.
        """
        if data[offset:offset + 3] != ID3V2_MAGIC:
            return None

        cursor = BinaryCursor(data, offset)
        try:
            cursor.skip(3)
            major = cursor.read_u8()
            revision = cursor.read_u8()
            header_flags = cursor.read_u8()
            declared = decode_size(cursor.read_bytes(4))
        except OutOfBoundsError as e:
            raise DecodeError("ID3V2", offset, "truncated header", e) from e

        if major not in FRAMES_BY_VERSION:
            self.logger.debug(f"Ignoring ID3v2 container with unsupported version 2.{major}")
            return None

        issues: List[DecodeIssue] = []
        flags = TagFlags(
            unsynchronized=bool(header_flags & ID3V2_FLAG_UNSYNC),
            compressed=major == 2 and bool(header_flags & ID3V2_FLAG_EXTENDED),
            extended=major > 2 and bool(header_flags & ID3V2_FLAG_EXTENDED),
            experimental=bool(header_flags & ID3V2_FLAG_EXPERIMENTAL),
            has_footer=major == 4 and bool(header_flags & ID3V2_FLAG_FOOTER),
        )
        total_size = ID3V2_HEADER_SIZE + declared + (ID3V2_FOOTER_SIZE if flags.has_footer else 0)

        frames_end = offset + ID3V2_HEADER_SIZE + declared
        if frames_end > len(data):
            issues.append(DecodeIssue(
                "ID3V2", offset,
                f"container declares {declared} bytes but only {len(data) - offset - ID3V2_HEADER_SIZE} remain"
            ))
            frames_end = len(data)

        header = bytes(data[offset:offset + ID3V2_HEADER_SIZE])
        area = bytes(data[offset + ID3V2_HEADER_SIZE:frames_end])
        if flags.unsynchronized and self.apply_unsync and major < 4:
            area = remove_unsync(area)
        tag = header + area

        frames: Tuple[Frame, ...] = ()
        padding = 0
        if flags.compressed:
            issues.append(DecodeIssue("ID3V2", offset, "compressed 2.2 container, frames not decoded"))
        else:
            frames, padding = self._read_frames(tag, major, flags, offset, issues)

        container = TagContainer(
            tag_format=TagFormat.ID3V2,
            version=float(f"2.{major}"),
            version_raw=major << 8 | revision,
            file_offset=offset,
            size=total_size,
            flags=flags,
            frames=frames,
            padding=padding,
            data=tag,
            issues=tuple(issues),
        )
        for issue in issues:
            self.logger.warning(f"ID3v2 issue: {issue}")
        return container

    def _skip_extended_header(self, cursor: BinaryCursor, major: int) -> None:
        if major == 3:
            size = cursor.read_u32()
            cursor.skip(size)
        else:
            size = decode_size(cursor.read_bytes(4))
            cursor.skip(max(size - 4, 0))

    def _read_frames(self, tag: bytes, major: int, flags: TagFlags, file_offset: int,
                     issues: List[DecodeIssue]) -> Tuple[Tuple[Frame, ...], int]:
        """Enumerate frames until padding, a bad id or the end of the frame area"""
        known_ids = FRAMES_BY_VERSION[major]
        id_size = 3 if major == 2 else 4
        header_size = 6 if major == 2 else 10
        end = len(tag)

        cursor = BinaryCursor(tag, ID3V2_HEADER_SIZE)
        if flags.extended:
            try:
                self._skip_extended_header(cursor, major)
            except OutOfBoundsError:
                issues.append(DecodeIssue("ID3V2", file_offset + ID3V2_HEADER_SIZE,
                                          "extended header exceeds container"))
                return (), 0

        frames = []
        frames_end = cursor.position
        while cursor.remaining >= header_size:
            position = cursor.position
            raw_id = cursor.peek_bytes(id_size)
            if not _is_printable_id(raw_id):
                self.logger.debug(f"Padding starts at offset {position}")
                break

            cursor.skip(id_size)
            if major == 4:
                size = decode_size(cursor.read_bytes(4))
            elif major == 3:
                size = cursor.read_u32()
            else:
                size = cursor.read_uint(3)
            frame_flags = cursor.read_u16() if major > 2 else 0

            frame_id = raw_id.decode("ascii")
            payload_offset = cursor.position
            if size > cursor.remaining:
                issues.append(DecodeIssue(
                    "ID3V2", file_offset + position,
                    f"frame {frame_id} claims {size} bytes, only {cursor.remaining} remain"
                ))
                break
            payload = cursor.read_bytes(size)
            frames_end = cursor.position

            known = frame_id in known_ids or frame_id.startswith(EXPERIMENTAL_PREFIXES)
            if not known:
                self.logger.debug(f"Unknown frame id {frame_id!r} at offset {position}")

            content = self._decode_frame(frame_id, payload, major, flags, frame_flags,
                                         file_offset + position, issues)
            frames.append(Frame(
                frame_id=frame_id,
                name=frame_name(frame_id),
                offset=payload_offset,
                size=size,
                flags=frame_flags,
                content=content,
                known=known,
            ))
        else:
            if cursor.remaining and any(cursor.peek_bytes(cursor.remaining)):
                issues.append(DecodeIssue("ID3V2", file_offset + cursor.position,
                                          "trailing bytes too short for a frame header"))

        return tuple(frames), end - frames_end

    def _decode_frame(self, frame_id: str, payload: bytes, major: int, flags: TagFlags,
                      frame_flags: int, offset: int, issues: List[DecodeIssue]) -> FrameContent:
        """Decode one frame payload, falling back to raw bytes on any problem"""
        if major == 3:
            if frame_flags & (FRAME23_COMPRESSED | FRAME23_ENCRYPTED):
                issues.append(DecodeIssue("ID3V2", offset, f"frame {frame_id} is compressed or encrypted"))
                return BinaryContent(payload)
            if frame_flags & FRAME23_GROUPED:
                payload = payload[1:]
        elif major == 4:
            if frame_flags & (FRAME24_COMPRESSED | FRAME24_ENCRYPTED):
                issues.append(DecodeIssue("ID3V2", offset, f"frame {frame_id} is compressed or encrypted"))
                return BinaryContent(payload)
            if frame_flags & FRAME24_GROUPED:
                payload = payload[1:]
            if frame_flags & FRAME24_DATA_LENGTH:
                payload = payload[4:]
            if self.apply_unsync and (flags.unsynchronized or frame_flags & FRAME24_UNSYNC):
                payload = remove_unsync(payload)

        try:
            if frame_id in USER_TEXT_IDS or frame_id in USER_URL_IDS:
                return self._decode_user_defined(payload, frame_id in USER_URL_IDS)
            if frame_id.startswith('T'):
                return self._decode_text_frame(payload)
            if frame_id.startswith('W'):
                return self._decode_url_frame(payload)
            if frame_id in PICTURE_IDS:
                return self._decode_picture(payload, major)
        except (InvalidFormatError, OutOfBoundsError) as e:
            issues.append(DecodeIssue("ID3V2", offset, f"frame {frame_id}: {e}"))
            self.logger.debug(f"Keeping frame {frame_id} as raw bytes: {e}")
        return BinaryContent(payload)

    @staticmethod
    def _read_encoding(payload: bytes) -> int:
        if not payload:
            return 0
        encoding = payload[0]
        if encoding not in TEXT_ENCODINGS:
            raise InvalidFormatError(f"unknown text encoding {encoding}")
        return encoding

    def _decode_text_frame(self, payload: bytes) -> TextContent:
        encoding = self._read_encoding(payload)
        parts = [_decode_text(part, encoding) for part in _split_values(payload[1:], encoding)]
        values = tuple(part for part in parts if part)
        return TextContent(parts[0], values, encoding)

    def _decode_url_frame(self, payload: bytes) -> UrlContent:
        if payload and payload[0] in TEXT_ENCODINGS:
            encoding = payload[0]
            text = _decode_text(payload[1:], encoding)
        else:
            encoding = 0
            text = payload.decode("latin-1")
        return UrlContent(text.split('\x00')[0], encoding)

    def _decode_user_defined(self, payload: bytes, is_url: bool) -> UserDefinedContent:
        encoding = self._read_encoding(payload)
        key, rest = _split_terminated(payload[1:], encoding)
        if is_url:
            # the URL itself is always Latin-1
            value = rest.split(b"\x00", 1)[0].decode("latin-1")
        else:
            value = _decode_text(_split_terminated(rest, encoding)[0], encoding)
        return UserDefinedContent(_decode_text(key, encoding), value, is_url, encoding)

    def _decode_picture(self, payload: bytes, major: int) -> PictureContent:
        cursor = BinaryCursor(payload)
        encoding = cursor.read_u8()
        if encoding not in TEXT_ENCODINGS:
            raise InvalidFormatError(f"unknown text encoding {encoding}")
        if major == 2:
            mime = cursor.read_bytes(3).decode("latin-1")
        else:
            mime = cursor.read_cstring("latin-1")
        picture_type = cursor.read_u8()
        raw_description, image = _split_terminated(cursor.read_rest(), encoding)
        return PictureContent(
            mime=mime,
            picture_type=picture_type,
            picture_type_name=picture_type_name(picture_type),
            description=_decode_text(raw_description, encoding),
            data=image,
            encoding=encoding,
        )


def decode_tags(data: bytes, **options) -> TagScanResult:
    """Scan ``data`` for all tag containers; options as for TagDecoder"""
    return TagDecoder(**options).scan(data)


def decode(data: bytes, **options) -> Optional[TagContainer]:
    """
    First tag container found in ``data``, or None if there is none.

    Raises the first DecodeError when nothing could be decoded but at least
    one sub-format failed fatally.
    """
    result = decode_tags(data, **options)
    if result.containers:
        return result.containers[0]
    if result.errors:
        raise result.errors[0]
    return None
