"""
Serato Marker Decoding

Serato stores cue points, loops, track color, beat grid, waveform overview
and analysis results in GEOB frames of the ID3v2 container, one frame per
description ("Serato Markers2", "Serato BeatGrid", ...). The play count
lives in a SERATO_PLAYCOUNT user-defined text frame.

Each attachment decodes to one entry variant; descriptions without a
decoder become ``UnknownMarkerEntry`` so that unknown vendor extensions
never stop the remaining entries from being read.
"""

import base64
import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple, Union

from ..core.binary_cursor import BinaryCursor
from ..core.color import Color
from ..core.constants import (
    SERATO_ANALYSIS,
    SERATO_AUTOTAGS,
    SERATO_BEATGRID,
    SERATO_LEGACY_MARKER_SIZE,
    SERATO_MARKERS,
    SERATO_MARKERS2,
    SERATO_OVERVIEW,
    SERATO_PLAYCOUNT,
)
from ..core.exceptions import DecodeError, DecodeIssue, InvalidFormatError, OutOfBoundsError
from .models import BinaryContent, Frame, TagContainer, UserDefinedContent

ATTACHMENT_IDS = frozenset(('GEOB', 'GEO'))


# ----------------------------------------------------------------------
# Markers2 record variants
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class ColorMarker:
    """Track color"""
    color: Color


@dataclass(frozen=True)
class BpmLockMarker:
    locked: bool


@dataclass(frozen=True)
class CueMarker:
    """Hot cue; position in seconds"""
    index: int
    position: float
    color: Color
    label: str = ""


@dataclass(frozen=True)
class LoopMarker:
    """Saved loop; start and end in seconds"""
    index: int
    start: float
    end: float
    locked: bool
    color: Color
    label: str = ""


@dataclass(frozen=True)
class FlipMarker:
    """Flip record, kept as raw bytes"""
    data: bytes = field(repr=False)


@dataclass(frozen=True)
class UnknownMarker:
    name: str
    data: bytes = field(repr=False)


Marker = Union[ColorMarker, BpmLockMarker, CueMarker, LoopMarker, FlipMarker, UnknownMarker]


# ----------------------------------------------------------------------
# Beat grid variants
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class RegularBeat:
    position: float
    beats_until_next: int


@dataclass(frozen=True)
class TerminalBeat:
    """Last beat grid record, the only one carrying a BPM"""
    position: float
    bpm: float


Beat = Union[RegularBeat, TerminalBeat]


# ----------------------------------------------------------------------
# Entry variants (one per attachment description)
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class SeratoVersion:
    version: float


@dataclass(frozen=True)
class SeratoAutoTags:
    version: float
    bpm: float
    auto_gain: float
    db: float


@dataclass(frozen=True)
class SeratoLegacyMarkers:
    """Serato Markers_ block; records are kept opaque"""
    version: float
    unknown: int
    records: Tuple[bytes, ...] = field(repr=False)

    @property
    def count(self) -> int:
        return len(self.records)


@dataclass(frozen=True)
class SeratoMarkers2:
    version: float
    markers: Tuple[Marker, ...]

    @property
    def cues(self) -> List[CueMarker]:
        return [m for m in self.markers if isinstance(m, CueMarker)]

    @property
    def loops(self) -> List[LoopMarker]:
        return [m for m in self.markers if isinstance(m, LoopMarker)]

    @property
    def color(self) -> Optional[Color]:
        for marker in self.markers:
            if isinstance(marker, ColorMarker):
                return marker.color
        return None


@dataclass(frozen=True)
class SeratoWaveform:
    version: float
    samples: Tuple[int, ...] = field(repr=False)


@dataclass(frozen=True)
class SeratoBeatGrid:
    version: float
    beats: Tuple[Beat, ...]

    @property
    def bpm(self) -> float:
        return self.beats[-1].bpm


@dataclass(frozen=True)
class SeratoPlayCount:
    count: int


@dataclass(frozen=True)
class UnknownMarkerEntry:
    """Attachment this decoder does not understand"""
    description: str
    data: bytes = field(default=b"", repr=False)


SeratoEntry = Union[
    SeratoVersion, SeratoAutoTags, SeratoLegacyMarkers, SeratoMarkers2,
    SeratoWaveform, SeratoBeatGrid, SeratoPlayCount, UnknownMarkerEntry,
]


@dataclass
class SeratoScanResult:
    """Serato entries of one tag container"""
    entries: List[SeratoEntry] = field(default_factory=list)
    issues: List[DecodeIssue] = field(default_factory=list)

    def first(self, entry_type):
        for entry in self.entries:
            if isinstance(entry, entry_type):
                return entry
        return None


def _version(cursor: BinaryCursor) -> float:
    major = cursor.read_u8()
    minor = cursor.read_u8()
    return float(f"{major}.{minor}")


def _padded_base64(raw: bytes) -> bytes:
    """Strip terminators and line breaks and pad to a multiple of 4"""
    text = bytes(b for b in raw if b not in b"\x00\r\n\t ")
    remainder = len(text) % 4
    if remainder == 1:
        # a lone trailing character encodes no full byte
        return text + b"A=="
    return text + b"=" * (-len(text) % 4)


def _label(raw: bytes) -> str:
    return raw.split(b"\x00", 1)[0].decode("utf-8", errors="replace")


def sort_cue_markers(markers: Tuple[Marker, ...]) -> Tuple[Marker, ...]:
    """Cues by position, reindexed from 0, followed by all other markers"""
    cues = sorted((m for m in markers if isinstance(m, CueMarker)), key=lambda m: m.position)
    others = [m for m in markers if not isinstance(m, CueMarker)]
    return tuple(replace(cue, index=i) for i, cue in enumerate(cues)) + tuple(others)


class SeratoDecoder:
    """Decodes Serato GEOB attachments into entry variants"""

    def __init__(self, sort_cues: bool = True):
        self.sort_cues = sort_cues
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config) -> "SeratoDecoder":
        """Build a decoder from a SeratoConfig"""
        return cls(sort_cues=config.sort_cues)

    def decode(self, attachment: bytes, offset: int = 0) -> SeratoEntry:
        """
        Decode the raw bytes of one GEOB attachment.

        Layout: encoding byte + MIME text, encoding byte + description text,
        payload. Only encoding 0 is understood; anything else yields an
        UnknownMarkerEntry. Structural problems in the payload raise
        DecodeError carrying ``offset``.
        """
        cursor = BinaryCursor(attachment)
        try:
            if cursor.read_u8() != 0:
                return UnknownMarkerEntry("", bytes(attachment))
            cursor.read_cstring("latin-1")
            if cursor.read_u8() != 0:
                return UnknownMarkerEntry("", bytes(attachment))
            description = cursor.read_cstring("latin-1")
        except OutOfBoundsError as e:
            raise DecodeError("SERATO", offset, "truncated attachment header", e) from e

        payload_offset = cursor.position
        return self.decode_payload(description, cursor.read_rest(), offset + payload_offset)

    def decode_payload(self, description: str, payload: bytes, offset: int = 0) -> SeratoEntry:
        """Dispatch a payload on its attachment description"""
        decoders = {
            SERATO_ANALYSIS: self._decode_analysis,
            SERATO_AUTOTAGS: self._decode_autotags,
            SERATO_MARKERS: self._decode_legacy_markers,
            SERATO_MARKERS2: self._decode_markers2,
            SERATO_OVERVIEW: self._decode_overview,
            SERATO_BEATGRID: self._decode_beatgrid,
        }
        decoder = decoders.get(description)
        if decoder is None:
            self.logger.debug(f"No decoder for attachment {description!r}")
            return UnknownMarkerEntry(description, payload)

        try:
            return decoder(BinaryCursor(payload))
        except (OutOfBoundsError, InvalidFormatError, ValueError) as e:
            raise DecodeError("SERATO", offset, f"{description}: {e}", e) from e

    def decode_frame(self, frame: Frame, base_offset: int = 0) -> SeratoEntry:
        """Decode a GEOB frame produced by the tag decoder"""
        if not isinstance(frame.content, BinaryContent):
            raise InvalidFormatError(f"frame {frame.frame_id} carries no binary payload")
        return self.decode(frame.content.data, base_offset + frame.offset)

    def scan(self, container: TagContainer) -> SeratoScanResult:
        """Decode every Serato entry of a container, recording failures as issues"""
        result = SeratoScanResult()
        for frame in container.frames:
            offset = container.file_offset + frame.offset
            content = frame.content

            if isinstance(content, UserDefinedContent) and content.key == SERATO_PLAYCOUNT:
                try:
                    result.entries.append(SeratoPlayCount(int(content.value.strip())))
                except ValueError:
                    result.issues.append(DecodeIssue("SERATO", offset,
                                                     f"play count {content.value!r} is not a number"))
                continue

            if frame.frame_id not in ATTACHMENT_IDS:
                continue
            try:
                entry = self.decode_frame(frame, container.file_offset)
            except (DecodeError, InvalidFormatError) as e:
                self.logger.warning(f"Skipping Serato entry at offset {offset}: {e}")
                result.issues.append(DecodeIssue("SERATO", offset, str(e)))
                continue
            result.entries.append(entry)

        self.logger.debug(f"Decoded {len(result.entries)} Serato entries, {len(result.issues)} issue(s)")
        return result

    # ------------------------------------------------------------------
    # Payload decoders
    # ------------------------------------------------------------------

    def _decode_analysis(self, cursor: BinaryCursor) -> SeratoVersion:
        return SeratoVersion(_version(cursor))

    def _decode_autotags(self, cursor: BinaryCursor) -> SeratoAutoTags:
        version = _version(cursor)
        fields = cursor.read_rest().decode("utf-8", errors="replace").split("\x00")
        if len(fields) < 3:
            raise InvalidFormatError(f"expected 3 auto tag values, got {len(fields)}")
        bpm, auto_gain, db = (float(value) for value in fields[:3])
        return SeratoAutoTags(version, bpm, auto_gain, db)

    def _decode_legacy_markers(self, cursor: BinaryCursor) -> SeratoLegacyMarkers:
        version = _version(cursor)
        count = cursor.read_u32()
        unknown = cursor.read_u32()
        records = tuple(cursor.read_bytes(SERATO_LEGACY_MARKER_SIZE) for _ in range(count))
        return SeratoLegacyMarkers(version, unknown, records)

    def _decode_overview(self, cursor: BinaryCursor) -> SeratoWaveform:
        version = _version(cursor)
        return SeratoWaveform(version, tuple(sample << 4 for sample in cursor.read_rest()))

    def _decode_beatgrid(self, cursor: BinaryCursor) -> SeratoBeatGrid:
        version = _version(cursor)
        count = cursor.read_u32()
        if count == 0:
            raise InvalidFormatError("beat grid without terminal beat")

        beats: List[Beat] = []
        for _ in range(count - 1):
            position = cursor.read_f32()
            beats.append(RegularBeat(position, cursor.read_u32()))
        position = cursor.read_f32()
        beats.append(TerminalBeat(position, cursor.read_f32()))
        return SeratoBeatGrid(version, tuple(beats))

    def _decode_markers2(self, cursor: BinaryCursor) -> SeratoMarkers2:
        version = _version(cursor)
        raw = base64.b64decode(_padded_base64(cursor.read_rest()))

        inner = BinaryCursor(raw)
        inner.skip(2)  # inner version
        markers: List[Marker] = []
        while inner.remaining > 1:
            if inner.peek_bytes(1) == b"\x00":
                break  # trailing padding
            try:
                name = inner.read_cstring("ascii")
                body = inner.read_bytes(inner.read_u32())
            except OutOfBoundsError as e:
                self.logger.warning(f"Markers2 record stream ends early: {e}")
                break
            try:
                markers.append(self._decode_marker(name, body))
            except OutOfBoundsError as e:
                # the length prefix bounds the damage to this record
                self.logger.warning(f"Keeping malformed Markers2 {name} record as raw bytes: {e}")
                markers.append(UnknownMarker(name, body))

        if self.sort_cues:
            return SeratoMarkers2(version, sort_cue_markers(tuple(markers)))
        return SeratoMarkers2(version, tuple(markers))

    def _decode_marker(self, name: str, body: bytes) -> Marker:
        cursor = BinaryCursor(body)
        if name == "COLOR":
            return ColorMarker(Color(cursor.read_u32()).opaque())
        if name == "BPMLOCK":
            return BpmLockMarker(bool(cursor.read_u8()))
        if name == "CUE":
            index = cursor.read_u16()
            position = cursor.read_u32() / 1000
            color = Color(cursor.read_u32()).opaque()
            cursor.skip(2)
            return CueMarker(index, position, color, _label(cursor.read_rest()))
        if name == "LOOP":
            index = cursor.read_u16()
            start = cursor.read_u32() / 1000
            end = cursor.read_u32() / 1000
            cursor.skip(4)
            color = Color(cursor.read_u32()).opaque()
            cursor.skip(1)
            locked = bool(cursor.read_u8())
            return LoopMarker(index, start, end, locked, color, _label(cursor.read_rest()))
        if name == "FLIP":
            return FlipMarker(body)
        self.logger.debug(f"Unknown Markers2 record {name!r}")
        return UnknownMarker(name, body)


def read_serato_tags(container: TagContainer, sort_cues: bool = True) -> SeratoScanResult:
    """All Serato entries of a decoded tag container"""
    return SeratoDecoder(sort_cues=sort_cues).scan(container)


def decode_attachment(attachment: bytes, sort_cues: bool = True) -> SeratoEntry:
    """Decode the raw bytes of one GEOB attachment"""
    return SeratoDecoder(sort_cues=sort_cues).decode(attachment)
