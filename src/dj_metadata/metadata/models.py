"""
Value objects produced by the tag container decoders.

Frame content is decoded once at parse time into one of the content
variants below; frames the decoder does not interpret keep their raw bytes
in ``BinaryContent``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from ..core.exceptions import DecodeError, DecodeIssue


class TagFormat(Enum):
    """Tag container families"""
    ID3V1 = "ID3V1"
    ID3V2 = "ID3V2"
    LYRICS3 = "LYRICS3"


@dataclass(frozen=True)
class TagFlags:
    """Header flags of a tag container"""
    unsynchronized: bool = False
    compressed: bool = False
    extended: bool = False
    experimental: bool = False
    has_footer: bool = False


@dataclass(frozen=True)
class TextContent:
    """Text frame; ``text`` is the first null-separated value"""
    text: str
    values: Tuple[str, ...] = ()
    encoding: int = 0


@dataclass(frozen=True)
class UrlContent:
    url: str
    encoding: int = 0


@dataclass(frozen=True)
class UserDefinedContent:
    """User-defined text or URL frame (key/value pair)"""
    key: str
    value: str
    is_url: bool = False
    encoding: int = 0


@dataclass(frozen=True)
class PictureContent:
    """Attached picture"""
    mime: str
    picture_type: int
    picture_type_name: str
    description: str
    data: bytes = field(repr=False)
    encoding: int = 0


@dataclass(frozen=True)
class BinaryContent:
    """Frame payload kept as raw bytes"""
    data: bytes = field(repr=False)


@dataclass(frozen=True)
class LyricsIndicators:
    """LYRICS3 IND field"""
    has_lyrics: bool = False
    has_timestamps: bool = False
    inhibits_random: bool = False


@dataclass(frozen=True)
class LyricLine:
    """Timed lyric line; ``time`` is None when the stamp is not [mm:ss]"""
    time: Optional[float]
    text: str
    timestamp: str = ""


@dataclass(frozen=True)
class LyricSection:
    """Lyric line without a time stamp"""
    section: str


@dataclass(frozen=True)
class LyricsImage:
    filename: str
    title: str
    time: Optional[float]
    timestamp: str = ""


@dataclass(frozen=True)
class LyricsContent:
    entries: Tuple[Union[LyricLine, LyricSection], ...]


@dataclass(frozen=True)
class LyricsInfoContent:
    lines: Tuple[str, ...]


@dataclass(frozen=True)
class LyricsImagesContent:
    images: Tuple[LyricsImage, ...]


FrameContent = Union[
    TextContent, UrlContent, UserDefinedContent, PictureContent, BinaryContent,
    LyricsIndicators, LyricsContent, LyricsInfoContent, LyricsImagesContent,
]


@dataclass(frozen=True)
class Frame:
    """
    One metadata record inside a container.

    ``offset`` and ``size`` locate the frame payload inside the container's
    byte range (after unsynchronisation removal where that applies).
    """
    frame_id: str
    name: str
    offset: int
    size: int
    flags: int = 0
    content: Optional[FrameContent] = None
    known: bool = True

    @property
    def is_unknown(self) -> bool:
        return not self.known


@dataclass(frozen=True)
class TagContainer:
    """One decoded tag container found in a byte sequence"""
    tag_format: TagFormat
    version: float
    version_raw: int
    file_offset: int
    size: int
    flags: TagFlags = TagFlags()
    frames: Tuple[Frame, ...] = ()
    padding: int = 0
    data: bytes = field(default=b"", repr=False, compare=False)
    lyrics_flags: Optional[LyricsIndicators] = None
    issues: Tuple[DecodeIssue, ...] = field(default=(), compare=False)

    @property
    def label(self) -> str:
        return f"{self.tag_format.value} ({self.version:.1f})"

    def find(self, frame_id: str) -> List[Frame]:
        return [frame for frame in self.frames if frame.frame_id == frame_id]

    def first(self, frame_id: str) -> Optional[Frame]:
        for frame in self.frames:
            if frame.frame_id == frame_id:
                return frame
        return None

    def text(self, frame_id: str) -> Optional[str]:
        """Convenience accessor for the first text value of a frame id"""
        frame = self.first(frame_id)
        if frame is None:
            return None
        content = frame.content
        if isinstance(content, TextContent):
            return content.text
        if isinstance(content, UrlContent):
            return content.url
        return None


@dataclass
class TagSummary:
    """Flattened view over all containers of one scan"""
    tag_types: List[str] = field(default_factory=list)
    images: List[PictureContent] = field(default_factory=list)
    user_defined_text: List[UserDefinedContent] = field(default_factory=list)
    user_defined_url: List[UserDefinedContent] = field(default_factory=list)
    values: Dict[str, Any] = field(default_factory=dict)


@dataclass
class TagScanResult:
    """All sub-formats attempted on one byte sequence"""
    containers: List[TagContainer] = field(default_factory=list)
    issues: List[DecodeIssue] = field(default_factory=list)
    errors: List[DecodeError] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return bool(self.containers)

    def by_format(self, tag_format: TagFormat) -> List[TagContainer]:
        return [c for c in self.containers if c.tag_format == tag_format]

    def summary(self) -> TagSummary:
        """Collect tag types, pictures, user-defined frames and first values"""
        summary = TagSummary()
        for container in self.containers:
            summary.tag_types.append(container.label)
            for frame in container.frames:
                content = frame.content
                if content is None or not frame.known:
                    continue
                if isinstance(content, UserDefinedContent):
                    target = summary.user_defined_url if content.is_url else summary.user_defined_text
                    target.append(content)
                elif isinstance(content, PictureContent):
                    summary.images.append(content)
                elif frame.name not in summary.values:
                    if isinstance(content, TextContent):
                        summary.values[frame.name] = content.text
                    elif isinstance(content, UrlContent):
                        summary.values[frame.name] = content.url
        return summary
