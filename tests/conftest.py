"""
Shared pytest fixtures for DJ Metadata Toolkit tests.

Byte builders for tag containers, Serato attachments, sample files and
fingerprints, so every test constructs its input the same way.
"""

import base64
import json
import struct

import numpy as np
import pytest

from dj_metadata.core.config_manager import ConfigManager
from dj_metadata.metadata.tag_decoder import encode_size

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24


def _fixed(text: str, size: int) -> bytes:
    return text.encode("latin-1")[:size].ljust(size, b"\x00")


@pytest.fixture
def id3v1_trailer():
    """Factory for the 128-byte legacy trailer"""
    def build(title="", artist="", album="", year="", comment="", track=None, genre=0):
        body = (b"TAG" + _fixed(title, 30) + _fixed(artist, 30) + _fixed(album, 30)
                + _fixed(year, 4))
        if track is None:
            body += _fixed(comment, 30)
        else:
            body += _fixed(comment, 28) + b"\x00" + bytes([track])
        return body + bytes([genre])
    return build


@pytest.fixture
def id3v2_frame():
    """Factory for one frame: header sized for the given major version"""
    def build(frame_id, payload, major=3, flags=0):
        raw_id = frame_id.encode("ascii")
        if major == 2:
            return raw_id + len(payload).to_bytes(3, "big") + payload
        if major == 4:
            size = encode_size(len(payload))
        else:
            size = struct.pack(">I", len(payload))
        return raw_id + size + struct.pack(">H", flags) + payload
    return build


@pytest.fixture
def id3v2_tag():
    """Factory for a complete container around already built frames"""
    def build(frames=b"", major=3, flags=0, padding=0, revision=0, body=None):
        if body is None:
            body = frames + b"\x00" * padding
        return b"ID3" + bytes([major, revision, flags]) + encode_size(len(body)) + body
    return build


@pytest.fixture
def geob_attachment():
    """Factory for a GEOB payload as written by Serato"""
    def build(description, payload, mime="application/octet-stream"):
        return (b"\x00" + mime.encode("latin-1") + b"\x00"
                + b"\x00" + description.encode("latin-1") + b"\x00" + payload)
    return build


@pytest.fixture
def markers2_record():
    """Factory for single Markers2 records (name, length, body)"""
    def record(name, body):
        return name.encode("ascii") + b"\x00" + struct.pack(">I", len(body)) + body

    def cue(index, position_ms, rgb, label=""):
        body = struct.pack(">HIIH", index, position_ms, rgb, 0) + label.encode("utf-8") + b"\x00"
        return record("CUE", body)

    def loop(index, start_ms, end_ms, rgb, locked=False, label=""):
        body = (struct.pack(">HIIIIBB", index, start_ms, end_ms, 0xFFFFFFFF, rgb, 0, int(locked))
                + label.encode("utf-8") + b"\x00")
        return record("LOOP", body)

    def color(rgb):
        return record("COLOR", struct.pack(">I", rgb))

    def bpmlock(locked):
        return record("BPMLOCK", bytes([int(locked)]))

    record.cue = cue
    record.loop = loop
    record.color = color
    record.bpmlock = bpmlock
    return record


@pytest.fixture
def markers2_payload():
    """Factory for a Serato Markers2 payload: base64 in 72-char lines, no padding"""
    def build(records):
        inner = b"\x01\x01" + b"".join(records) + b"\x00"
        encoded = base64.b64encode(inner).rstrip(b"=")
        lines = [encoded[i:i + 72] for i in range(0, len(encoded), 72)]
        return b"\x01\x01" + b"\n".join(lines) + b"\x00"
    return build


@pytest.fixture
def sample_header():
    """Factory for a raw sample file with full control over every header field"""
    def build(media=b"MEDIA", path=b"", thumbnail=b"", version=830, data_offset=None,
              media_type=0, tracks=0, mode=0, loop_mode=0, beat_length=0.5, grid_offset=0.0,
              start=0.0, duration=0.0, total=0.0, end=0.0, gain=1.0, color=0,
              thumbnail_offset=None, path_offset=0x78, key=0, key_match=0,
              media_size=None, thumbnail_size=None):
        if data_offset is None:
            data_offset = 0x78 + len(path)
        if thumbnail_offset is None:
            thumbnail_offset = data_offset + len(media) if thumbnail else 0
        header = struct.pack(
            "<4s7I2f4df6I12s2I",
            b"VDJ\x00", version, data_offset,
            len(media) if media_size is None else media_size,
            media_type, tracks, mode, loop_mode,
            beat_length, grid_offset,
            start, duration, total, end,
            gain, color, 0,
            thumbnail_offset,
            len(thumbnail) if thumbnail_size is None else thumbnail_size,
            path_offset, len(path),
            b"\x00" * 12, key, key_match,
        )
        return header + path + media + thumbnail
    return build


@pytest.fixture
def random_fingerprint():
    """Factory for reproducible random raw fingerprints"""
    def build(length=200, seed=0):
        rng = np.random.default_rng(seed)
        return rng.integers(0, 1 << 32, size=length, dtype=np.uint64).astype(np.uint32)
    return build


@pytest.fixture
def fpcalc_json():
    """Factory for ``fpcalc -json -raw`` output"""
    def build(values, duration=180.0):
        return json.dumps({"duration": duration, "fingerprint": [int(v) for v in values]})
    return build


@pytest.fixture
def config_manager(tmp_path):
    """ConfigManager isolated from the real project and user directories"""
    project_root = tmp_path / "project"
    (project_root / "config").mkdir(parents=True)
    return ConfigManager(project_root=project_root, user_config_dir=tmp_path / "user")
