"""VirtualDJ sample container codec."""

from .vdj_sample import (
    SampleContainer,
    MediaType,
    SampleMode,
    LoopMode,
    KeyMatchPolicy,
    decode_sample,
    encode_sample,
)

__all__ = [
    "SampleContainer",
    "MediaType",
    "SampleMode",
    "LoopMode",
    "KeyMatchPolicy",
    "decode_sample",
    "encode_sample",
]
