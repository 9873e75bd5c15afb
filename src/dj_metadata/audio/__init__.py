"""Acoustic fingerprints and similarity scoring."""

from .fingerprinting import Fingerprint
from .fingerprint_matcher import FingerprintMatcher, compare, compare_with_offset

__all__ = [
    "Fingerprint",
    "FingerprintMatcher",
    "compare",
    "compare_with_offset",
]
