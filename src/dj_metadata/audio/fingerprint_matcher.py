"""
Fingerprint Matcher

Scores the similarity of two raw Chromaprint fingerprints, following the
AcoustID server matcher. Both comparisons are pure functions over numpy
arrays and return a score in [0, 1].

- ``compare``: histogram of aligned offsets within +/-120 positions, counting
  pairs that differ in at most 2 bits.
- ``compare_with_offset``: coarse alignment on the top 14 bits of each hash,
  then mean bit error over the overlap, penalised for low diversity.
"""

import logging
from typing import Dict, Sequence, Union

import numpy as np

from ..core.constants import (
    FINGERPRINT_MATCH_BITS,
    FINGERPRINT_MATCH_THRESHOLD,
    FINGERPRINT_MAX_ALIGN_OFFSET,
    FINGERPRINT_MAX_BIT_ERROR,
    FINGERPRINT_MIN_TOP_COUNT_RATIO,
)
from .fingerprinting import Fingerprint

FingerprintLike = Union[Fingerprint, np.ndarray, Sequence[int]]

_KEY_SHIFT = 32 - FINGERPRINT_MATCH_BITS


def as_array(fingerprint: FingerprintLike) -> np.ndarray:
    """Fingerprint values as a uint32 array (signed input is taken modulo 2^32)"""
    if isinstance(fingerprint, Fingerprint):
        return fingerprint.to_array()
    values = np.asarray(fingerprint, dtype=np.int64)
    return (values & 0xFFFFFFFF).astype(np.uint32)


def popcount(values: np.ndarray) -> np.ndarray:
    """Number of set bits of each uint32 element"""
    as_bytes = values.astype(np.uint32).view(np.uint8).reshape(-1, 4)
    return np.unpackbits(as_bytes, axis=1).sum(axis=1)


def coarse_keys(values: np.ndarray) -> np.ndarray:
    return values >> np.uint32(_KEY_SHIFT)


def _key_positions(values: np.ndarray) -> Dict[int, int]:
    """Coarse key -> last position it occurs at"""
    return {key: index for index, key in enumerate(coarse_keys(values).tolist())}


def _unique_keys(values: np.ndarray) -> int:
    return len(np.unique(coarse_keys(values)))


def compare(fp_a: FingerprintLike, fp_b: FingerprintLike) -> float:
    """Simple form: best offset histogram bucket divided by the shorter length"""
    a = as_array(fp_a)
    b = as_array(fp_b)
    if not len(a) or not len(b):
        return 0.0
    if _unique_keys(a) <= 1 or _unique_keys(b) <= 1:
        return 0.0

    top_count = 0
    for offset in range(-FINGERPRINT_MAX_ALIGN_OFFSET, FINGERPRINT_MAX_ALIGN_OFFSET + 1):
        # pairs (i, j) with i - j == offset
        if offset >= 0:
            left, right = a[offset:], b
        else:
            left, right = a, b[-offset:]
        size = min(len(left), len(right))
        if size <= 0:
            continue
        errors = popcount(left[:size] ^ right[:size])
        top_count = max(top_count, int(np.count_nonzero(errors <= FINGERPRINT_MAX_BIT_ERROR)))

    return top_count / min(len(a), len(b))


def compare_with_offset(fp_a: FingerprintLike, fp_b: FingerprintLike, max_offset: int = 0) -> float:
    """
    Alignment-tolerant form.

    ``max_offset`` bounds the alignment search in array positions, 0 means
    unbounded. Fingerprints with at most one distinct coarse key score 0.
    """
    a = as_array(fp_a)
    b = as_array(fp_b)
    a_size, b_size = len(a), len(b)
    if not a_size or not b_size:
        return 0.0

    a_positions = _key_positions(a)
    b_positions = _key_positions(b)

    top_count = 0
    top_offset = 0
    counts: Dict[int, int] = {}
    for key in sorted(a_positions.keys() & b_positions.keys()):
        offset = a_positions[key] - b_positions[key]
        if max_offset and not -max_offset <= offset <= max_offset:
            continue
        counts[offset] = counts.get(offset, 0) + 1
        if counts[offset] > top_count:
            top_count = counts[offset]
            top_offset = offset

    if top_count == 0:
        return 0.0

    if top_offset < 0:
        shifted_a, shifted_b = a, b[-top_offset:]
    else:
        shifted_a, shifted_b = a[top_offset:], b
    size = min(len(shifted_a), len(shifted_b))
    min_size = min(a_size, b_size) & ~1
    if not size or not min_size:
        return 0.0

    a_unique = _unique_keys(a)
    b_unique = _unique_keys(b)
    if a_unique <= 1 or b_unique <= 1:
        return 0.0
    if top_count < max(a_unique, b_unique) * FINGERPRINT_MIN_TOP_COUNT_RATIO:
        return 0.0

    mean_bit_error = float(popcount(shifted_a[:size] ^ shifted_b[:size]).mean())
    score = (size / min_size) * (1.0 - 2.0 * mean_bit_error / 32.0)
    score = min(1.0, max(0.0, score))

    diversity = min(min(1.0, (a_unique + 10) / a_size + 0.5),
                    min(1.0, (b_unique + 10) / b_size + 0.5))
    if diversity < 1.0:
        score = score ** (8.0 - 7.0 * diversity)

    return score


class FingerprintMatcher:
    """Configured comparison of fingerprints"""

    ALGORITHMS = ("offset", "simple")

    def __init__(self, algorithm: str = "offset", max_offset: int = 0,
                 match_threshold: float = FINGERPRINT_MATCH_THRESHOLD):
        if algorithm not in self.ALGORITHMS:
            raise ValueError(f"Unknown matching algorithm: {algorithm}")
        self.algorithm = algorithm
        self.max_offset = max_offset
        self.match_threshold = match_threshold
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config) -> "FingerprintMatcher":
        """Build a matcher from a FingerprintConfig"""
        return cls(config.algorithm, config.max_offset, config.match_threshold)

    def score(self, fp_a: FingerprintLike, fp_b: FingerprintLike) -> float:
        if self.algorithm == "simple":
            result = compare(fp_a, fp_b)
        else:
            result = compare_with_offset(fp_a, fp_b, self.max_offset)
        self.logger.debug(f"Fingerprint score ({self.algorithm}): {result:.4f}")
        return result

    def is_match(self, fp_a: FingerprintLike, fp_b: FingerprintLike) -> bool:
        return self.score(fp_a, fp_b) >= self.match_threshold
