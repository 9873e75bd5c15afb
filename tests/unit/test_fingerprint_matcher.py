"""
Unit tests for fingerprint parsing and similarity scoring.
"""

import numpy as np
import pytest

from dj_metadata.audio.fingerprint_matcher import (
    FingerprintMatcher,
    as_array,
    compare,
    compare_with_offset,
    popcount,
)
from dj_metadata.audio.fingerprinting import Fingerprint
from dj_metadata.core.config_manager import FingerprintConfig
from dj_metadata.core.exceptions import InvalidFormatError


class TestFingerprintParsing:
    """Test reading fpcalc output."""

    def test_plain_output(self):
        text = "DURATION=212\nFINGERPRINT=1,2,-1\n"
        fingerprint = Fingerprint.from_fpcalc_output(text, source="a.txt")

        assert fingerprint.values == (1, 2, 4294967295)
        assert fingerprint.duration == 212.0
        assert fingerprint.source == "a.txt"
        assert len(fingerprint) == 3

    def test_json_output(self, fpcalc_json):
        fingerprint = Fingerprint.from_fpcalc_json(fpcalc_json([5, 6, 7], duration=3.5))
        assert fingerprint.values == (5, 6, 7)
        assert fingerprint.duration == 3.5

    def test_from_text_detects_flavour(self, fpcalc_json):
        assert Fingerprint.from_text(fpcalc_json([9])).values == (9,)
        assert Fingerprint.from_text("FINGERPRINT=9").values == (9,)

    def test_compressed_fingerprint_rejected(self):
        with pytest.raises(InvalidFormatError):
            Fingerprint.from_fpcalc_json('{"duration": 1, "fingerprint": "AQAAT0mUaEkSRZEG"}')

    def test_invalid_json(self):
        with pytest.raises(InvalidFormatError):
            Fingerprint.from_fpcalc_json("{not json")

    def test_missing_fingerprint_line(self):
        with pytest.raises(InvalidFormatError):
            Fingerprint.from_fpcalc_output("DURATION=10\n")

    def test_source_not_compared(self):
        assert Fingerprint((1, 2), source="a") == Fingerprint((1, 2), source="b")


class TestHelpers:
    """Test array helpers."""

    def test_popcount(self):
        values = np.array([0, 1, 3, 0xFFFFFFFF, 0x80000000], dtype=np.uint32)
        assert popcount(values).tolist() == [0, 1, 2, 32, 1]

    def test_signed_values_wrap(self):
        assert as_array([-1, 5]).tolist() == [0xFFFFFFFF, 5]


class TestCompareWithOffset:
    """Test the alignment-tolerant comparison."""

    def test_identical_fingerprints_score_one(self, random_fingerprint):
        a = random_fingerprint(200)
        assert compare_with_offset(a, a, 0) == pytest.approx(1.0, abs=1e-6)

    def test_shifted_copy_scores_one(self, random_fingerprint):
        a = random_fingerprint(200)
        b = a[10:]
        assert compare_with_offset(a, b) == pytest.approx(1.0, abs=1e-6)

    def test_symmetry(self, random_fingerprint):
        a = random_fingerprint(300, seed=1)
        b = a[25:260].copy()
        b[::7] ^= np.uint32(0x00010001)
        assert compare_with_offset(a, b) == pytest.approx(compare_with_offset(b, a))

    def test_unrelated_fingerprints(self, random_fingerprint):
        a = random_fingerprint(200, seed=1)
        b = random_fingerprint(200, seed=2)
        assert compare_with_offset(a, b) < 0.1

    def test_offset_outside_bound(self, random_fingerprint):
        a = random_fingerprint(200)
        assert compare_with_offset(a, a[10:], max_offset=5) < 0.5

    def test_bit_errors_lower_score(self, random_fingerprint):
        a = random_fingerprint(200)
        b = a.copy()
        b ^= np.uint32(0x0000000F)
        score = compare_with_offset(a, b)
        assert score == pytest.approx(1.0 - 2.0 * 4 / 32, abs=1e-6)

    def test_degenerate_fingerprints_score_zero(self):
        flat = np.full(200, 0x12345678, dtype=np.uint32)
        assert compare_with_offset(flat, flat) == 0.0

    def test_empty_fingerprint(self, random_fingerprint):
        assert compare_with_offset([], random_fingerprint(10)) == 0.0

    def test_score_in_range(self, random_fingerprint):
        a = random_fingerprint(201, seed=4)
        for b in (a, a[3:], a[:150], random_fingerprint(201, seed=5)):
            assert 0.0 <= compare_with_offset(a, b) <= 1.0


class TestSimpleCompare:
    """Test the histogram comparison."""

    def test_identical(self, random_fingerprint):
        a = random_fingerprint(200)
        assert compare(a, a) == pytest.approx(1.0)

    def test_small_bit_errors_still_match(self, random_fingerprint):
        a = random_fingerprint(200)
        b = a ^ np.uint32(0x3)
        assert compare(a, b) == pytest.approx(1.0)

    def test_shift_within_window(self, random_fingerprint):
        a = random_fingerprint(300)
        assert compare(a, a[50:]) == pytest.approx(1.0)

    def test_unrelated(self, random_fingerprint):
        assert compare(random_fingerprint(200, seed=1), random_fingerprint(200, seed=2)) < 0.1

    def test_degenerate(self):
        flat = [7] * 50
        assert compare(flat, flat) == 0.0


class TestFingerprintMatcher:
    """Test the configured matcher."""

    def test_is_match(self, random_fingerprint):
        a = Fingerprint.from_values(random_fingerprint(200).tolist())
        b = Fingerprint.from_values(random_fingerprint(200, seed=9).tolist())
        matcher = FingerprintMatcher()

        assert matcher.is_match(a, a)
        assert not matcher.is_match(a, b)

    def test_simple_algorithm(self, random_fingerprint):
        a = random_fingerprint(200)
        assert FingerprintMatcher(algorithm="simple").score(a, a) == pytest.approx(1.0)

    def test_unknown_algorithm(self):
        with pytest.raises(ValueError):
            FingerprintMatcher(algorithm="fuzzy")

    def test_from_config(self):
        matcher = FingerprintMatcher.from_config(FingerprintConfig(algorithm="simple", max_offset=40,
                                                                   match_threshold=0.7))
        assert matcher.algorithm == "simple"
        assert matcher.max_offset == 40
        assert matcher.match_threshold == 0.7
