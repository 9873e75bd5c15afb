"""
Acoustic Fingerprint Values

Raw Chromaprint fingerprints as produced by ``fpcalc -raw``: an array of
32-bit hashes plus the analysed duration. Running fpcalc is left to the
caller; this module only parses the text it prints.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Tuple, Union

import numpy as np

from ..core.exceptions import InvalidFormatError

logger = logging.getLogger(__name__)

_FINGERPRINT_LINE = re.compile(r"^FINGERPRINT=([\d,\s-]*)$", re.MULTILINE)
_DURATION_LINE = re.compile(r"^DURATION=([\d.]+)\s*$", re.MULTILINE)


@dataclass(frozen=True)
class Fingerprint:
    """Raw fingerprint; values are unsigned 32-bit integers"""
    values: Tuple[int, ...]
    duration: Optional[float] = None
    source: Optional[str] = field(default=None, compare=False)

    def __post_init__(self):
        # fpcalc prints signed values, map them modulo 2^32
        object.__setattr__(self, "values", tuple(int(v) % (1 << 32) for v in self.values))

    def __len__(self) -> int:
        return len(self.values)

    def to_array(self) -> np.ndarray:
        return np.array(self.values, dtype=np.uint32)

    @classmethod
    def from_values(cls, values: Iterable[int], duration: Optional[float] = None,
                    source: Optional[str] = None) -> "Fingerprint":
        return cls(tuple(values), duration, source)

    @classmethod
    def from_fpcalc_json(cls, text: Union[str, bytes, Dict[str, Any]],
                         source: Optional[str] = None) -> "Fingerprint":
        """Parse the output of ``fpcalc -json -raw``"""
        if isinstance(text, dict):
            document = text
        else:
            try:
                document = json.loads(text)
            except json.JSONDecodeError as e:
                raise InvalidFormatError(f"fpcalc output is not valid JSON: {e}") from e

        if not isinstance(document, dict) or "fingerprint" not in document:
            raise InvalidFormatError("fpcalc JSON has no 'fingerprint' field")
        values = document["fingerprint"]
        if isinstance(values, str):
            raise InvalidFormatError("Compressed fingerprint found, run fpcalc with -raw")

        duration = document.get("duration")
        logger.debug(f"Parsed fpcalc JSON fingerprint with {len(values)} values")
        return cls(tuple(values), float(duration) if duration is not None else None, source)

    @classmethod
    def from_fpcalc_output(cls, text: str, source: Optional[str] = None) -> "Fingerprint":
        """Parse the plain ``DURATION=`` / ``FINGERPRINT=`` output of ``fpcalc -raw``"""
        match = _FINGERPRINT_LINE.search(text)
        if not match:
            raise InvalidFormatError("No FINGERPRINT line found in fpcalc output")
        values = [int(v) for v in match.group(1).split(",") if v.strip()]

        duration_match = _DURATION_LINE.search(text)
        duration = float(duration_match.group(1)) if duration_match else None
        return cls(tuple(values), duration, source)

    @classmethod
    def from_text(cls, text: str, source: Optional[str] = None) -> "Fingerprint":
        """Parse either fpcalc output flavour"""
        if text.lstrip().startswith("{"):
            return cls.from_fpcalc_json(text, source)
        return cls.from_fpcalc_output(text, source)
