"""Stage 1b: 7-bit ASCII."""

from __future__ import annotations

from encwatch.pipeline import DETERMINISTIC_CONFIDENCE, DetectionResult
from encwatch.pipeline.binary import C0_INDICATORS

_NON_TEXT: bytes = C0_INDICATORS + b"\x7f"


def detect_ascii(data: bytes) -> DetectionResult | None:
    """Return ``ascii`` for any sample made only of 7-bit bytes.

    Printable text with tab, line feed, vertical tab, form feed and carriage
    return gets full confidence.  Control bytes such as ESC, NUL or DEL lower
    it, but 7-bit data is still ASCII: re-saving it as UTF-8 changes nothing.
    :func:`encwatch.infer` reports the label as ``utf-8`` unless told
    otherwise.
    """
    if not data or not data.isascii():
        return None
    if len(data.translate(None, _NON_TEXT)) != len(data):
        return DetectionResult(label="ascii", confidence=DETERMINISTIC_CONFIDENCE)
    return DetectionResult(label="ascii", confidence=1.0)
