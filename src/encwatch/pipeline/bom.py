"""Stage 1: byte order marks."""

from __future__ import annotations

import codecs

from encwatch.pipeline import DetectionResult

# (mark, label, payload unit).  UTF-32 comes first because its little-endian
# mark begins with the UTF-16-LE one.
_BOMS: tuple[tuple[bytes, str, int], ...] = (
    (codecs.BOM_UTF32_BE, "utf-32-be", 4),
    (codecs.BOM_UTF32_LE, "utf-32-le", 4),
    (codecs.BOM_UTF8, "utf-8-sig", 1),
    (codecs.BOM_UTF16_BE, "utf-16-be", 1),
    (codecs.BOM_UTF16_LE, "utf-16-le", 1),
)


def detect_bom(data: bytes) -> DetectionResult | None:
    """Return a certain result if *data* starts with a byte order mark.

    ``FF FE 00 00`` also reads as a UTF-16-LE mark followed by U+0000, so a
    UTF-32 mark only counts when the rest of the data is a whole number of
    4-byte code units.
    """
    for mark, label, unit in _BOMS:
        if data.startswith(mark) and (len(data) - len(mark)) % unit == 0:
            return DetectionResult(label=label, confidence=1.0)
    return None
