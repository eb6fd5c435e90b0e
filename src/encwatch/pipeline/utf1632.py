"""Stage 1a+: UTF-16/UTF-32 detection for data without BOM.

This stage runs after BOM detection but before binary detection.
UTF-16 and UTF-32 encoded text contains characteristic null-byte patterns
that would otherwise cause binary detection to reject the data.
"""

from __future__ import annotations

import unicodedata

from encwatch.pipeline import DETERMINISTIC_CONFIDENCE, DetectionResult

# How many bytes to sample for pattern analysis
_SAMPLE_SIZE = 4096

# Minimum bytes needed for reliable pattern detection
_MIN_BYTES_UTF32 = 16  # 4 full code units
_MIN_BYTES_UTF16 = 10  # 5 full code units

# Minimum fraction of null bytes in the expected position for UTF-16.
# Real UTF-16 text always has >=15% (even for CJK-heavy content).
# Non-UTF-16 encodings have exactly 0% null bytes.
_UTF16_MIN_NULL_FRACTION = 0.10


def detect_utf1632_patterns(data: bytes) -> DetectionResult | None:
    """Detect UTF-32 or UTF-16 encoding from null-byte patterns.

    Returns a DetectionResult if a strong pattern is found, otherwise None.
    UTF-32 is checked before UTF-16 since UTF-32 patterns are more specific.
    """
    sample = data[:_SAMPLE_SIZE]

    if len(sample) < _MIN_BYTES_UTF16:
        return None

    result = _check_utf32(sample)
    if result is not None:
        return result
    return _check_utf16(sample)


def _check_utf32(data: bytes) -> DetectionResult | None:
    """Check for UTF-32 encoding based on 4-byte unit structure.

    For valid Unicode (U+0000 to U+10FFFF) the most significant byte of
    every code unit is zero, and for BMP text so is the next one.
    """
    sample_len = len(data) - len(data) % 4
    if sample_len < _MIN_BYTES_UTF32:
        return None
    data = data[:sample_len]
    num_units = sample_len // 4

    patterns = (
        ("utf-32-be", 0, 1),
        ("utf-32-le", 3, 2),
    )
    for label, high, next_high in patterns:
        high_null = data[high::4].count(0)
        next_null = data[next_high::4].count(0)
        if high_null == num_units and next_null / num_units > 0.5:
            try:
                text = data.decode(label)
            except UnicodeDecodeError:
                continue
            if _looks_like_text(text):
                return DetectionResult(label=label, confidence=DETERMINISTIC_CONFIDENCE)
    return None


def _check_utf16(data: bytes) -> DetectionResult | None:
    """Check for UTF-16 via null-byte patterns in alternating positions.

    When both endiannesses show null-byte patterns, both decodings are
    compared by text quality and the better one wins.
    """
    sample_len = len(data) - len(data) % 2
    if sample_len < _MIN_BYTES_UTF16:
        return None
    data = data[:sample_len]
    num_units = sample_len // 2

    # Null in even positions is the UTF-16-BE high byte of ASCII text,
    # null in odd positions the UTF-16-LE one.
    be_frac = data[0::2].count(0) / num_units
    le_frac = data[1::2].count(0) / num_units

    candidates = [
        label
        for label, frac in (("utf-16-le", le_frac), ("utf-16-be", be_frac))
        if frac >= _UTF16_MIN_NULL_FRACTION
    ]

    best_label: str | None = None
    best_quality = -1.0
    for label in candidates:
        try:
            text = data.decode(label)
        except UnicodeDecodeError:
            continue
        quality = _text_quality(text)
        if quality > best_quality:
            best_quality = quality
            best_label = label

    if best_label is not None and best_quality >= 0.5:
        return DetectionResult(label=best_label, confidence=DETERMINISTIC_CONFIDENCE)
    return None


def _looks_like_text(text: str) -> bool:
    """Quick check: is decoded text mostly printable characters?"""
    if not text:
        return False
    sample = text[:500]
    printable = sum(1 for c in sample if c.isprintable() or c in "\n\r\t")
    return printable / len(sample) > 0.7


def _text_quality(text: str, limit: int = 500) -> float:
    """Score how much *text* looks like real human-readable content.

    Returns roughly ``[0, 1.5]``, or ``-1.0`` when the text has more than
    10% control characters or 20% combining marks.  ASCII letters get an
    extra half weight: they are what a correct endianness produces for
    Latin-heavy text, where the wrong one produces CJK.
    """
    sample = text[:limit]
    n = len(sample)
    if n == 0:
        return -1.0

    letters = 0
    marks = 0
    spaces = 0
    controls = 0
    ascii_letters = 0

    for c in sample:
        cat = unicodedata.category(c)
        if cat[0] == "L":
            letters += 1
            if ord(c) < 128:
                ascii_letters += 1
        elif cat[0] == "M":
            marks += 1
        elif cat == "Zs" or c in "\n\r\t":
            spaces += 1
        elif cat[0] == "C":
            controls += 1

    if controls / n > 0.1 or marks / n > 0.2:
        return -1.0

    score = letters / n + (ascii_letters / n) * 0.5
    if n > 20 and spaces > 0:
        score += 0.1
    return score
