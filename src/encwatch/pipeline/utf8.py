"""Stage 1: UTF-8 structural validation."""

from __future__ import annotations

from encwatch.pipeline import DetectionResult


def _sequence_length(byte: int) -> int:
    """Return the sequence length announced by a UTF-8 lead byte, or 0."""
    # 0xC0-0xC1 are overlong 2-byte encodings of ASCII, so we start at 0xC2.
    if 0xC2 <= byte <= 0xDF:
        return 2
    if 0xE0 <= byte <= 0xEF:
        return 3
    if 0xF0 <= byte <= 0xF4:
        return 4
    return 0


def detect_utf8(data: bytes, cut_at_end: bool = False) -> DetectionResult | None:
    """Validate UTF-8 byte structure.

    Returns a result only if multi-byte sequences are found (pure ASCII
    is handled by the ASCII stage).

    :param data: The raw byte data to examine.
    :param cut_at_end: The sample was cut from a longer resource, so a
        well-formed but incomplete final sequence counts as UTF-8 evidence.
    :returns: A :class:`DetectionResult` for UTF-8, or ``None``.
    """
    if not data:
        return None

    i = 0
    length = len(data)
    multibyte_sequences = 0
    multibyte_bytes = 0
    truncated = False

    while i < length:
        byte = data[i]

        if byte < 0x80:
            i += 1
            continue

        seq_len = _sequence_length(byte)
        if seq_len == 0:
            # Invalid start byte (0x80-0xC1, 0xF5-0xFF)
            return None

        # Truncated final sequence (the sample cut it short): accepted when
        # the bytes seen so far are structurally correct.
        if i + seq_len > length:
            if not all(0x80 <= b <= 0xBF for b in data[i + 1 :]):
                return None
            truncated = True
            break

        # Validate continuation bytes (must be 0x80-0xBF)
        for j in range(1, seq_len):
            if not (0x80 <= data[i + j] <= 0xBF):
                return None

        second = data[i + 1]
        # Reject overlong encodings, UTF-16 surrogates and code points
        # above U+10FFFF.
        if byte == 0xE0 and second < 0xA0:
            return None
        if byte == 0xED and second > 0x9F:
            return None
        if byte == 0xF0 and second < 0x90:
            return None
        if byte == 0xF4 and second > 0x8F:
            return None

        multibyte_sequences += 1
        multibyte_bytes += seq_len
        i += seq_len

    if multibyte_sequences == 0:
        # The only non-ASCII character straddles the end of the sample.
        if truncated and cut_at_end:
            return DetectionResult(label="utf-8", confidence=0.80)
        # Pure ASCII: the ASCII detector handles it
        return None

    # Confidence scales with the proportion of multi-byte bytes in the data.
    # Even a small amount of valid multi-byte UTF-8 is strong evidence.
    mb_ratio = multibyte_bytes / length
    confidence = min(0.99, 0.80 + 0.19 * min(mb_ratio * 6, 1.0))
    return DetectionResult(label="utf-8", confidence=confidence)
