"""Stage 0: binary content."""

from __future__ import annotations

from encwatch._utils import DEFAULT_SAMPLE_BYTES

#: C0 control bytes that do not occur in text: everything below 0x20 except
#: tab, line feed, vertical tab, form feed and carriage return.
C0_INDICATORS: bytes = bytes(range(0x09)) + bytes(range(0x0E, 0x20))

_BINARY_THRESHOLD = 0.01


def control_ratio(data: bytes) -> float:
    """Return the fraction of *data* made of :data:`C0_INDICATORS` bytes."""
    if not data:
        return 0.0
    return (len(data) - len(data.translate(None, C0_INDICATORS))) / len(data)


def is_binary(data: bytes, max_bytes: int = DEFAULT_SAMPLE_BYTES) -> bool:
    """Return True if more than 1% of the first *max_bytes* are control bytes.

    The caller skips this check for well-formed multi-byte UTF-8, which may
    legitimately carry escape sequences.
    """
    return control_ratio(data[:max_bytes]) > _BINARY_THRESHOLD
