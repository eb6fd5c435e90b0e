from __future__ import annotations

import pytest

from encwatch.pipeline import DETERMINISTIC_CONFIDENCE, DetectionResult
from encwatch.pipeline.ascii import detect_ascii


def test_pure_ascii():
    result = detect_ascii(b"Hello, world! 123")
    assert result == DetectionResult("ascii", 1.0)


def test_ascii_with_common_whitespace():
    result = detect_ascii(b"Hello\n\tworld\r\n\x0b\x0c")
    assert result == DetectionResult("ascii", 1.0)


def test_high_byte_not_ascii():
    result = detect_ascii(b"Hello \x80 world")
    assert result is None


def test_utf8_multibyte_not_ascii():
    result = detect_ascii("Héllo".encode())
    assert result is None


def test_empty_input():
    result = detect_ascii(b"")
    assert result is None


def test_single_ascii_byte():
    result = detect_ascii(b"A")
    assert result == DetectionResult("ascii", 1.0)


def test_all_printable_ascii():
    data = bytes(range(0x20, 0x7F))
    result = detect_ascii(data)
    assert result == DetectionResult("ascii", 1.0)


@pytest.mark.parametrize(
    "data",
    [
        b"Hello\x00world",
        b"\x1b[31mred\x1b[0m",
        b"abc\x7f",
        b"\x00" * 64,
    ],
)
def test_control_bytes_lower_confidence(data: bytes):
    assert detect_ascii(data) == DetectionResult("ascii", DETERMINISTIC_CONFIDENCE)
