# tests/test_api.py
from __future__ import annotations

import random

import pytest
from conftest import CHINESE_TEXT, GERMAN_TEXT, JAPANESE_TEXT, RUSSIAN_TEXT

import encwatch
from encwatch import INDETERMINATE, DetectionResult, infer, infer_all
from encwatch._utils import DEFAULT_SAFE_ENCODINGS
from encwatch.enums import EncodingEra


def test_version():
    assert isinstance(encwatch.__version__, str)


def test_infer_returns_detection_result():
    result = infer(b"Hello world")
    assert isinstance(result, DetectionResult)


def test_empty_input_is_undetermined():
    result = infer(b"")
    assert result.determined is False
    assert result.label is None


@pytest.mark.parametrize(
    "data",
    [
        b"A",
        b"Hello, world!",
        b"line one\r\nline two\ttabbed\n",
        bytes(range(0x20, 0x7F)),
        b"The quick brown fox jumps over the lazy dog. " * 200,
    ],
)
def test_ascii_is_determined_and_safe(data: bytes):
    result = infer(data)
    assert result.determined is True
    assert result.label in DEFAULT_SAFE_ENCODINGS


@pytest.mark.parametrize(
    "data",
    [
        b"a" * 300 + b"\x1b" + b"b" * 300,
        b"\x1b[1;32mINFO\x1b[0m server started on port 8080\n" * 40,
        b"x" * 500 + b"\x00" + b"y" * 500,
        b"tail\x7f",
        b"\x00" * 10,
        b"H\x00e\x00l\x00l\x00o\x00 \x00w\x00o\x00r\x00l\x00d\x00",
    ],
)
def test_seven_bit_with_control_bytes_is_safe(data: bytes):
    result = infer(data)
    assert result.determined is True
    assert result.label == "utf-8"


def test_every_seven_bit_sample_is_safe():
    rng = random.Random(7)
    for size in (1, 2, 9, 64, 1000):
        data = bytes(rng.randrange(0x80) for _ in range(size))
        assert infer(data).label in DEFAULT_SAFE_ENCODINGS, data


def test_ascii_renamed_to_utf8():
    assert infer(b"Hello world") == DetectionResult("utf-8", 1.0)


def test_ascii_without_rename():
    assert infer(b"Hello world", rename_ascii=False).label == "ascii"


@pytest.mark.parametrize(
    ("bom", "label"),
    [
        (b"\xef\xbb\xbf", "utf-8-sig"),
        (b"\xff\xfe\x00\x00", "utf-32-le"),
        (b"\x00\x00\xfe\xff", "utf-32-be"),
        (b"\xff\xfe", "utf-16-le"),
        (b"\xfe\xff", "utf-16-be"),
    ],
)
@pytest.mark.parametrize("payload", [b"", b"\x80\x81\x82\x83\x84\x85\x86\x87", b"abcdefgh"])
def test_bom_short_circuits(bom: bytes, label: str, payload: bytes):
    result = infer(bom + payload)
    assert result.label == label
    assert result.confidence == 1.0


@pytest.mark.parametrize(
    "data",
    [
        bytes(range(256)),
        b"\x00" * 10,
        b"\xff" * 3,
        b"\x80",
        random.Random(1).randbytes(4096),
        random.Random(2).randbytes(17),
    ],
)
def test_never_raises(data: bytes):
    result = infer(data)
    assert isinstance(result, DetectionResult)
    assert (result.label is None) is (not result.determined)


def test_deterministic():
    data = RUSSIAN_TEXT.encode("windows-1251")
    assert infer(data) == infer(data)


def test_accepts_bytearray_and_memoryview():
    data = "Héllo wörld".encode()
    assert infer(bytearray(data)).label == "utf-8"
    assert infer(memoryview(data)).label == "utf-8"


def test_russian_windows_1251():
    result = infer(RUSSIAN_TEXT.encode("windows-1251"))
    assert result.label == "windows-1251"
    assert result.language == "ru"
    assert result.confidence >= 0.20


def test_german_western_encoding():
    result = infer(GERMAN_TEXT.encode("windows-1252"))
    assert result.label == "windows-1252"


def test_japanese_shift_jis():
    assert infer(JAPANESE_TEXT.encode("shift_jis")).label == "shift_jis"


def test_chinese_gb18030():
    assert infer(CHINESE_TEXT.encode("gb18030")).label == "gb18030"


def test_threshold_makes_result_undetermined():
    result = infer(RUSSIAN_TEXT.encode("windows-1251"), minimum_confidence=1.0)
    assert result is INDETERMINATE


def test_deterministic_stages_ignore_threshold():
    assert infer(b"Hello", minimum_confidence=1.0).label == "utf-8"


def test_max_bytes_truncates():
    data = b"Hello" + "Привет".encode("windows-1251")
    assert infer(data, max_bytes=5).label == "utf-8"


def test_encoding_era_filter():
    data = RUSSIAN_TEXT.encode("windows-1251")
    result = infer(data, encoding_era=EncodingEra.MODERN_WEB)
    assert result.label == "windows-1251"


@pytest.mark.parametrize("value", [-0.1, 1.5])
def test_invalid_minimum_confidence(value: float):
    with pytest.raises(ValueError, match="confidence"):
        infer(b"Hello", minimum_confidence=value)


@pytest.mark.parametrize("value", [0, -1, True, 1.5])
def test_invalid_max_bytes(value):
    with pytest.raises(ValueError, match="max_bytes"):
        infer(b"Hello", max_bytes=value)


def test_infer_all_ranks_candidates():
    results = infer_all(RUSSIAN_TEXT.encode("windows-1251"))
    assert results[0].label == "windows-1251"
    confidences = [r.confidence for r in results]
    assert confidences == sorted(confidences, reverse=True)


def test_infer_all_does_not_rename():
    assert infer_all(b"Hello")[0].label == "ascii"


def test_infer_all_empty():
    assert infer_all(b"") == [INDETERMINATE]


def test_sample_cut_inside_utf8_character():
    data = (b"a" * 10239 + "é".encode())[:10240]
    assert infer(data) == DetectionResult("utf-8", 0.80)
