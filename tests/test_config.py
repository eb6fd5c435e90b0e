# tests/test_config.py
from __future__ import annotations

import dataclasses

import pytest

from encwatch.config import DetectionConfig, StaticSafeEncodings, normalize_safe_encodings
from encwatch.enums import EncodingEra


def test_defaults():
    config = DetectionConfig()
    assert config.sample_bytes == 10_240
    assert config.timeout == 5.0
    assert config.minimum_confidence == 0.20
    assert config.max_workers == 4
    assert config.rename_ascii is True
    assert config.encoding_era == EncodingEra.ALL


def test_is_frozen():
    config = DetectionConfig()
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.timeout = 1.0  # type: ignore[misc]


@pytest.mark.parametrize(
    ("field", "value", "match"),
    [
        ("sample_bytes", 0, "max_bytes"),
        ("sample_bytes", 1.5, "max_bytes"),
        ("timeout", 0, "timeout"),
        ("timeout", -1.0, "timeout"),
        ("timeout", "5", "timeout"),
        ("minimum_confidence", 1.2, "confidence"),
        ("max_workers", 0, "max_workers"),
        ("max_workers", True, "max_workers"),
    ],
)
def test_invalid_values(field: str, value, match: str):
    with pytest.raises(ValueError, match=match):
        DetectionConfig(**{field: value})


def test_from_env_defaults():
    assert DetectionConfig.from_env({}) == DetectionConfig()


def test_from_env_reads_variables():
    config = DetectionConfig.from_env(
        {
            "ENCWATCH_SAMPLE_BYTES": "4096",
            "ENCWATCH_TIMEOUT": "2.5",
            "ENCWATCH_MIN_CONFIDENCE": "0.5",
            "ENCWATCH_WORKERS": "2",
        }
    )
    assert config.sample_bytes == 4096
    assert config.timeout == 2.5
    assert config.minimum_confidence == 0.5
    assert config.max_workers == 2


def test_from_env_ignores_empty_values():
    assert DetectionConfig.from_env({"ENCWATCH_TIMEOUT": ""}).timeout == 5.0


def test_from_env_uses_process_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("ENCWATCH_WORKERS", "7")
    assert DetectionConfig.from_env().max_workers == 7


def test_from_env_invalid_value():
    with pytest.raises(ValueError):
        DetectionConfig.from_env({"ENCWATCH_TIMEOUT": "soon"})
    with pytest.raises(ValueError, match="timeout"):
        DetectionConfig.from_env({"ENCWATCH_TIMEOUT": "-3"})


def test_normalize_safe_encodings():
    names = [" UTF-8", "ascii", "utf-8", "", "Windows-1252 "]
    assert normalize_safe_encodings(names) == ("utf-8", "ascii", "windows-1252")


def test_static_safe_encodings_defaults():
    provider = StaticSafeEncodings()
    assert provider() == ("ascii", "utf-8")


def test_static_safe_encodings_update():
    provider = StaticSafeEncodings(["UTF-8"])
    assert provider() == ("utf-8",)
    provider.update(["utf-8", "Windows-1251"])
    assert provider() == ("utf-8", "windows-1251")
    assert "windows-1251" in repr(provider)
