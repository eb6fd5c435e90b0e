# tests/test_registry.py
from __future__ import annotations

import codecs

import pytest

from encwatch.enums import EncodingEra
from encwatch.registry import REGISTRY, EncodingInfo, get_candidates, lookup


def test_encoding_info_is_frozen():
    info = REGISTRY[0]
    assert isinstance(info, EncodingInfo)
    with pytest.raises(AttributeError):
        info.name = "something"  # type: ignore[misc]


def test_registry_is_tuple():
    assert isinstance(REGISTRY, tuple)


def test_registry_names_are_unique_and_lowercase():
    names = [e.name for e in REGISTRY]
    assert len(names) == len(set(names))
    assert all(name == name.lower() for name in names)


def test_registry_has_no_unicode_encodings():
    # Found by the deterministic stages instead
    assert not any(e.name.startswith("utf") for e in REGISTRY)


@pytest.mark.parametrize("info", REGISTRY, ids=lambda e: e.name)
def test_python_codec_exists(info: EncodingInfo):
    codecs.lookup(info.python_codec)


def test_registry_windows_1251_is_modern_web():
    enc = lookup("windows-1251")
    assert enc is not None
    assert EncodingEra.MODERN_WEB in enc.era
    assert "ru" in enc.languages


def test_registry_iso_8859_1_is_legacy_iso():
    iso = lookup("iso-8859-1")
    assert iso is not None
    assert EncodingEra.LEGACY_ISO in iso.era


def test_registry_macroman_is_legacy_mac():
    mac = lookup("mac-roman")
    assert mac is not None
    assert EncodingEra.LEGACY_MAC in mac.era


def test_registry_cp866_is_dos():
    cp866 = lookup("cp866")
    assert cp866 is not None
    assert EncodingEra.DOS in cp866.era


def test_lookup_unknown():
    assert lookup("no-such-encoding") is None


def test_priority_follows_era():
    assert lookup("windows-1252").priority < lookup("iso-8859-1").priority
    assert lookup("cp850").priority < lookup("mac-roman").priority


def test_get_candidates_filters_by_era():
    modern = get_candidates(EncodingEra.MODERN_WEB)
    assert modern
    for enc in modern:
        assert EncodingEra.MODERN_WEB in enc.era


def test_get_candidates_all_is_whole_registry():
    assert get_candidates(EncodingEra.ALL) == REGISTRY


def test_get_candidates_combined_eras():
    combined = get_candidates(EncodingEra.DOS | EncodingEra.LEGACY_MAC)
    assert {e.name for e in combined} == {"cp866", "cp850", "mac-roman", "mac-cyrillic"}


def test_get_candidates_is_cached():
    assert get_candidates(EncodingEra.LEGACY_ISO) is get_candidates(EncodingEra.LEGACY_ISO)
