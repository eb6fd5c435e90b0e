"""Registry of legacy encodings considered by the statistical stages.

Unicode encodings are found by the deterministic stages (BOM, null-byte
patterns, UTF-8 structure) and never appear here.  Each entry names the
languages the encoding is used for; the statistical stage only scores an
encoding against its own languages.
"""

from __future__ import annotations

import dataclasses
import threading

from encwatch.enums import ERA_PRIORITY, EncodingEra


@dataclasses.dataclass(frozen=True, slots=True)
class EncodingInfo:
    """Static description of one candidate encoding."""

    name: str
    era: EncodingEra
    languages: tuple[str, ...]
    python_codec: str
    is_multibyte: bool = False

    @property
    def priority(self) -> int:
        """Tiebreak rank: lower wins."""
        return ERA_PRIORITY[self.era]


_W = EncodingEra.MODERN_WEB
_ISO = EncodingEra.LEGACY_ISO
_MAC = EncodingEra.LEGACY_MAC
_DOS = EncodingEra.DOS

_WESTERN = ("fr", "de", "es", "pt", "it", "nl", "nordic")
_CENTRAL = ("pl", "cs", "hu", "hr", "ro")

# Registry order is the final tiebreak inside an era.
REGISTRY: tuple[EncodingInfo, ...] = (
    EncodingInfo("windows-1252", _W, _WESTERN, "cp1252"),
    EncodingInfo("windows-1251", _W, ("ru", "uk", "bg", "be", "sr"), "cp1251"),
    EncodingInfo("windows-1250", _W, _CENTRAL, "cp1250"),
    EncodingInfo("windows-1253", _W, ("el",), "cp1253"),
    EncodingInfo("windows-1254", _W, ("tr",), "cp1254"),
    EncodingInfo("windows-1255", _W, ("he",), "cp1255"),
    EncodingInfo("windows-1256", _W, ("ar",), "cp1256"),
    EncodingInfo("windows-1257", _W, ("lt", "lv", "et"), "cp1257"),
    EncodingInfo("koi8-r", _W, ("ru",), "koi8_r"),
    EncodingInfo("koi8-u", _W, ("uk",), "koi8_u"),
    EncodingInfo("shift_jis", _W, ("ja",), "shift_jis", is_multibyte=True),
    EncodingInfo("euc-jp", _W, ("ja",), "euc_jp", is_multibyte=True),
    EncodingInfo("gb18030", _W, ("zh",), "gb18030", is_multibyte=True),
    EncodingInfo("big5", _W, ("zh-hant",), "big5", is_multibyte=True),
    EncodingInfo("euc-kr", _W, ("ko",), "euc_kr", is_multibyte=True),
    EncodingInfo("iso-8859-1", _ISO, _WESTERN, "latin_1"),
    EncodingInfo("iso-8859-15", _ISO, _WESTERN, "iso8859_15"),
    EncodingInfo("iso-8859-2", _ISO, _CENTRAL, "iso8859_2"),
    EncodingInfo("iso-8859-5", _ISO, ("ru", "bg", "sr"), "iso8859_5"),
    EncodingInfo("iso-8859-7", _ISO, ("el",), "iso8859_7"),
    EncodingInfo("iso-8859-9", _ISO, ("tr",), "iso8859_9"),
    EncodingInfo("cp866", _DOS, ("ru", "uk", "be"), "cp866"),
    EncodingInfo("cp850", _DOS, _WESTERN, "cp850"),
    EncodingInfo("mac-roman", _MAC, _WESTERN, "mac_roman"),
    EncodingInfo("mac-cyrillic", _MAC, ("ru", "uk", "bg"), "mac_cyrillic"),
)

_CANDIDATES_CACHE: dict[int, tuple[EncodingInfo, ...]] = {}
_CANDIDATES_LOCK = threading.Lock()


def get_candidates(era: EncodingEra) -> tuple[EncodingInfo, ...]:
    """Return the registry entries whose era is included in *era*.

    :param era: Bit flags of the eras to include.
    :returns: Matching entries, in registry order.
    """
    key = int(era)
    cached = _CANDIDATES_CACHE.get(key)
    if cached is not None:
        return cached
    with _CANDIDATES_LOCK:
        candidates = tuple(enc for enc in REGISTRY if enc.era & era)
        _CANDIDATES_CACHE[key] = candidates
        return candidates


def lookup(name: str) -> EncodingInfo | None:
    """Return the registry entry for *name*, or None."""
    for enc in REGISTRY:
        if enc.name == name:
            return enc
    return None
