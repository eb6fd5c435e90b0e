"""Post-decode mess detection.

Scores decoded Unicode text for signs that the wrong encoding was used.
"""

from __future__ import annotations

import unicodedata

_COMMON_CONTROL = {"\t", "\n", "\r", "\x0b", "\x0c"}
# Cap the number of characters to inspect.  10k is sufficient for a stable
# score and avoids O(candidates * file_size) blowup on large files.
_MAX_SAMPLE_CHARS = 10_000

# Categories that are suspicious when wedged between two letters: a symbol
# inside a word is what a wrong code page makes of a letter.
_INTRAWORD_SUSPECT = frozenset({"Sc", "Sk", "Sm", "So", "No", "Co", "Cn"})

# Cache NFKD accent checks; real text has a small vocabulary of distinct
# letter codepoints, so a per-codepoint cache avoids repeated normalization.
_accent_cache: dict[str, bool] = {}


def _is_accented(ch: str) -> bool:
    """Return True if *ch* is a letter with combining marks after NFKD."""
    result = _accent_cache.get(ch)
    if result is None:
        decomposed = unicodedata.normalize("NFKD", ch)
        result = len(decomposed) > 1 and any(
            unicodedata.combining(c) for c in decomposed
        )
        _accent_cache[ch] = result
    return result


def _intraword_symbols(text: str) -> int:
    """Count non-ASCII symbols sitting between two letters."""
    count = 0
    for i in range(1, len(text) - 1):
        ch = text[i]
        if ord(ch) < 0x80:
            continue
        if unicodedata.category(ch) not in _INTRAWORD_SUSPECT:
            continue
        if text[i - 1].isalpha() and text[i + 1].isalpha():
            count += 1
    return count


def compute_mess_score(text: str) -> float:
    """Return a mess score for decoded text. 0.0 = clean, 1.0 = very messy.

    Checks for:
    1. Unprintable characters (category Cc, excluding common whitespace)
    2. Excessive accented characters (>40% of alphabetic chars)
    3. Symbols inside words (e.g. a currency sign between two letters)
    """
    if not text:
        return 0.0

    text = text[:_MAX_SAMPLE_CHARS]
    total = len(text)
    unprintable_count = 0
    alpha_count = 0
    accented_count = 0

    for ch in text:
        cat = unicodedata.category(ch)

        # Only true control chars (Cc); format chars (Cf) such as ZWJ and
        # directional marks are legitimate in Arabic and Hebrew text.
        if cat == "Cc" and ch not in _COMMON_CONTROL:
            unprintable_count += 1

        if cat.startswith("L"):
            alpha_count += 1
            if _is_accented(ch):
                accented_count += 1

    unprintable_ratio = unprintable_count / total
    accent_ratio = accented_count / alpha_count if alpha_count > 10 else 0.0
    symbol_ratio = _intraword_symbols(text) / alpha_count if alpha_count else 0.0

    # Cap unprintable contribution at 0.8 so a single control char in a
    # short string doesn't produce maximum mess on its own.
    score = (
        min(unprintable_ratio * 8.0, 0.8)
        + max(0.0, accent_ratio - 0.40) * 2.0  # Only penalize above 40%
        + min(symbol_ratio * 10.0, 0.6)
    )

    return min(score, 1.0)
