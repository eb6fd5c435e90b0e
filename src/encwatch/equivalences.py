"""Encoding name equivalences and preferred-label remapping.

This module defines:

1. **Name normalization**: two labels name the same encoding when Python's
   codec registry resolves them to the same codec (``UTF8``, ``utf-8`` and
   ``utf_8`` are one encoding; ``windows-1251`` and ``cp1251`` are another).

2. **Preferred superset mapping** for the ``rename_ascii`` option: pure
   ASCII is reported under the superset an editor would save it as, so a
   plain ASCII file is labelled the safe choice.
"""

from __future__ import annotations

import codecs
import dataclasses
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from encwatch.pipeline import DetectionResult


def normalize_encoding_name(name: str) -> str:
    """Normalize encoding name for comparison."""
    name = name.strip()
    try:
        return codecs.lookup(name).name
    except LookupError:
        return name.lower().replace("-", "").replace("_", "")


def same_encoding(a: str, b: str) -> bool:
    """Return True if labels *a* and *b* name the same encoding."""
    return normalize_encoding_name(a) == normalize_encoding_name(b)


# Preferred superset label for each subset label.
PREFERRED_SUPERSET: dict[str, str] = {
    "ascii": "utf-8",
}


def apply_preferred_rename(result: DetectionResult) -> DetectionResult:
    """Return *result* with its label replaced by the preferred superset.

    Results without a label, or whose label has no preferred superset, are
    returned unchanged.
    """
    if result.label is None:
        return result
    preferred = PREFERRED_SUPERSET.get(result.label)
    if preferred is None:
        return result
    return dataclasses.replace(result, label=preferred)
