"""Bounded-time character encoding detection for files being viewed."""

from __future__ import annotations

from encwatch._utils import (
    DEFAULT_SAMPLE_BYTES,
    MINIMUM_THRESHOLD,
    _validate_confidence,
    _validate_max_bytes,
)
from encwatch.classify import Status, classify, describe, render
from encwatch.config import DetectionConfig, StaticSafeEncodings
from encwatch.enums import (
    EncodingEra,
    FailureReason,
    OutcomeState,
    RenderState,
    Verdict,
)
from encwatch.equivalences import apply_preferred_rename
from encwatch.pipeline import INDETERMINATE, DetectionResult
from encwatch.pipeline.orchestrator import run_pipeline
from encwatch.session import DetectionOutcome, SessionManager, StatusEvent

__version__ = "1.0.0"
__all__ = [
    "INDETERMINATE",
    "DetectionConfig",
    "DetectionOutcome",
    "DetectionResult",
    "EncodingEra",
    "FailureReason",
    "OutcomeState",
    "RenderState",
    "SessionManager",
    "StaticSafeEncodings",
    "Status",
    "StatusEvent",
    "Verdict",
    "classify",
    "describe",
    "infer",
    "infer_all",
    "render",
]


def infer(
    sample: bytes | bytearray | memoryview,
    *,
    minimum_confidence: float = MINIMUM_THRESHOLD,
    rename_ascii: bool = True,
    encoding_era: EncodingEra = EncodingEra.ALL,
    max_bytes: int = DEFAULT_SAMPLE_BYTES,
) -> DetectionResult:
    """Infer the character encoding of a leading byte sample.

    Never raises for any byte input: data that cannot be classified yields
    :data:`INDETERMINATE`.

    :param sample: Leading bytes of the resource.
    :param minimum_confidence: Best results below this are undetermined.
    :param rename_ascii: Report pure ASCII as ``utf-8``.
    :param encoding_era: Eras of legacy encodings to consider.
    :param max_bytes: Bytes beyond this are ignored.
    :returns: The best :class:`DetectionResult`.
    :raises ValueError: If *minimum_confidence* or *max_bytes* is invalid.
    """
    _validate_confidence(minimum_confidence)
    _validate_max_bytes(max_bytes)
    data = sample if isinstance(sample, bytes) else bytes(sample)
    best = run_pipeline(data, encoding_era, max_bytes=max_bytes)[0]
    if not best.determined or best.confidence < minimum_confidence:
        return INDETERMINATE
    if rename_ascii:
        return apply_preferred_rename(best)
    return best


def infer_all(
    sample: bytes | bytearray | memoryview,
    *,
    encoding_era: EncodingEra = EncodingEra.ALL,
    max_bytes: int = DEFAULT_SAMPLE_BYTES,
) -> list[DetectionResult]:
    """Return every ranked candidate for *sample*, best first.

    No confidence threshold and no renaming are applied; the list holds a
    single :data:`INDETERMINATE` entry when nothing could be scored.
    """
    _validate_max_bytes(max_bytes)
    data = sample if isinstance(sample, bytes) else bytes(sample)
    return run_pipeline(data, encoding_era, max_bytes=max_bytes)
