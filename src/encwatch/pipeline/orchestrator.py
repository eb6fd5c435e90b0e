"""Pipeline orchestrator: runs all detection stages in sequence."""

from __future__ import annotations

from encwatch._utils import DEFAULT_SAMPLE_BYTES
from encwatch.enums import EncodingEra
from encwatch.pipeline import INDETERMINATE, DetectionResult, PipelineContext
from encwatch.pipeline.ascii import detect_ascii
from encwatch.pipeline.binary import is_binary
from encwatch.pipeline.bom import detect_bom
from encwatch.pipeline.statistical import score_candidates
from encwatch.pipeline.utf8 import detect_utf8
from encwatch.pipeline.utf1632 import detect_utf1632_patterns
from encwatch.pipeline.validity import filter_by_validity
from encwatch.registry import get_candidates


def run_pipeline(
    data: bytes,
    encoding_era: EncodingEra = EncodingEra.ALL,
    max_bytes: int = DEFAULT_SAMPLE_BYTES,
) -> list[DetectionResult]:
    """Run the full detection pipeline.

    :param data: The raw byte data to analyze.
    :param encoding_era: Filter legacy candidates to these eras.
    :param max_bytes: Maximum number of bytes to process.
    :returns: A non-empty list of :class:`DetectionResult` sorted by
        confidence descending.  A single :data:`INDETERMINATE` entry means
        the data could not be classified.
    """
    ctx = PipelineContext()
    # A sample that fills max_bytes may end inside a multi-byte character.
    at_limit = len(data) >= max_bytes
    data = data[:max_bytes]

    if not data:
        return [INDETERMINATE]

    # Stage 1a: BOM detection (runs first; BOMs are definitive and
    # UTF-16/32 data looks binary due to null bytes)
    bom_result = detect_bom(data)
    if bom_result is not None:
        return [bom_result]

    # Stage 1b: 7-bit data is ASCII, whatever control bytes it holds.  This
    # runs before the UTF-16/32 patterns, which also match some 7-bit data.
    ascii_result = detect_ascii(data)
    if ascii_result is not None:
        return [ascii_result]

    # Stage 1c: UTF-16/32 null-byte patterns, before binary detection since
    # their null bytes would exceed the binary threshold.
    utf1632_result = detect_utf1632_patterns(data)
    if utf1632_result is not None:
        return [utf1632_result]

    # Stage 1d: UTF-8 structural validation.  It runs before the binary
    # check because valid multi-byte UTF-8 may carry control bytes (e.g. ESC
    # for ANSI colour codes) above the binary threshold.
    utf8_result = detect_utf8(data, cut_at_end=at_limit)
    if utf8_result is not None:
        return [utf8_result]

    # Stage 0: Binary detection
    if is_binary(data, max_bytes=max_bytes):
        return [INDETERMINATE]

    # Stage 2: Byte validity filtering
    candidates = get_candidates(encoding_era)
    valid_candidates = filter_by_validity(data, candidates, ctx)
    if not valid_candidates:
        return [INDETERMINATE]

    # Stage 3: Statistical scoring for all remaining candidates
    results = score_candidates(data, valid_candidates, ctx)
    if not results:
        return [INDETERMINATE]
    return results
