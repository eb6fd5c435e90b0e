"""Stage 3: Statistical language-model scoring of decoded candidates."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from encwatch.models import TextProfile, score_best_language
from encwatch.pipeline import DetectionResult, PipelineContext
from encwatch.pipeline.mess import compute_mess_score
from encwatch.pipeline.validity import decode_sample

if TYPE_CHECKING:
    from encwatch.registry import EncodingInfo

logger = logging.getLogger(__name__)

# Score given to a decoding whose non-ASCII characters are all punctuation
# or spacing (e.g. English text with curly quotes): it is clean, but says
# nothing about the language.
_NEUTRAL_ONLY_SCORE = 0.5


def _decoded_text(
    data: bytes, enc: EncodingInfo, ctx: PipelineContext
) -> str | None:
    text = ctx.decoded.get(enc.name)
    if text is not None:
        return text
    try:
        text = decode_sample(data, enc.python_codec)
    except (UnicodeDecodeError, LookupError):
        return None
    ctx.decoded[enc.name] = text
    return text


def score_candidates(
    data: bytes,
    candidates: tuple[EncodingInfo, ...],
    ctx: PipelineContext | None = None,
) -> list[DetectionResult]:
    """Score all candidates and return results sorted by confidence descending.

    Each candidate's decoded text is scored against every language the
    encoding is used for; the best language score, scaled down by the mess
    score of the decoded text, becomes the candidate's confidence.  Equal
    confidences are ordered by era priority, then registry order.
    """
    if not data or not candidates:
        return []
    if ctx is None:
        ctx = PipelineContext()

    scored: list[tuple[float, int, int, DetectionResult]] = []
    for order, enc in enumerate(candidates):
        text = _decoded_text(data, enc, ctx)
        if text is None:
            continue
        profile = TextProfile(text)
        if profile.total == 0:
            score, language = _NEUTRAL_ONLY_SCORE, None
        else:
            score, language = score_best_language(profile, enc.languages)
        mess = compute_mess_score(text)
        confidence = round(score * (1.0 - mess), 6)
        if logger.getEffectiveLevel() <= logging.DEBUG:
            logger.debug(
                "%s %s score = %.3f mess = %.3f", enc.name, language, score, mess
            )
        if confidence <= 0.0:
            continue
        scored.append(
            (
                -confidence,
                enc.priority,
                order,
                DetectionResult(label=enc.name, confidence=confidence, language=language),
            )
        )

    scored.sort(key=lambda item: item[:3])
    return [result for *_, result in scored]
