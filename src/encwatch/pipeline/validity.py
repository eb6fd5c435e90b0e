"""Stage 2a: Byte sequence validity filtering."""

from __future__ import annotations

import codecs
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from encwatch.pipeline import PipelineContext
    from encwatch.registry import EncodingInfo


def decode_sample(data: bytes, codec: str) -> str:
    """Strictly decode *data*, tolerating a sequence cut off at the end.

    The sample is a leading slice of a larger resource, so a multi-byte
    character may be split by the slice boundary.  An incremental decoder
    that is never finalised keeps those trailing bytes pending instead of
    raising.

    :raises UnicodeDecodeError: If *data* is not valid in *codec*.
    :raises LookupError: If *codec* is unknown to Python.
    """
    decoder = codecs.getincrementaldecoder(codec)(errors="strict")
    return decoder.decode(data, final=False)


def filter_by_validity(
    data: bytes,
    candidates: tuple[EncodingInfo, ...],
    ctx: PipelineContext | None = None,
) -> tuple[EncodingInfo, ...]:
    """Filter candidates to only those where *data* decodes without errors.

    Decoded texts are stored in ``ctx.decoded`` for the scoring stage.

    :param data: The raw byte data to test.
    :param candidates: Encoding candidates to validate.
    :param ctx: Optional per-run context receiving the decoded texts.
    :returns: The subset of *candidates* that can decode *data*.
    """
    if not data:
        return candidates

    valid = []
    for enc in candidates:
        try:
            text = decode_sample(data, enc.python_codec)
        except (UnicodeDecodeError, LookupError):
            continue
        if ctx is not None:
            ctx.decoded[enc.name] = text
        valid.append(enc)
    return tuple(valid)
