"""Detection pipeline stages and shared types."""

from __future__ import annotations

import dataclasses
from dataclasses import field

#: Confidence for deterministic (non-BOM) detection stages.
#: Used by the utf1632 stage and for ASCII holding control bytes.
DETERMINISTIC_CONFIDENCE: float = 0.95


@dataclasses.dataclass(frozen=True, slots=True)
class DetectionResult:
    """A single encoding detection result.

    Frozen dataclass holding the lowercase encoding label, a confidence
    score in ``[0, 1]``, whether the sample could be classified at all, and
    an optional language identifier.  An undetermined result never carries a
    label.
    """

    label: str | None
    confidence: float
    determined: bool = True
    language: str | None = None

    def __post_init__(self) -> None:
        if not self.determined and self.label is not None:
            msg = "an undetermined result cannot carry a label"
            raise ValueError(msg)
        if self.determined and self.label is None:
            msg = "a determined result needs a label"
            raise ValueError(msg)

    def to_dict(self) -> dict[str, str | float | bool | None]:
        """Convert this result to a plain dict.

        :returns: A dict with ``'label'``, ``'confidence'``, ``'determined'``
            and ``'language'`` keys.
        """
        return {
            "label": self.label,
            "confidence": self.confidence,
            "determined": self.determined,
            "language": self.language,
        }


#: Shared result for samples that could not be classified.
INDETERMINATE = DetectionResult(label=None, confidence=0.0, determined=False)


@dataclasses.dataclass(slots=True)
class PipelineContext:
    """Per-run mutable state for a single pipeline invocation.

    Created once at the start of ``run_pipeline()`` and threaded through
    the call chain via function parameters.  Each concurrent ``infer()``
    call gets its own context, so decoded candidate texts are shared between
    the validity and statistical stages without module-level caches.
    """

    decoded: dict[str, str] = field(default_factory=dict)
    non_ascii_count: int = -1
