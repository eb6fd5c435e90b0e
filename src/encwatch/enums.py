"""Enumerations for encwatch."""

import enum


class EncodingEra(enum.IntFlag):
    """Bit flags representing encoding eras for filtering detection candidates."""

    MODERN_WEB = 1
    LEGACY_ISO = 2
    LEGACY_MAC = 4
    DOS = 8
    ALL = MODERN_WEB | LEGACY_ISO | LEGACY_MAC | DOS


# Priority order for tiebreaking: lower number = higher priority.
ERA_PRIORITY: dict[EncodingEra, int] = {
    EncodingEra.MODERN_WEB: 0,
    EncodingEra.LEGACY_ISO: 1,
    EncodingEra.DOS: 2,
    EncodingEra.LEGACY_MAC: 3,
}


class OutcomeState(enum.Enum):
    """Lifecycle state of one tracked resource."""

    IDLE = "idle"
    DETECTING = "detecting"
    RESOLVED = "resolved"
    TIMED_OUT = "timed-out"
    FAILED = "failed"


TERMINAL_STATES: frozenset[OutcomeState] = frozenset(
    {OutcomeState.RESOLVED, OutcomeState.TIMED_OUT, OutcomeState.FAILED}
)


class FailureReason(str, enum.Enum):
    """Why a detection ended in :attr:`OutcomeState.FAILED`."""

    INDETERMINATE = "indeterminate"
    SAMPLE_UNAVAILABLE = "sample-unavailable"
    BACKEND_UNAVAILABLE = "backend-unavailable"
    BACKEND_ERROR = "backend-error"
    CANCELLED = "cancelled"


class Verdict(str, enum.Enum):
    """Classification of a detected label against the safe set."""

    SAFE = "safe"
    PROBLEMATIC = "problematic"


class RenderState(str, enum.Enum):
    """What the status surface should display for a resource."""

    DETECTING = "detecting"
    RESOLVED_SAFE = "resolved-safe"
    RESOLVED_UNSAFE = "resolved-unsafe"
    UNKNOWN = "unknown"
    FAILED = "failed"
