"""Internal shared utilities for encwatch."""

from __future__ import annotations

#: Default number of leading bytes read from a resource for detection.
DEFAULT_SAMPLE_BYTES: int = 10_240

#: Default wall-clock deadline, in seconds, for one detection.
DEFAULT_TIMEOUT: float = 5.0

#: Default minimum confidence a statistical candidate needs to be reported.
MINIMUM_THRESHOLD: float = 0.20

#: Default size of the detection worker pool.
DEFAULT_WORKERS: int = 4

#: Allow-list used when the host supplies none.
DEFAULT_SAFE_ENCODINGS: tuple[str, ...] = ("ascii", "utf-8")

#: Token printed by the command-line tool when no encoding could be inferred.
UNKNOWN_TOKEN: str = "unknown"

#: Exit status of the command-line tool when the only failures were files
#: it could not read (``EX_NOINPUT`` from sysexits.h).
EXIT_UNREADABLE: int = 66


def _validate_max_bytes(max_bytes: int) -> None:
    """Raise ValueError if *max_bytes* is not a positive integer."""
    if isinstance(max_bytes, bool) or not isinstance(max_bytes, int) or max_bytes < 1:
        msg = "max_bytes must be a positive integer"
        raise ValueError(msg)


def _validate_timeout(timeout: float) -> None:
    """Raise ValueError if *timeout* is not a positive number of seconds."""
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
        msg = "timeout must be a number of seconds"
        raise ValueError(msg)
    if timeout <= 0:
        msg = "timeout must be positive"
        raise ValueError(msg)


def _validate_confidence(confidence: float) -> None:
    """Raise ValueError if *confidence* is outside ``[0, 1]``."""
    if not 0.0 <= confidence <= 1.0:
        msg = f"confidence must be within [0, 1], got {confidence!r}"
        raise ValueError(msg)
