"""Exceptions raised inside encwatch.

None of these escape :class:`encwatch.session.SessionManager`; every one of
them is turned into a terminal detection outcome.
"""

from __future__ import annotations


class EncwatchError(Exception):
    """Base class for encwatch errors."""


class SampleUnavailable(EncwatchError):
    """The leading sample of a resource could not be read."""

    def __init__(self, resource_id: str, reason: str) -> None:
        super().__init__(f"{resource_id}: {reason}")
        self.resource_id = resource_id
        self.reason = reason


class BackendUnavailable(EncwatchError):
    """The detection backend could not be started at all."""


class BackendError(EncwatchError):
    """The detection backend ran but reported a failure."""


class DetectionTimeout(EncwatchError):
    """A detection did not finish within its deadline."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"detection exceeded {timeout:g}s deadline")
        self.timeout = timeout


class DetectionCancelled(EncwatchError):
    """A detection was cancelled before it finished."""
