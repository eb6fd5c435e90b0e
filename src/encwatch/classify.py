"""Classify detected labels against the safe set and render them for display."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable
from typing import TYPE_CHECKING

from encwatch.enums import FailureReason, OutcomeState, RenderState, Verdict
from encwatch.equivalences import same_encoding

if TYPE_CHECKING:
    from encwatch.session import DetectionOutcome


def classify(label: str, safe_encodings: Iterable[str]) -> Verdict:
    """Return whether *label* is in *safe_encodings*.

    Matching ignores case and also accepts any alias Python's codec registry
    maps to the same codec, so ``UTF8`` matches a configured ``utf-8`` and
    ``iso-8859-1`` matches ``latin-1``.  This is deliberately wider than
    plain case-insensitive membership: a user who lists one spelling of an
    encoding means all of them.  Labels unknown to the registry are compared
    ignoring case, hyphens and underscores.  The set is consulted on every call.
    """
    for safe in safe_encodings:
        if same_encoding(label, safe):
            return Verdict.SAFE
    return Verdict.PROBLEMATIC


@dataclasses.dataclass(frozen=True, slots=True)
class Status:
    """What the status surface shows for one resource."""

    state: RenderState
    label: str | None = None

    @property
    def change_encoding_available(self) -> bool:
        """True when the host should offer its "change encoding" action."""
        return self.state is RenderState.RESOLVED_UNSAFE

    @property
    def text(self) -> str:
        """Short status-bar text."""
        if self.state is RenderState.DETECTING:
            return "Detecting..."
        if self.state is RenderState.RESOLVED_SAFE:
            return f"✓ {self.label}"
        if self.state is RenderState.RESOLVED_UNSAFE:
            return f"⚠ {self.label}"
        return "Encoding Unknown"

    @property
    def tooltip(self) -> str:
        if self.state is RenderState.DETECTING:
            return "Checking file encoding"
        if self.state is RenderState.RESOLVED_SAFE:
            return f"Encoding: {self.label}"
        if self.state is RenderState.RESOLVED_UNSAFE:
            return f"Encoding: {self.label}\nClick for options."
        return "Could not detect file encoding"


_UNKNOWN = Status(RenderState.UNKNOWN)
_FAILED = Status(RenderState.FAILED)
_DETECTING = Status(RenderState.DETECTING)

_HARD_FAILURES = frozenset(
    {
        FailureReason.SAMPLE_UNAVAILABLE,
        FailureReason.BACKEND_UNAVAILABLE,
        FailureReason.BACKEND_ERROR,
    }
)


def render(outcome: DetectionOutcome, safe_encodings: Iterable[str]) -> Status:
    """Map *outcome* to a :class:`Status`, classifying resolved labels.

    Idle, timed-out, cancelled and indeterminate outcomes render as unknown;
    outcomes that failed because the sample or backend was unavailable render
    as failed.
    """
    state = outcome.state
    if state is OutcomeState.DETECTING:
        return _DETECTING
    if state is OutcomeState.RESOLVED and outcome.result is not None:
        label = outcome.result.label
        if label is None:
            return _UNKNOWN
        if classify(label, safe_encodings) is Verdict.SAFE:
            return Status(RenderState.RESOLVED_SAFE, label)
        return Status(RenderState.RESOLVED_UNSAFE, label)
    if state is OutcomeState.FAILED and outcome.reason in _HARD_FAILURES:
        return _FAILED
    return _UNKNOWN


def describe(status: Status) -> str:
    """Return the message shown when the user asks about a resource's encoding."""
    if status.state is RenderState.RESOLVED_SAFE:
        return f"This file is {status.label} (safe)."
    if status.state is RenderState.RESOLVED_UNSAFE:
        return (
            f"This file is detected as {status.label}. Saving in UTF-8 may "
            "corrupt special characters."
        )
    if status.state is RenderState.DETECTING:
        return "Detecting the file encoding..."
    if status.state is RenderState.FAILED:
        return "Encoding unknown: the file could not be checked."
    return "Encoding unknown."
