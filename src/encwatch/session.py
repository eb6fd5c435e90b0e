"""Per-resource detection sessions.

:class:`SessionManager` decides when a resource needs (re)detection, runs the
backend in a :class:`~encwatch.executor.BoundedExecutor` and turns whatever
comes back into a terminal :class:`DetectionOutcome`.  Each resource moves
through::

    IDLE -> DETECTING -> RESOLVED | TIMED_OUT | FAILED

and a later trigger re-enters ``DETECTING``.  Every detection is tagged with
a generation number; a completion whose generation is no longer the
resource's current one is discarded.

Triggers never touch the file system.  The revision used to skip
re-detecting an unchanged file is taken on a worker thread, either alongside
the detection or by a short revalidation task.
"""

from __future__ import annotations

import dataclasses
import functools
import itertools
import logging
import threading
import time
import types
from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import TYPE_CHECKING

from encwatch._utils import DEFAULT_SAFE_ENCODINGS
from encwatch.classify import Status, render
from encwatch.config import DetectionConfig, SafeEncodingsProvider, StaticSafeEncodings
from encwatch.enums import TERMINAL_STATES, FailureReason, OutcomeState
from encwatch.exceptions import (
    BackendUnavailable,
    DetectionCancelled,
    DetectionTimeout,
    SampleUnavailable,
)
from encwatch.executor import BoundedExecutor, DetectionTask
from encwatch.pipeline import DetectionResult
from encwatch.reader import revision

if TYPE_CHECKING:
    from encwatch.backends import Backend

StatusSink = Callable[["StatusEvent"], None]
Dispatcher = Callable[[Callable[[], None]], None]


@dataclasses.dataclass(frozen=True, slots=True)
class DetectionOutcome:
    """The cached state of one resource.

    Use the class-method constructors rather than building instances
    directly.
    """

    state: OutcomeState
    generation: int = 0
    result: DetectionResult | None = None
    reason: FailureReason | None = None
    started_at: float | None = None

    @classmethod
    def idle(cls) -> DetectionOutcome:
        return _IDLE

    @classmethod
    def detecting(
        cls, generation: int, started_at: float | None = None
    ) -> DetectionOutcome:
        if started_at is None:
            started_at = time.monotonic()
        return cls(OutcomeState.DETECTING, generation, started_at=started_at)

    @classmethod
    def resolved(cls, result: DetectionResult, generation: int) -> DetectionOutcome:
        if not result.determined:
            msg = "only a determined result can resolve a detection"
            raise ValueError(msg)
        return cls(OutcomeState.RESOLVED, generation, result=result)

    @classmethod
    def timed_out(cls, generation: int) -> DetectionOutcome:
        return cls(OutcomeState.TIMED_OUT, generation)

    @classmethod
    def failed(cls, reason: FailureReason, generation: int) -> DetectionOutcome:
        return cls(OutcomeState.FAILED, generation, reason=FailureReason(reason))

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def label(self) -> str | None:
        return self.result.label if self.result is not None else None


_IDLE = DetectionOutcome(OutcomeState.IDLE)


@dataclasses.dataclass(frozen=True, slots=True)
class StatusEvent:
    """A status transition delivered to the host's sink."""

    resource_id: str
    outcome: DetectionOutcome
    status: Status


@dataclasses.dataclass(slots=True)
class _Entry:
    outcome: DetectionOutcome = _IDLE
    generation: int = 0
    revision: tuple[int, int] | None = None
    task: DetectionTask | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class _Detection:
    """What a detection task hands back: the revision it saw and the result."""

    revision: tuple[int, int] | None
    result: object


def _stat(
    resource_id: str, cancel: threading.Event | None = None
) -> tuple[int, int] | None:
    return revision(resource_id)


class Session:
    """Mapping of resource id to its detection entry.

    Not synchronised on its own; :class:`SessionManager` is the only writer
    and serialises access.
    """

    def __init__(self) -> None:
        self._entries: dict[str, _Entry] = {}

    def get(self, resource_id: str) -> _Entry | None:
        return self._entries.get(resource_id)

    def ensure(self, resource_id: str) -> _Entry:
        """Return the entry for *resource_id*, creating an idle one if needed."""
        entry = self._entries.get(resource_id)
        if entry is None:
            entry = self._entries[resource_id] = _Entry()
        return entry

    def entries(self) -> list[_Entry]:
        return list(self._entries.values())

    def evict(self, resource_id: str) -> _Entry | None:
        return self._entries.pop(resource_id, None)

    def clear(self) -> list[_Entry]:
        entries = list(self._entries.values())
        self._entries.clear()
        return entries

    def snapshot(self) -> Mapping[str, DetectionOutcome]:
        """Return a read-only copy of every resource's current outcome."""
        return types.MappingProxyType(
            {rid: entry.outcome for rid, entry in self._entries.items()}
        )

    def __contains__(self, resource_id: object) -> bool:
        return resource_id in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)


def _call_inline(fn: Callable[[], None]) -> None:
    fn()


class SessionManager:
    """Track resources and keep their detected encodings current.

    :param backend: Object whose ``detect(resource_id, cancel=...)`` returns a
        :class:`~encwatch.pipeline.DetectionResult`.
    :param config: Detection limits; defaults to the backend's config.
    :param safe_encodings: Zero-argument callable returning the allow-list,
        or a fixed iterable of names.  Read on every classification.
    :param sink: Called with a :class:`StatusEvent` for every status change.
        It runs with the session lock held, so it must not block.
    :param executor: Worker pool to run detections in.  One sized from
        *config* is created (and shut down by :meth:`close`) when omitted.
    :param dispatch: Called with a zero-argument callable for every
        completion; the callable applies the completion to the session.
        Defaults to calling it on the worker thread.  Pass e.g.
        ``loop.call_soon_threadsafe`` to apply completions on a host's own
        event loop thread.
    """

    def __init__(
        self,
        backend: Backend,
        *,
        config: DetectionConfig | None = None,
        safe_encodings: SafeEncodingsProvider | Iterable[str] | None = None,
        sink: StatusSink | None = None,
        executor: BoundedExecutor | None = None,
        dispatch: Dispatcher | None = None,
    ) -> None:
        self.logger = logging.getLogger(__name__)
        self.backend = backend
        if config is None:
            config = getattr(backend, "config", None) or DetectionConfig()
        self.config = config
        if safe_encodings is None:
            safe_encodings = StaticSafeEncodings()
        elif not callable(safe_encodings):
            safe_encodings = StaticSafeEncodings(safe_encodings)
        self.safe_encodings: SafeEncodingsProvider = safe_encodings
        self._sink = sink
        self._owns_executor = executor is None
        if executor is None:
            executor = BoundedExecutor(config.max_workers, config.timeout)
        self._executor = executor
        self._dispatch = dispatch if dispatch is not None else _call_inline
        self._session = Session()
        # Reentrant: sinks may call back into the manager.
        self._lock = threading.RLock()
        self._idle = threading.Condition(self._lock)
        self._generations = itertools.count(1)
        self._unavailable_logged = False
        self._closed = False

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    def on_resource_activated(self, resource_id: str) -> None:
        """Handle the host opening or focusing *resource_id*.

        Never starts a second detection while one is in flight.  A resolved
        resource is first revalidated off-thread; if its file has not changed
        the cached status is re-emitted instead of re-detecting.
        """
        with self._lock:
            if self._closed:
                return
            entry = self._session.ensure(resource_id)
            state = entry.outcome.state
            if entry.task is not None or state is OutcomeState.DETECTING:
                self.logger.debug("%s: work already in flight", resource_id)
                return
            if state is OutcomeState.RESOLVED and entry.revision is not None:
                self._revalidate(resource_id, entry)
                return
            self._start(resource_id, entry)

    def on_resource_changed(self, resource_id: str) -> None:
        """Handle new content for *resource_id*.

        Any in-flight detection is superseded and cancelled, and detection
        restarts under a new generation.
        """
        with self._lock:
            if self._closed:
                return
            entry = self._session.ensure(resource_id)
            stale = entry.task
            self._start(resource_id, entry)
        if stale is not None:
            stale.cancel()

    def on_resource_closed(self, resource_id: str) -> None:
        """Stop tracking *resource_id*, cancelling any in-flight detection."""
        with self._lock:
            entry = self._session.evict(resource_id)
            self._idle.notify_all()
        if entry is not None and entry.task is not None:
            self.logger.debug("%s: closed while detecting", resource_id)
            entry.task.cancel()

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def outcome(self, resource_id: str) -> DetectionOutcome:
        """Return the current outcome; untracked resources are idle."""
        with self._lock:
            entry = self._session.get(resource_id)
            return entry.outcome if entry is not None else _IDLE

    def status(self, resource_id: str) -> Status:
        """Render the current outcome against the current safe set."""
        return render(self.outcome(resource_id), self._safe_list())

    def snapshot(self) -> Mapping[str, DetectionOutcome]:
        with self._lock:
            return self._session.snapshot()

    @property
    def in_flight(self) -> int:
        """Number of resources being detected or revalidated."""
        with self._lock:
            return self._count_busy()

    def join(self, timeout: float | None = None) -> bool:
        """Block until no resource is being detected or revalidated.

        Only useful when completions are applied off the calling thread.

        :returns: False if *timeout* elapsed first.
        """
        with self._idle:
            return self._idle.wait_for(lambda: self._count_busy() == 0, timeout)

    def close(self) -> None:
        """Cancel all work and forget every resource.  Idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            entries = self._session.clear()
            self._idle.notify_all()
        for entry in entries:
            if entry.task is not None:
                entry.task.cancel()
        if self._owns_executor:
            self._executor.shutdown()
        self.logger.debug("session closed (%d resources)", len(entries))

    def __enter__(self) -> SessionManager:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internals; callers hold self._lock unless noted
    # ------------------------------------------------------------------

    def _count_busy(self) -> int:
        return sum(1 for entry in self._session.entries() if entry.task is not None)

    def _start(self, resource_id: str, entry: _Entry) -> None:
        generation = next(self._generations)
        entry.generation = generation
        entry.outcome = DetectionOutcome.detecting(generation)
        self.logger.debug("%s: detecting (generation %d)", resource_id, generation)
        self._emit(resource_id, entry.outcome)
        try:
            entry.task = self._executor.submit(
                self._detect,
                resource_id,
                timeout=self.config.timeout,
                on_done=functools.partial(
                    self._task_done, self._apply, resource_id, generation
                ),
            )
        except RuntimeError:
            self.logger.exception("%s: could not schedule detection", resource_id)
            entry.task = None
            self._finish(
                resource_id,
                entry,
                DetectionOutcome.failed(FailureReason.BACKEND_UNAVAILABLE, generation),
            )

    def _detect(
        self, resource_id: str, cancel: threading.Event | None = None
    ) -> _Detection:
        # Runs on a worker.  The revision is taken first so a change made
        # during detection is seen by the next activation.
        current = revision(resource_id)
        return _Detection(current, self.backend.detect(resource_id, cancel=cancel))

    def _revalidate(self, resource_id: str, entry: _Entry) -> None:
        generation = next(self._generations)
        entry.generation = generation
        self.logger.debug("%s: revalidating (generation %d)", resource_id, generation)
        try:
            entry.task = self._executor.submit(
                _stat,
                resource_id,
                timeout=self.config.timeout,
                on_done=functools.partial(
                    self._task_done, self._apply_revalidation, resource_id, generation
                ),
            )
        except RuntimeError:
            entry.task = None
            self._start(resource_id, entry)

    def _apply_revalidation(
        self, resource_id: str, generation: int, task: DetectionTask
    ) -> None:
        with self._lock:
            entry = self._session.get(resource_id)
            if entry is None or entry.generation != generation:
                return
            entry.task = None
            current = task.value if task.error is None else None
            if (
                current is not None
                and current == entry.revision
                and entry.outcome.state is OutcomeState.RESOLVED
            ):
                self.logger.debug("%s: unchanged, reusing cached result", resource_id)
                self._emit(resource_id, entry.outcome)
                self._idle.notify_all()
                return
            self._start(resource_id, entry)

    def _task_done(
        self,
        apply: Callable[[str, int, DetectionTask], None],
        resource_id: str,
        generation: int,
        task: DetectionTask,
    ) -> None:
        # Runs on a worker or timer thread, without the lock.
        try:
            self._dispatch(functools.partial(apply, resource_id, generation, task))
        except Exception:
            self.logger.exception("%s: could not dispatch completion", resource_id)

    def _apply(self, resource_id: str, generation: int, task: DetectionTask) -> None:
        with self._lock:
            entry = self._session.get(resource_id)
            if entry is None or entry.generation != generation:
                self.logger.debug(
                    "%s: discarding stale completion (generation %d)",
                    resource_id,
                    generation,
                )
                return
            if entry.outcome.state is not OutcomeState.DETECTING:
                return
            entry.task = None
            if isinstance(task.value, _Detection):
                entry.revision = task.value.revision
            outcome = self._outcome_for(resource_id, generation, task)
            self._finish(resource_id, entry, outcome)

    def _outcome_for(
        self, resource_id: str, generation: int, task: DetectionTask
    ) -> DetectionOutcome:
        error = task.error
        if error is None:
            value = task.value
            result = value.result if isinstance(value, _Detection) else value
            if not isinstance(result, DetectionResult):
                self.logger.error(
                    "%s: backend returned %r, not a DetectionResult",
                    resource_id,
                    result,
                )
                return DetectionOutcome.failed(FailureReason.BACKEND_ERROR, generation)
            if not result.determined:
                return DetectionOutcome.failed(FailureReason.INDETERMINATE, generation)
            return DetectionOutcome.resolved(result, generation)
        if isinstance(error, DetectionTimeout):
            self.logger.debug("%s: %s", resource_id, error)
            return DetectionOutcome.timed_out(generation)
        if isinstance(error, DetectionCancelled):
            return DetectionOutcome.failed(FailureReason.CANCELLED, generation)
        if isinstance(error, SampleUnavailable):
            self.logger.debug("%s: sample unavailable: %s", resource_id, error.reason)
            return DetectionOutcome.failed(FailureReason.SAMPLE_UNAVAILABLE, generation)
        if isinstance(error, BackendUnavailable):
            if not self._unavailable_logged:
                self._unavailable_logged = True
                self.logger.warning("detection backend unavailable: %s", error)
            return DetectionOutcome.failed(
                FailureReason.BACKEND_UNAVAILABLE, generation
            )
        self.logger.error("%s: detection backend failed", resource_id, exc_info=error)
        return DetectionOutcome.failed(FailureReason.BACKEND_ERROR, generation)

    def _finish(
        self, resource_id: str, entry: _Entry, outcome: DetectionOutcome
    ) -> None:
        entry.outcome = outcome
        if self.logger.getEffectiveLevel() <= logging.DEBUG:
            detail = outcome.label or (outcome.reason and outcome.reason.value) or ""
            self.logger.debug(
                "%s: %s %s (generation %d)",
                resource_id,
                outcome.state.value,
                detail,
                outcome.generation,
            )
        self._emit(resource_id, outcome)
        self._idle.notify_all()

    def _safe_list(self) -> tuple[str, ...]:
        try:
            return tuple(self.safe_encodings())
        except Exception:
            self.logger.exception("safe-encodings provider failed; using defaults")
            return DEFAULT_SAFE_ENCODINGS

    def _emit(self, resource_id: str, outcome: DetectionOutcome) -> None:
        if self._sink is None:
            return
        event = StatusEvent(resource_id, outcome, render(outcome, self._safe_list()))
        try:
            self._sink(event)
        except Exception:
            self.logger.exception("%s: status sink failed", resource_id)
