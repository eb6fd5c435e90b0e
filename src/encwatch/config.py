"""Runtime configuration for detection and classification."""

from __future__ import annotations

import dataclasses
import os
import threading
from collections.abc import Callable, Iterable, Mapping

from encwatch._utils import (
    DEFAULT_SAFE_ENCODINGS,
    DEFAULT_SAMPLE_BYTES,
    DEFAULT_TIMEOUT,
    DEFAULT_WORKERS,
    MINIMUM_THRESHOLD,
    _validate_confidence,
    _validate_max_bytes,
    _validate_timeout,
)
from encwatch.enums import EncodingEra

#: A zero-argument callable returning the current allow-list.
SafeEncodingsProvider = Callable[[], Iterable[str]]


@dataclasses.dataclass(frozen=True, slots=True)
class DetectionConfig:
    """Tunable limits of the detection service.

    :param sample_bytes: Leading bytes read from each resource.
    :param timeout: Wall-clock deadline, in seconds, for one detection.
    :param minimum_confidence: Statistical results below this are reported
        as undetermined.
    :param max_workers: Size of the detection worker pool.
    :param rename_ascii: Report pure ASCII under its UTF-8 superset.
    :param encoding_era: Eras of legacy encodings considered.
    """

    sample_bytes: int = DEFAULT_SAMPLE_BYTES
    timeout: float = DEFAULT_TIMEOUT
    minimum_confidence: float = MINIMUM_THRESHOLD
    max_workers: int = DEFAULT_WORKERS
    rename_ascii: bool = True
    encoding_era: EncodingEra = EncodingEra.ALL

    def __post_init__(self) -> None:
        _validate_max_bytes(self.sample_bytes)
        _validate_timeout(self.timeout)
        _validate_confidence(self.minimum_confidence)
        workers = self.max_workers
        if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
            msg = "max_workers must be a positive integer"
            raise ValueError(msg)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> DetectionConfig:
        """Build a config from ``ENCWATCH_*`` environment variables.

        Unset variables keep their defaults.  Recognised variables are
        ``ENCWATCH_SAMPLE_BYTES``, ``ENCWATCH_TIMEOUT``,
        ``ENCWATCH_MIN_CONFIDENCE`` and ``ENCWATCH_WORKERS``.

        :raises ValueError: If a variable is set to an invalid value.
        """
        env = os.environ if environ is None else environ
        kwargs: dict[str, int | float] = {}
        if env.get("ENCWATCH_SAMPLE_BYTES"):
            kwargs["sample_bytes"] = int(env["ENCWATCH_SAMPLE_BYTES"])
        if env.get("ENCWATCH_TIMEOUT"):
            kwargs["timeout"] = float(env["ENCWATCH_TIMEOUT"])
        if env.get("ENCWATCH_MIN_CONFIDENCE"):
            kwargs["minimum_confidence"] = float(env["ENCWATCH_MIN_CONFIDENCE"])
        if env.get("ENCWATCH_WORKERS"):
            kwargs["max_workers"] = int(env["ENCWATCH_WORKERS"])
        return cls(**kwargs)


def normalize_safe_encodings(names: Iterable[str]) -> tuple[str, ...]:
    """Lowercase, strip and de-duplicate *names*, keeping first-seen order."""
    seen: dict[str, None] = {}
    for name in names:
        key = name.strip().lower()
        if key:
            seen.setdefault(key, None)
    return tuple(seen)


class StaticSafeEncodings:
    """An in-memory allow-list the host can update at runtime.

    Instances are callables, so they can be passed wherever a
    :data:`SafeEncodingsProvider` is expected.
    """

    def __init__(self, names: Iterable[str] = DEFAULT_SAFE_ENCODINGS) -> None:
        self._lock = threading.Lock()
        self._names = normalize_safe_encodings(names)

    def __call__(self) -> tuple[str, ...]:
        with self._lock:
            return self._names

    def update(self, names: Iterable[str]) -> None:
        """Replace the allow-list; later classifications see the new set."""
        normalized = normalize_safe_encodings(names)
        with self._lock:
            self._names = normalized

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self())!r})"
