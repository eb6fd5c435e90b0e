"""Bounded reads of a resource's leading bytes."""

from __future__ import annotations

import os
from pathlib import Path

from encwatch._utils import DEFAULT_SAMPLE_BYTES, _validate_max_bytes
from encwatch.exceptions import SampleUnavailable


def resource_id(path: str | os.PathLike[str]) -> str:
    """Return the canonical identifier for *path*.

    Relative paths are made absolute and symlinks resolved, so two spellings
    of the same file share one session entry.
    """
    return str(Path(path).resolve())


def read_sample(rid: str, max_bytes: int = DEFAULT_SAMPLE_BYTES) -> bytes:
    """Read up to *max_bytes* leading bytes of resource *rid*.

    Only the sample is read; the rest of the file is never loaded.

    :raises SampleUnavailable: If the resource is missing, unreadable or
        not a regular file.
    :raises ValueError: If *max_bytes* is not a positive integer.
    """
    _validate_max_bytes(max_bytes)
    try:
        with Path(rid).open("rb") as f:
            return f.read(max_bytes)
    except OSError as e:
        raise SampleUnavailable(rid, e.strerror or str(e)) from e


def revision(rid: str) -> tuple[int, int] | None:
    """Return ``(mtime_ns, size)`` for *rid*, or ``None`` if it cannot be stat'ed."""
    try:
        st = os.stat(rid)
    except OSError:
        return None
    return (st.st_mtime_ns, st.st_size)
