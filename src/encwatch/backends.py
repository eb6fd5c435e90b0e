"""Detection backends: sample a resource and infer its encoding.

A backend is any object with a ``detect(resource_id, cancel=None)`` method
returning a :class:`~encwatch.pipeline.DetectionResult`.  Two are provided:

* :class:`InProcessBackend` reads the sample and runs :func:`encwatch.infer`
  in the calling thread.
* :class:`SubprocessBackend` runs the ``encwatch`` command-line tool in a
  child process and parses its one-line answer.  The child is killed when the
  deadline passes or the detection is cancelled.
"""

from __future__ import annotations

import logging
import subprocess
import sys
import threading
import time
from collections.abc import Sequence

from encwatch import infer
from encwatch._utils import EXIT_UNREADABLE, UNKNOWN_TOKEN
from encwatch.config import DetectionConfig
from encwatch.enums import EncodingEra
from encwatch.exceptions import (
    BackendError,
    BackendUnavailable,
    DetectionCancelled,
    DetectionTimeout,
    SampleUnavailable,
)
from encwatch.pipeline import INDETERMINATE, DetectionResult
from encwatch.reader import read_sample, revision

#: Confidence assigned to labels reported by an external detector, which
#: prints a label only.
EXTERNAL_CONFIDENCE: float = 1.0


def cli_command(config: DetectionConfig) -> list[str]:
    """Return the command running the bundled command-line tool with *config*.

    Every detection setting the tool accepts is forwarded, so the child
    answers the way :class:`InProcessBackend` would with the same config.
    """
    command = [
        sys.executable,
        "-m",
        "encwatch.cli",
        "--minimal",
        "--sample-bytes",
        str(config.sample_bytes),
        "--min-confidence",
        str(config.minimum_confidence),
    ]
    if not config.rename_ascii:
        command.append("--keep-ascii")
    if config.encoding_era == EncodingEra.ALL:
        command += ["-e", "all"]
    else:
        for era in EncodingEra:
            if era.bit_count() == 1 and era in config.encoding_era:
                command += ["-e", era.name.lower()]
    return command


def _check_cancelled(cancel: threading.Event | None) -> None:
    if cancel is not None and cancel.is_set():
        msg = "detection cancelled"
        raise DetectionCancelled(msg)


class Backend:
    """Base class for detection backends."""

    name = "backend"

    def __init__(self, config: DetectionConfig | None = None) -> None:
        self.config = config if config is not None else DetectionConfig()
        self.logger = logging.getLogger(__name__)

    def detect(
        self, resource_id: str, cancel: threading.Event | None = None
    ) -> DetectionResult:
        """Detect the encoding of *resource_id*.

        :param resource_id: Canonical path of the resource.
        :param cancel: Set by the caller when the result is no longer wanted.
        :raises SampleUnavailable: If the resource cannot be read.
        :raises BackendUnavailable: If the backend cannot run at all.
        :raises DetectionCancelled: If *cancel* was set while detecting.
        """
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class InProcessBackend(Backend):
    """Read the sample and run the inference engine in the calling thread."""

    name = "in-process"

    def detect(
        self, resource_id: str, cancel: threading.Event | None = None
    ) -> DetectionResult:
        _check_cancelled(cancel)
        sample = read_sample(resource_id, self.config.sample_bytes)
        _check_cancelled(cancel)
        result = infer(
            sample,
            minimum_confidence=self.config.minimum_confidence,
            rename_ascii=self.config.rename_ascii,
            encoding_era=self.config.encoding_era,
            max_bytes=self.config.sample_bytes,
        )
        _check_cancelled(cancel)
        return result


class SubprocessBackend(Backend):
    """Run an external detector process for each resource.

    The process receives the resource path as its last argument.  On success
    it prints a single line holding a lowercase encoding label, or
    ``unknown``.  Exit status :data:`~encwatch._utils.EXIT_UNREADABLE` means
    the resource could not be read.  Any other non-zero exit status, or
    anything written to stderr, is a failure.

    :param config: Limits; ``timeout`` bounds each child process.  The
        default command is built from it by :func:`cli_command`.
    :param command: Command prefix to run instead of the bundled
        command-line tool.
    :param poll_interval: Seconds between checks of the cancellation token.
    """

    name = "subprocess"

    def __init__(
        self,
        config: DetectionConfig | None = None,
        command: Sequence[str] | None = None,
        poll_interval: float = 0.05,
    ) -> None:
        super().__init__(config)
        if command is None:
            command = cli_command(self.config)
        self.command = list(command)
        self.poll_interval = poll_interval

    def detect(
        self, resource_id: str, cancel: threading.Event | None = None
    ) -> DetectionResult:
        _check_cancelled(cancel)
        if revision(resource_id) is None:
            raise SampleUnavailable(resource_id, "resource does not exist")

        argv = [*self.command, "--", resource_id]
        try:
            proc = subprocess.Popen(  # noqa: S603
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            msg = f"cannot start detector {self.command[0]!r}: {e}"
            raise BackendUnavailable(msg) from e

        deadline = time.monotonic() + self.config.timeout
        while True:
            try:
                out, err = proc.communicate(timeout=self.poll_interval)
                break
            except subprocess.TimeoutExpired:
                if cancel is not None and cancel.is_set():
                    self._kill(proc)
                    msg = "detection cancelled"
                    raise DetectionCancelled(msg) from None
                if time.monotonic() >= deadline:
                    self._kill(proc)
                    raise DetectionTimeout(self.config.timeout) from None

        return self._parse(resource_id, proc.returncode, out, err)

    def _kill(self, proc: subprocess.Popen[str]) -> None:
        proc.kill()
        proc.communicate()
        self.logger.debug("killed detector process %d", proc.pid)

    @staticmethod
    def _parse(
        resource_id: str, returncode: int, out: str, err: str
    ) -> DetectionResult:
        err = err.strip()
        if returncode == EXIT_UNREADABLE:
            raise SampleUnavailable(resource_id, err or "detector could not read it")
        if returncode != 0:
            msg = f"detector exited with status {returncode}"
            if err:
                msg = f"{msg}: {err}"
            raise BackendError(msg)
        if err:
            msg = f"detector reported: {err}"
            raise BackendError(msg)
        lines = out.strip().splitlines()
        if len(lines) != 1 or not lines[0].strip():
            msg = f"unexpected detector output: {out!r}"
            raise BackendError(msg)
        label = lines[0].strip().lower()
        if label == UNKNOWN_TOKEN:
            return INDETERMINATE
        return DetectionResult(label=label, confidence=EXTERNAL_CONFIDENCE)
