"""Run detection work off the caller's thread under a wall-clock deadline.

:class:`BoundedExecutor` wraps a :class:`concurrent.futures.ThreadPoolExecutor`.
Every submission returns a :class:`DetectionTask` that settles exactly once,
with whichever of these happens first:

* the work function's return value,
* the exception the work function raised,
* :class:`~encwatch.exceptions.DetectionTimeout` when the deadline elapses,
* :class:`~encwatch.exceptions.DetectionCancelled` when :meth:`DetectionTask.cancel`
  is called.

Threads cannot be killed, so timeout and cancellation are cooperative: the
task's ``cancel_event`` is set and passed to the work function, which is
expected to stop (and to terminate any child process) when it sees it.  The
task settles immediately either way, and a result that arrives afterwards is
dropped.
"""

from __future__ import annotations

import concurrent.futures
import logging
import threading
from collections.abc import Callable
from typing import Any

from encwatch._utils import DEFAULT_TIMEOUT, DEFAULT_WORKERS, _validate_timeout
from encwatch.exceptions import DetectionCancelled, DetectionTimeout

logger = logging.getLogger(__name__)

DoneCallback = Callable[["DetectionTask"], None]


class DetectionTask:
    """Handle for one submitted unit of detection work."""

    def __init__(self, timeout: float, on_done: DoneCallback | None = None) -> None:
        self.timeout = timeout
        self.cancel_event = threading.Event()
        self._on_done = on_done
        self._lock = threading.Lock()
        self._claimed = False
        self._settled = threading.Event()
        self._value: Any = None
        self._error: BaseException | None = None
        self._future: concurrent.futures.Future[None] | None = None
        self._timer: threading.Timer | None = None

    @property
    def done(self) -> bool:
        """True once the task has settled and its callback has returned."""
        return self._settled.is_set()

    @property
    def value(self) -> Any:
        """The work function's return value; readable from *on_done*."""
        return self._value

    @property
    def error(self) -> BaseException | None:
        """The exception the task settled with; readable from *on_done*."""
        return self._error

    @property
    def cancelled(self) -> bool:
        return isinstance(self._error, DetectionCancelled)

    @property
    def timed_out(self) -> bool:
        return isinstance(self._error, DetectionTimeout)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the task settles; return False if *timeout* elapsed first."""
        return self._settled.wait(timeout)

    def result(self, timeout: float | None = None) -> Any:
        """Return the work function's value, or raise what the task settled with.

        :raises TimeoutError: If the task has not settled within *timeout*.
        """
        if not self._settled.wait(timeout):
            msg = "task has not settled"
            raise TimeoutError(msg)
        if self._error is not None:
            raise self._error
        return self._value

    def exception(self, timeout: float | None = None) -> BaseException | None:
        """Return the exception the task settled with, or ``None``."""
        if not self._settled.wait(timeout):
            msg = "task has not settled"
            raise TimeoutError(msg)
        return self._error

    def cancel(self) -> bool:
        """Cancel the task.

        :returns: True if this call settled the task, False if it had already
            settled.
        """
        return self._settle(None, DetectionCancelled("detection cancelled"))

    def _expire(self) -> None:
        self._settle(None, DetectionTimeout(self.timeout))

    def _settle(self, value: Any, error: BaseException | None) -> bool:
        with self._lock:
            if self._claimed:
                return False
            self._claimed = True
            self._value = value
            self._error = error
        if self._timer is not None:
            self._timer.cancel()
        if isinstance(error, (DetectionTimeout, DetectionCancelled)):
            self.cancel_event.set()
            if self._future is not None:
                self._future.cancel()
        if self._on_done is not None:
            try:
                self._on_done(self)
            except Exception:
                logger.exception("detection completion callback failed")
        self._settled.set()
        return True


class BoundedExecutor:
    """A worker pool whose tasks carry a deadline and a cancellation token.

    :param max_workers: Number of worker threads.
    :param default_timeout: Deadline, in seconds, for submissions that do not
        pass their own.
    """

    def __init__(
        self,
        max_workers: int = DEFAULT_WORKERS,
        default_timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        _validate_timeout(default_timeout)
        self.max_workers = max_workers
        self.default_timeout = default_timeout
        self._pool = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="encwatch"
        )
        self._lock = threading.Lock()
        self._pending: set[DetectionTask] = set()
        self._shutdown = False

    def submit(
        self,
        fn: Callable[..., Any],
        *args: Any,
        timeout: float | None = None,
        on_done: DoneCallback | None = None,
    ) -> DetectionTask:
        """Schedule ``fn(*args, cancel=event)`` and return its task.

        The deadline starts now, so time spent queued behind busy workers
        counts against it.  *on_done* is called exactly once, from whichever
        thread settles the task.

        :raises RuntimeError: If the executor has been shut down.
        """
        if timeout is None:
            timeout = self.default_timeout
        _validate_timeout(timeout)
        task = DetectionTask(timeout, on_done)
        with self._lock:
            if self._shutdown:
                msg = "cannot submit after shutdown"
                raise RuntimeError(msg)
            self._pending.add(task)
        timer = threading.Timer(timeout, task._expire)
        timer.daemon = True
        task._timer = timer
        timer.start()
        future = self._pool.submit(self._run, task, fn, args)
        task._future = future
        future.add_done_callback(lambda _f: self._forget(task))
        return task

    @staticmethod
    def _run(task: DetectionTask, fn: Callable[..., Any], args: tuple) -> None:
        if task.cancel_event.is_set():
            return
        try:
            value = fn(*args, cancel=task.cancel_event)
        except Exception as e:
            task._settle(None, e)
        else:
            task._settle(value, None)

    def _forget(self, task: DetectionTask) -> None:
        with self._lock:
            self._pending.discard(task)

    @property
    def pending(self) -> int:
        """Number of tasks submitted whose worker has not finished."""
        with self._lock:
            return len(self._pending)

    def shutdown(self, wait: bool = False) -> None:
        """Cancel every unsettled task and stop the pool.

        Safe to call more than once.
        """
        with self._lock:
            self._shutdown = True
            tasks = list(self._pending)
        for task in tasks:
            task.cancel()
        self._pool.shutdown(wait=wait, cancel_futures=True)

    def __enter__(self) -> BoundedExecutor:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown(wait=True)
