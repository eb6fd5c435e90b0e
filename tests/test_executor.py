# tests/test_executor.py
from __future__ import annotations

import threading
import time

import pytest

from encwatch.exceptions import DetectionCancelled, DetectionTimeout
from encwatch.executor import BoundedExecutor, DetectionTask


def _add(a: int, b: int, cancel: threading.Event | None = None) -> int:
    return a + b


def _fail(cancel: threading.Event | None = None) -> None:
    msg = "boom"
    raise RuntimeError(msg)


def _block(release: threading.Event, cancel: threading.Event) -> str:
    while not release.wait(0.01):
        if cancel.is_set():
            return "noticed cancel"
    return "released"


@pytest.fixture
def executor():
    ex = BoundedExecutor(max_workers=2, default_timeout=5.0)
    yield ex
    ex.shutdown(wait=True)


def test_submit_returns_result(executor: BoundedExecutor):
    task = executor.submit(_add, 2, 3)
    assert task.result(timeout=5) == 5
    assert task.done
    assert task.error is None


def test_on_done_called_once(executor: BoundedExecutor):
    seen: list[DetectionTask] = []
    task = executor.submit(_add, 1, 1, on_done=seen.append)
    assert task.wait(5)
    assert seen == [task]
    assert task.value == 2


def test_exception_is_captured(executor: BoundedExecutor):
    task = executor.submit(_fail)
    assert task.wait(5)
    assert isinstance(task.error, RuntimeError)
    with pytest.raises(RuntimeError, match="boom"):
        task.result()


def test_deadline_settles_with_timeout(executor: BoundedExecutor):
    release = threading.Event()
    seen: list[DetectionTask] = []
    start = time.monotonic()
    task = executor.submit(_block, release, timeout=0.2, on_done=seen.append)
    assert task.wait(5)
    assert time.monotonic() - start < 4
    assert task.timed_out
    assert isinstance(task.error, DetectionTimeout)
    assert task.error.timeout == 0.2
    assert task.cancel_event.is_set()
    assert seen == [task]


def test_late_result_is_dropped(executor: BoundedExecutor):
    release = threading.Event()
    seen: list[DetectionTask] = []
    task = executor.submit(_block, release, timeout=0.1, on_done=seen.append)
    assert task.wait(5)
    release.set()
    time.sleep(0.1)
    assert len(seen) == 1
    assert task.value is None
    assert isinstance(task.error, DetectionTimeout)


def test_cancel_settles_immediately(executor: BoundedExecutor):
    release = threading.Event()
    task = executor.submit(_block, release)
    assert task.cancel() is True
    assert task.done
    assert task.cancelled
    assert task.cancel_event.is_set()
    with pytest.raises(DetectionCancelled):
        task.result(timeout=0)


def test_cancel_after_settle_is_noop(executor: BoundedExecutor):
    task = executor.submit(_add, 1, 2)
    assert task.result(timeout=5) == 3
    assert task.cancel() is False
    assert task.value == 3


def test_cancelled_queued_task_never_runs():
    ran = threading.Event()
    release = threading.Event()

    def mark(cancel: threading.Event | None = None) -> None:
        ran.set()

    with BoundedExecutor(max_workers=1) as ex:
        blocker = ex.submit(_block, release)
        queued = ex.submit(mark)
        queued.cancel()
        release.set()
        assert blocker.result(timeout=5) == "released"
    assert not ran.is_set()


def test_callback_errors_are_contained(executor: BoundedExecutor):
    def bad_callback(task: DetectionTask) -> None:
        msg = "callback failed"
        raise ValueError(msg)

    task = executor.submit(_add, 1, 1, on_done=bad_callback)
    assert task.wait(5)
    assert task.value == 2


def test_wait_timeout_before_settle(executor: BoundedExecutor):
    release = threading.Event()
    task = executor.submit(_block, release)
    assert task.wait(0.05) is False
    with pytest.raises(TimeoutError):
        task.result(timeout=0.01)
    release.set()
    assert task.result(timeout=5) == "released"


def test_shutdown_cancels_pending():
    release = threading.Event()
    ex = BoundedExecutor(max_workers=1)
    task = ex.submit(_block, release)
    ex.shutdown()
    assert task.cancelled
    with pytest.raises(RuntimeError, match="shutdown"):
        ex.submit(_add, 1, 2)
    ex.shutdown()


def test_invalid_timeout(executor: BoundedExecutor):
    with pytest.raises(ValueError, match="timeout"):
        executor.submit(_add, 1, 2, timeout=0)
