# tests/conftest.py
"""Shared test fixtures."""

from __future__ import annotations

import threading
from collections.abc import Callable
from pathlib import Path

import pytest

from encwatch.exceptions import DetectionCancelled
from encwatch.pipeline import DetectionResult

RUSSIAN_TEXT = (
    "Я помню чудное мгновенье: передо мной явилась ты, как мимолётное "
    "виденье, как гений чистой красоты. В томленьях грусти безнадежной, "
    "в тревогах шумной суеты звучал мне долго голос нежный и снились милые "
    "черты. Шли годы. Бурь порыв мятежный рассеял прежние мечты, и я забыл "
    "твой голос нежный, твои небесные черты. Москва является столицей "
    "России и крупнейшим городом страны. Это важный политический, "
    "экономический и культурный центр, где находятся многие музеи, театры и "
    "университеты. Каждый год сюда приезжают миллионы туристов."
)

GERMAN_TEXT = (
    "Die Größe des Gebäudes überraschte die Besucher. Natürlich können wir "
    "das ändern, aber die Straße bleibt geschlossen, bis die Prüfung "
    "abgeschlossen ist. Für weitere Fragen wenden Sie sich bitte an das Büro."
)

JAPANESE_TEXT = "これはテストです。日本語のテキスト。"

CHINESE_TEXT = "这是中文测试文本，用于并发检测。"  # noqa: RUF001


@pytest.fixture
def make_file(tmp_path: Path) -> Callable[[str, bytes], Path]:
    """Return a factory writing *data* to a file named *name* under tmp_path."""

    def _make(name: str, data: bytes) -> Path:
        path = tmp_path / name
        path.write_bytes(data)
        return path

    return _make


class FakeBackend:
    """A scriptable detection backend.

    Returns ``results`` in order (the last one repeats), or raises ``error``.
    When ``gate`` is given, each call waits for it to be set, giving up with
    :class:`DetectionCancelled` as soon as the cancellation token is set.
    """

    def __init__(
        self,
        *results: DetectionResult,
        error: Exception | None = None,
        gate: threading.Event | None = None,
    ) -> None:
        self.results = list(results) or [DetectionResult("utf-8", 0.99)]
        self.error = error
        self.gate = gate
        self.calls: list[str] = []
        self.started = threading.Event()
        self.saw_cancel = threading.Event()
        self._lock = threading.Lock()

    def detect(
        self, resource_id: str, cancel: threading.Event | None = None
    ) -> DetectionResult:
        with self._lock:
            index = len(self.calls)
            self.calls.append(resource_id)
        self.started.set()
        if self.gate is not None:
            while not self.gate.wait(0.01):
                if cancel is not None and cancel.is_set():
                    self.saw_cancel.set()
                    msg = "cancelled"
                    raise DetectionCancelled(msg)
        if self.error is not None:
            raise self.error
        return self.results[min(index, len(self.results) - 1)]
