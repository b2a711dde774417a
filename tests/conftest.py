"""
Gemeinsame Test-Fixtures für Diktat.

Diese Fixtures isolieren Tests von externen Abhängigkeiten:
- Mikrofon, Provider und Desktop-Ausgaben (Fakes für die Ports)
- Dateisystem (Lock-Datei, Socket)
- Umgebungsvariablen (API-Keys, DIKTAT_*)
"""

import sys
import threading
from pathlib import Path

import pytest

# Projekt-Root zum Python-Path hinzufügen
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from core.ports import AudioBlob  # noqa: E402


# =============================================================================
# Fakes für die Ports
# =============================================================================


class FakeRecorder:
    """Recorder ohne Mikrofon. Protokolliert Aufrufe in `calls`.

    gate: optionales Event, auf das stop_and_finalize() wartet
    (simuliert eine lange Finalisierung).
    """

    def __init__(
        self,
        audio: AudioBlob | None = None,
        start_error: Exception | None = None,
        stop_error: Exception | None = None,
        cancel_error: Exception | None = None,
        gate: threading.Event | None = None,
    ):
        self.audio = audio or AudioBlob(b"fLaC-test-audio", "audio/flac", 1.5)
        self.start_error = start_error
        self.stop_error = stop_error
        self.cancel_error = cancel_error
        self.gate = gate
        self.calls: list[str] = []
        self.max_duration: float | None = None
        self.on_progress = None
        self.on_deadline = None
        self.recording = False

    def start(self, max_duration, on_progress, on_deadline):
        self.calls.append("start")
        if self.start_error:
            raise self.start_error
        self.max_duration = max_duration
        self.on_progress = on_progress
        self.on_deadline = on_deadline
        self.recording = True

    def stop_and_finalize(self):
        self.calls.append("stop")
        self.recording = False
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.stop_error:
            raise self.stop_error
        return self.audio

    def cancel(self):
        self.calls.append("cancel")
        self.recording = False
        if self.cancel_error:
            raise self.cancel_error

    def is_recording(self):
        return self.recording


class FakeTranscriber:
    def __init__(self, text: str = "Hallo Welt", error: Exception | None = None):
        self.text = text
        self.error = error
        self.calls: list[tuple[AudioBlob, str]] = []

    def transcribe(self, audio, prompt):
        self.calls.append((audio, prompt))
        if self.error:
            raise self.error
        return self.text


class FakeOutput:
    def __init__(self, name: str = "fake", error: Exception | None = None):
        self.name = name
        self.error = error
        self.texts: list[str] = []

    def apply(self, text):
        if self.error:
            raise self.error
        self.texts.append(text)


class EventLog(list):
    """Sammelt DaemonEvents (als Listener registrierbar)."""

    def __call__(self, event):
        self.append(event)

    @property
    def types(self):
        return [event.type for event in self]


# =============================================================================
# Shared Fixtures
# =============================================================================


@pytest.fixture
def recorder():
    return FakeRecorder()


@pytest.fixture
def transcriber():
    return FakeTranscriber()


@pytest.fixture
def output():
    return FakeOutput()


@pytest.fixture
def events():
    return EventLog()


@pytest.fixture
def make_controller(recorder, transcriber, output, events):
    """
    Factory für DaemonController mit Fakes.

    Usage:
        controller = make_controller(max_duration=0.2)
    """
    from core.controller import DaemonConfig, DaemonController

    created = []

    def _create(
        recorder=recorder,
        transcriber=transcriber,
        outputs=None,
        max_duration: float = 60.0,
        prompt: str = "test-prompt",
        queue_size: int = 16,
    ):
        controller = DaemonController(
            recorder,
            transcriber,
            [output] if outputs is None else outputs,
            DaemonConfig(max_duration=max_duration, prompt=prompt, queue_size=queue_size),
        )
        controller.subscribe(events)
        created.append(controller)
        return controller

    yield _create

    for controller in created:
        controller.watchdog.disarm()
        controller.join_worker(timeout=5)


def drain(controller, timeout: float = 5.0) -> None:
    """Verarbeitet Queue-Elemente bis der ProcessingWorker fertig gemeldet hat."""
    import time

    deadline = time.monotonic() + timeout
    while controller.session.is_processing():
        if time.monotonic() > deadline:
            raise AssertionError("ProcessingWorker hat nicht rechtzeitig geantwortet")
        controller.process_next(timeout=0.1)


# =============================================================================
# Environment & Isolation Fixtures
# =============================================================================


@pytest.fixture
def mock_env(monkeypatch):
    """Setzt Test-API-Keys für isolierte Tests."""
    monkeypatch.setenv("OPENAI_API_KEY", "test-key-openai")
    monkeypatch.setenv("GROQ_API_KEY", "test-key-groq")
    monkeypatch.setenv("GEMINI_API_KEY", "test-key-gemini")


@pytest.fixture
def temp_paths(tmp_path):
    """Temporäre Lock- und Socket-Pfade (keine Konflikte mit laufenden Daemons)."""
    return {
        "pid_file": tmp_path / "diktat.pid",
        "socket": tmp_path / "diktat.sock",
    }


@pytest.fixture
def clean_env(monkeypatch):
    """Entfernt alle DIKTAT_* Umgebungsvariablen für saubere Tests.

    Mockt auch load_environment() um zu verhindern, dass .env-Dateien
    während der Tests geladen werden.
    """
    import os

    for key in list(os.environ.keys()):
        if key.startswith("DIKTAT_"):
            monkeypatch.delenv(key, raising=False)

    import diktat

    monkeypatch.setattr(diktat, "load_environment", lambda: None)
