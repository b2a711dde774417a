"""Schnittstellen zwischen Daemon-Kern und Adaptern.

Der Kern kennt nur diese Protokolle. Audio, Provider, Clipboard,
Tastatur und Benachrichtigungen sind austauschbare Implementierungen.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable, Protocol, runtime_checkable

from core.commands import Command
from utils.state import DaemonState

ProgressCallback = Callable[[float, float], None]  # (elapsed_s, max_s)
DeadlineCallback = Callable[[], None]
SubmitCallback = Callable[[Command], bool]
StatusCallback = Callable[[], DaemonState]


@dataclass(frozen=True)
class AudioBlob:
    """Fertig kodierte Aufnahme."""

    data: bytes
    mime_type: str = "audio/flac"
    duration: float = 0.0

    @property
    def size(self) -> int:
        return len(self.data)

    def human_readable_size(self) -> str:
        size = self.size
        if size < 1024:
            return f"{size} B"
        if size < 1024 * 1024:
            return f"{size / 1024:.1f} KB"
        return f"{size / (1024 * 1024):.1f} MB"


@dataclass(frozen=True)
class RecordingHandle:
    """Existiert genau dann, wenn eine Aufnahme läuft."""

    generation: int
    started_at: float = field(default_factory=time.monotonic)

    def elapsed(self) -> float:
        return time.monotonic() - self.started_at


@runtime_checkable
class Recorder(Protocol):
    def start(
        self,
        max_duration: float,
        on_progress: ProgressCallback,
        on_deadline: DeadlineCallback,
    ) -> None:
        """Öffnet das Mikrofon. Raises RecordingError."""

    def stop_and_finalize(self) -> AudioBlob:
        """Beendet die Aufnahme und liefert kodiertes Audio. Raises RecordingError."""

    def cancel(self) -> None:
        """Verwirft die Aufnahme. Raises RecordingError."""

    def is_recording(self) -> bool:
        """True solange das Mikrofon offen ist."""


@runtime_checkable
class Transcriber(Protocol):
    def transcribe(self, audio: AudioBlob, prompt: str) -> str:
        """Raises TranscriptionError."""


@runtime_checkable
class OutputAction(Protocol):
    name: str

    def apply(self, text: str) -> None:
        """Raises OutputError."""


@runtime_checkable
class ControlChannel(Protocol):
    def start(self, submit: SubmitCallback, status: StatusCallback) -> None: ...

    def close(self) -> None: ...

    def describe(self) -> str: ...


__all__ = [
    "AudioBlob",
    "RecordingHandle",
    "Recorder",
    "Transcriber",
    "OutputAction",
    "ControlChannel",
    "ProgressCallback",
    "DeadlineCallback",
    "SubmitCallback",
    "StatusCallback",
]
