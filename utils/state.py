from enum import Enum, auto
from dataclasses import dataclass
from typing import Any


class DaemonState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    PROCESSING = "processing"  # Stop + Transkription laufen im Worker


class EventType(Enum):
    RECORDING_STARTED = auto()
    RECORDING_PROGRESS = auto()  # payload: (elapsed_s, max_s)
    RECORDING_STOPPED = auto()
    RECORDING_CANCELLED = auto()
    TRANSCRIPTION_COMPLETE = auto()  # payload: Transkript
    WARNING = auto()  # payload: Exception (z.B. InvalidTransition)
    ERROR = auto()  # payload: RecordingError / TranscriptionError
    SHUTDOWN = auto()


@dataclass(frozen=True)
class DaemonEvent:
    type: EventType
    state: DaemonState  # Zustand nach dem Event
    generation: int = 0
    payload: Any = None
