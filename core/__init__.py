"""Daemon-Kern: Zustandsmaschine, Befehle, Watchdog und Controller.

Usage:
    from core import DaemonController, DaemonConfig, Command

    controller = DaemonController(recorder, transcriber, outputs)
    controller.submit(Command.TOGGLE)
    controller.run()
"""

from .commands import Command, parse_command
from .controller import DaemonConfig, DaemonController
from .errors import (
    DiktatError,
    InvalidTransition,
    LockConflict,
    OutputError,
    RecordingError,
    TranscriptionError,
    UnknownCommand,
)
from .session import SessionState
from .watchdog import Watchdog

__all__ = [
    "Command",
    "parse_command",
    "DaemonConfig",
    "DaemonController",
    "SessionState",
    "Watchdog",
    "DiktatError",
    "InvalidTransition",
    "LockConflict",
    "OutputError",
    "RecordingError",
    "TranscriptionError",
    "UnknownCommand",
]
