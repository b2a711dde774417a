"""Prozess-Kontrolle für den Daemon.

Liveness-Probe für den Single-Instance-Guard und Signal-Fallback der CLI.
POSIX: os.kill(pid, 0) bzw. SIGUSR1/SIGUSR2/SIGTERM
Windows: psutil (kein SIGUSR1, Steuerung nur über Socket)
"""

import logging
import os
import signal
import sys

from config import CANCEL_SIGNAL, TOGGLE_SIGNAL
from core.commands import Command

logger = logging.getLogger("diktat.platform.daemon")


class PosixProcessControl:
    """POSIX Prozess-Kontrolle via Signale."""

    SIGNALS = {
        Command.TOGGLE: TOGGLE_SIGNAL,
        Command.CANCEL: CANCEL_SIGNAL,
        Command.SHUTDOWN: "SIGTERM",
    }

    def is_alive(self, pid: int) -> bool:
        """Prüft ob Prozess läuft via Signal 0."""
        try:
            os.kill(pid, 0)  # Signal 0 = Existenz-Check
            return True
        except ProcessLookupError:
            return False
        except PermissionError:
            # Prozess existiert, gehört aber einem anderen User
            return True
        except OSError:
            return False

    def send(self, pid: int, command: Command) -> bool:
        """Sendet den Befehl als Signal.

        Returns:
            True wenn das Signal zugestellt wurde
        """
        sig = getattr(signal, self.SIGNALS[command])
        try:
            os.kill(pid, sig)
            logger.debug(f"{self.SIGNALS[command]} an PID {pid} gesendet")
            return True
        except ProcessLookupError:
            logger.debug(f"Prozess {pid} existiert nicht mehr")
            return False
        except PermissionError:
            logger.error(f"Keine Berechtigung für PID {pid}")
            return False


class WindowsProcessControl:
    """Windows Prozess-Kontrolle via psutil.

    Windows hat kein SIGUSR1, Toggle/Cancel laufen nur über den Socket.
    """

    def is_alive(self, pid: int) -> bool:
        import psutil

        return psutil.pid_exists(pid)

    def send(self, pid: int, command: Command) -> bool:
        if command is not Command.SHUTDOWN:
            logger.error(f"'{command.value}' ohne Socket auf Windows nicht möglich")
            return False

        import psutil

        try:
            psutil.Process(pid).terminate()
            return True
        except psutil.NoSuchProcess:
            return False
        except psutil.AccessDenied:
            logger.error(f"Keine Berechtigung für PID {pid}")
            return False


def get_process_control():
    """Gibt die passende Prozess-Kontrolle für die aktuelle Plattform zurück."""
    if sys.platform == "win32":
        return WindowsProcessControl()
    return PosixProcessControl()


__all__ = ["PosixProcessControl", "WindowsProcessControl", "get_process_control"]
