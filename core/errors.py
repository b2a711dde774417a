"""Fehler-Taxonomie des Daemons.

Nur LockConflict beim Start und ein gewollter Shutdown beenden den Prozess.
Alle anderen Fehler werden als Events gemeldet; der Daemon läuft weiter.
"""


class DiktatError(Exception):
    """Basisklasse für alle Diktat-Fehler."""


class InvalidTransition(DiktatError):
    """Zustandsübergang ist im aktuellen Zustand nicht erlaubt."""

    def __init__(self, from_state, action: str):
        self.from_state = from_state
        self.action = action
        state = getattr(from_state, "value", from_state)
        super().__init__(f"Ungültiger Übergang: {action} im Zustand {state}")


class RecordingError(DiktatError):
    """Aufnahme konnte nicht gestartet, gestoppt oder abgebrochen werden."""


class TranscriptionError(DiktatError):
    """Transkription fehlgeschlagen oder leer."""


class LockConflict(DiktatError):
    """Eine andere lebende Daemon-Instanz hält die Lock-Datei."""

    def __init__(self, pid: int):
        self.pid = pid
        super().__init__(f"Daemon läuft bereits (PID {pid})")


class OutputError(DiktatError):
    """Clipboard, Tastatureingabe oder Benachrichtigung fehlgeschlagen."""


class UnknownCommand(DiktatError):
    """Steuerbefehl nicht erkannt."""

    def __init__(self, raw: str):
        self.raw = raw
        super().__init__(f"Unbekannter Befehl: {raw!r}")


__all__ = [
    "DiktatError",
    "InvalidTransition",
    "RecordingError",
    "TranscriptionError",
    "LockConflict",
    "OutputError",
    "UnknownCommand",
]
