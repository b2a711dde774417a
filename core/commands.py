"""Befehlsvokabular des Daemons."""

from enum import Enum

from .errors import UnknownCommand


class Command(str, Enum):
    TOGGLE = "toggle"
    CANCEL = "cancel"
    SHUTDOWN = "shutdown"


def parse_command(raw: str) -> Command:
    """Dekodiert eine Befehlszeile (case-insensitive, Whitespace egal).

    Raises:
        UnknownCommand: Für alles außerhalb des Vokabulars
    """
    token = (raw or "").strip().lower()
    try:
        return Command(token)
    except ValueError:
        raise UnknownCommand(raw) from None


__all__ = ["Command", "parse_command"]
