"""Tastatureingabe: Transkript in das fokussierte Fenster tippen.

Linux: ydotool (Daemon nötig) → wtype (Wayland) → xdotool (X11)
Sonst: pynput Controller
"""

import logging
import os
import shutil
import subprocess
from pathlib import Path

from core.errors import OutputError

logger = logging.getLogger("diktat.platform.keystroke")

KEYSTROKE_TOOLS = ("ydotool", "wtype", "xdotool")

_TOOL_ARGS = {
    "ydotool": ["ydotool", "type", "--"],
    "wtype": ["wtype"],
    "xdotool": ["xdotool", "type", "--delay", "2", "--"],
}


def _ydotool_socket_exists() -> bool:
    candidates = []
    runtime_dir = os.getenv("XDG_RUNTIME_DIR")
    if runtime_dir:
        candidates.append(Path(runtime_dir) / ".ydotool_socket")
    candidates.append(Path("/tmp/.ydotool_socket"))
    return any(path.exists() for path in candidates)


def detect_keystroke_tool() -> str | None:
    """Findet das beste verfügbare Tool (ydotool → wtype → xdotool)."""
    if shutil.which("ydotool") and _ydotool_socket_exists():
        return "ydotool"
    for tool in ("wtype", "xdotool"):
        if shutil.which(tool):
            return tool
    return None


class CommandKeystroke:
    """Tippt Text über ydotool, wtype oder xdotool."""

    name = "keystroke"

    def __init__(self, tool: str) -> None:
        if tool not in _TOOL_ARGS:
            raise ValueError(f"Unbekanntes Keystroke-Tool: {tool}")
        self.tool = tool

    def apply(self, text: str) -> None:
        try:
            process = subprocess.run(
                [*_TOOL_ARGS[self.tool], text],
                stdin=subprocess.DEVNULL,
                capture_output=True,
                timeout=30,
            )
        except FileNotFoundError as e:
            raise OutputError(f"{self.tool} nicht gefunden") from e
        except subprocess.TimeoutExpired as e:
            raise OutputError(f"{self.tool} Timeout") from e
        if process.returncode != 0:
            raise OutputError(
                f"{self.tool} fehlgeschlagen: {process.stderr.decode(errors='replace').strip()}"
            )
        logger.debug(f"{self.tool}: {len(text)} Zeichen getippt")


class PynputKeystroke:
    """Tippt Text über pynput (macOS, Windows, X11)."""

    name = "keystroke"

    def __init__(self) -> None:
        from pynput.keyboard import Controller

        self._keyboard = Controller()

    def apply(self, text: str) -> None:
        try:
            self._keyboard.type(text)
        except Exception as e:
            raise OutputError(f"pynput Eingabe fehlgeschlagen: {e}") from e
        logger.debug(f"pynput: {len(text)} Zeichen getippt")


__all__ = [
    "CommandKeystroke",
    "PynputKeystroke",
    "KEYSTROKE_TOOLS",
    "detect_keystroke_tool",
]
