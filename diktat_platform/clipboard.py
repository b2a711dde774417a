"""Clipboard-Implementierungen.

Plattformspezifische Clipboard-Operationen mit einheitlichem Interface.
macOS: pbcopy via subprocess
Linux/Wayland: wl-copy
Sonst: pyperclip
"""

import logging
import os
import subprocess

from core.errors import OutputError

logger = logging.getLogger("diktat.platform.clipboard")


def _get_utf8_env() -> dict:
    """Erstellt Environment mit UTF-8 Locale für pbcopy.

    Ohne dies werden Umlaute (ü → √º) falsch kodiert, wenn keine
    Shell-Locale geerbt wurde.
    """
    env = os.environ.copy()
    env["LANG"] = "en_US.UTF-8"
    env["LC_ALL"] = "en_US.UTF-8"
    return env


class _ClipboardAction:
    """OutputAction-Adapter: apply() wirft OutputError statt False zu liefern."""

    name = "clipboard"

    def copy(self, text: str) -> bool:
        raise NotImplementedError

    def apply(self, text: str) -> None:
        if not self.copy(text):
            raise OutputError(f"Zwischenablage nicht gesetzt ({type(self).__name__})")


class _CommandClipboard(_ClipboardAction):
    """Clipboard über ein CLI-Tool, das den Text auf stdin erwartet."""

    command: list[str] = []
    env: dict | None = None

    def copy(self, text: str) -> bool:
        tool = self.command[0]
        try:
            process = subprocess.run(
                self.command,
                input=text.encode("utf-8"),
                timeout=2,
                capture_output=True,
                env=self.env,
            )
            if process.returncode != 0:
                logger.error(f"{tool} fehlgeschlagen: {process.stderr.decode(errors='replace')}")
                return False
            logger.debug(f"{tool}: {len(text)} Zeichen kopiert")
            return True
        except FileNotFoundError:
            logger.error(f"{tool} nicht gefunden")
            return False
        except subprocess.TimeoutExpired:
            logger.error(f"{tool} Timeout")
            return False


class MacOSClipboard(_CommandClipboard):
    """macOS Clipboard via pbcopy."""

    command = ["pbcopy"]

    def __init__(self) -> None:
        self.env = _get_utf8_env()


class WaylandClipboard(_CommandClipboard):
    """Wayland Clipboard via wl-copy (wl-clipboard)."""

    command = ["wl-copy"]


class PyperclipClipboard(_ClipboardAction):
    """Cross-platform Clipboard via pyperclip (Windows, X11)."""

    def __init__(self) -> None:
        import pyperclip

        self._pyperclip = pyperclip

    def copy(self, text: str) -> bool:
        """Kopiert Text in die Zwischenablage."""
        try:
            self._pyperclip.copy(text)
            return True
        except self._pyperclip.PyperclipException as e:
            logger.error(f"Clipboard-Fehler: {e}")
            return False


__all__ = ["MacOSClipboard", "WaylandClipboard", "PyperclipClipboard"]
