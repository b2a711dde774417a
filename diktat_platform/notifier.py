"""Desktop-Benachrichtigungen.

Linux: notify-send (libnotify)
macOS: osascript "display notification"
"""

import logging
import subprocess

from core.errors import OutputError
from utils.timing import log_preview

logger = logging.getLogger("diktat.platform.notifier")

APP_NAME = "Diktat"

# Freedesktop Icon-Namen
ICONS = {
    "info": "dialog-information",
    "success": "dialog-ok",
    "warning": "dialog-warning",
    "error": "dialog-error",
    "recording": "audio-input-microphone",
    "processing": "preferences-system",
}


class _Notifier:
    """Gemeinsame Basis: notify() für Lifecycle, apply() für Transkripte."""

    name = "notification"

    def notify(self, title: str, message: str, icon: str = "info") -> None:
        raise NotImplementedError

    def apply(self, text: str) -> None:
        self.notify("Transkription fertig", log_preview(text, 200), "success")

    def _run(self, command: list[str]) -> None:
        tool = command[0]
        try:
            process = subprocess.run(
                command,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                timeout=5,
            )
        except FileNotFoundError as e:
            raise OutputError(f"{tool} nicht gefunden") from e
        except subprocess.TimeoutExpired as e:
            raise OutputError(f"{tool} Timeout") from e
        if process.returncode != 0:
            raise OutputError(f"{tool} beendet mit Status {process.returncode}")


class NotifySendNotifier(_Notifier):
    """Linux: notify-send."""

    def notify(self, title: str, message: str, icon: str = "info") -> None:
        self._run(
            [
                "notify-send",
                "--app-name",
                APP_NAME,
                "--icon",
                ICONS.get(icon, ICONS["info"]),
                title,
                message,
            ]
        )


def _applescript_string(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


class MacOSNotifier(_Notifier):
    """macOS: Notification Center via osascript."""

    def notify(self, title: str, message: str, icon: str = "info") -> None:
        script = (
            f"display notification {_applescript_string(message)} "
            f"with title {_applescript_string(APP_NAME)} "
            f"subtitle {_applescript_string(title)}"
        )
        self._run(["osascript", "-e", script])


__all__ = ["NotifySendNotifier", "MacOSNotifier", "ICONS", "APP_NAME"]
