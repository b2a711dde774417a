"""Terminal-Ausgabe für Daemon-Events.

Status auf stderr, Transkripte auf stdout. Auf interaktiven Terminals
zeigt eine Progress-Zeile die laufende Aufnahme.
"""

import logging
import sys

from core.errors import OutputError
from utils.state import DaemonEvent, EventType
from utils.timing import format_progress, format_seconds

logger = logging.getLogger("diktat.presenter")


class Presenter:
    """Event-Listener für DaemonController.subscribe()."""

    def __init__(
        self,
        out=None,
        err=None,
        sound_player=None,
        notifier=None,
        interactive: bool | None = None,
    ) -> None:
        self._out = out
        self._err = err
        self.sound_player = sound_player
        self.notifier = notifier
        self._interactive = interactive
        self._progress_visible = False

    @property
    def out(self):
        return self._out or sys.stdout

    @property
    def err(self):
        return self._err or sys.stderr

    @property
    def interactive(self) -> bool:
        if self._interactive is None:
            isatty = getattr(self.err, "isatty", None)
            return bool(isatty and isatty())
        return self._interactive

    # -------------------------------------------------------------------------
    # Ausgabe-Primitiven
    # -------------------------------------------------------------------------

    def status(self, message: str) -> None:
        self._clear_progress()
        print(message, file=self.err, flush=True)

    def output(self, text: str) -> None:
        self._clear_progress()
        print(text, file=self.out, flush=True)

    def progress(self, elapsed: float, total: float) -> None:
        if not self.interactive:
            return
        self.err.write(f"\r🔴 {format_progress(elapsed, total)}")
        self.err.flush()
        self._progress_visible = True

    def _clear_progress(self) -> None:
        if self._progress_visible:
            self.err.write("\r\033[K")
            self.err.flush()
            self._progress_visible = False

    def _play(self, name: str) -> None:
        if self.sound_player is None:
            return
        try:
            self.sound_player.play(name)
        except Exception as e:
            logger.debug(f"Sound '{name}' fehlgeschlagen: {e}")

    def _notify(self, title: str, message: str, icon: str) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.notify(title, message, icon)
        except OutputError as e:
            logger.debug(f"Benachrichtigung fehlgeschlagen: {e}")

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def __call__(self, event: DaemonEvent) -> None:
        handler = self._HANDLERS.get(event.type)
        if handler is not None:
            handler(self, event)

    def _on_started(self, event: DaemonEvent) -> None:
        self._play("start")
        limit = f" (max {format_seconds(event.payload)})" if event.payload else ""
        self.status(f"🎤 Aufnahme läuft...{limit}")
        self._notify("Aufnahme gestartet", "Erneut umschalten zum Beenden", "recording")

    def _on_progress(self, event: DaemonEvent) -> None:
        elapsed, total = event.payload
        self.progress(elapsed, total)

    def _on_stopped(self, event: DaemonEvent) -> None:
        self._play("stop")
        self.status("⏳ Transkribiere...")

    def _on_cancelled(self, event: DaemonEvent) -> None:
        self._play("cancel")
        self.status("🚫 Aufnahme abgebrochen")
        self._notify("Aufnahme abgebrochen", "Audio wurde verworfen", "warning")

    def _on_complete(self, event: DaemonEvent) -> None:
        self.output(event.payload)
        self.status("✅ Fertig")

    def _on_warning(self, event: DaemonEvent) -> None:
        self.status(f"⚠️  {event.payload}")

    def _on_error(self, event: DaemonEvent) -> None:
        self._play("error")
        self.status(f"❌ {event.payload}")
        self._notify("Fehler", str(event.payload), "error")

    def _on_shutdown(self, event: DaemonEvent) -> None:
        self.status("👋 Daemon beendet")

    _HANDLERS = {
        EventType.RECORDING_STARTED: _on_started,
        EventType.RECORDING_PROGRESS: _on_progress,
        EventType.RECORDING_STOPPED: _on_stopped,
        EventType.RECORDING_CANCELLED: _on_cancelled,
        EventType.TRANSCRIPTION_COMPLETE: _on_complete,
        EventType.WARNING: _on_warning,
        EventType.ERROR: _on_error,
        EventType.SHUTDOWN: _on_shutdown,
    }


__all__ = ["Presenter"]
