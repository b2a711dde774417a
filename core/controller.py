"""DaemonController: serialisiert Steuerbefehle und treibt die Sitzung.

Threading-Modell:
- ControlLoop-Thread: einziger Consumer der Queue (run / process_next)
- Control-Channels (Signal-Handler, Socket-Threads): nur submit()
- ProcessingWorker-Thread: stop_and_finalize → transcribe → Outputs,
  meldet das Ergebnis als _ProcessingFinished zurück in die Queue
- Watchdog-Timer / Recorder-Progress: posten _Deadline / _Progress

Alle Zustandsänderungen und Events passieren im Consumer-Thread.
"""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Callable, Iterable

from config import COMMAND_QUEUE_SIZE, DEFAULT_MAX_DURATION, LOOP_POLL_INTERVAL
from utils.logging import get_session_id
from utils.state import DaemonEvent, DaemonState, EventType
from utils.timing import log_preview, timed_operation

from .commands import Command
from .errors import InvalidTransition, RecordingError, TranscriptionError
from .ports import OutputAction, Recorder, RecordingHandle, Transcriber
from .session import SessionState
from .watchdog import Watchdog

logger = logging.getLogger("diktat.controller")

EventListener = Callable[[DaemonEvent], None]


@dataclass
class DaemonConfig:
    max_duration: float = DEFAULT_MAX_DURATION
    prompt: str = ""
    queue_size: int = COMMAND_QUEUE_SIZE


# =============================================================================
# Interne Nachrichten (nur Controller → Controller)
# =============================================================================


@dataclass(frozen=True)
class _Deadline:
    generation: int


@dataclass(frozen=True)
class _Progress:
    generation: int
    elapsed: float
    total: float


@dataclass(frozen=True)
class _ProcessingFinished:
    generation: int
    text: str | None = None
    error: Exception | None = None


# =============================================================================
# Controller
# =============================================================================


class DaemonController:
    """Einziger Besitzer von SessionState, Watchdog und RecordingHandle."""

    def __init__(
        self,
        recorder: Recorder,
        transcriber: Transcriber,
        outputs: Iterable[OutputAction] = (),
        config: DaemonConfig | None = None,
    ) -> None:
        self.recorder = recorder
        self.transcriber = transcriber
        self.outputs: list[OutputAction] = list(outputs)
        self.config = config or DaemonConfig()

        self.session = SessionState()
        self.handle: RecordingHandle | None = None
        self.watchdog = Watchdog(self._on_watchdog_expired)

        self._queue: queue.Queue = queue.Queue(maxsize=self.config.queue_size)
        self._listeners: list[EventListener] = []
        self._listeners_lock = threading.Lock()
        self._worker: threading.Thread | None = None
        self._shutdown_requested = False
        self._stopped = threading.Event()

    # -------------------------------------------------------------------------
    # Öffentliche API
    # -------------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return not self._stopped.is_set()

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown_requested

    def status(self) -> DaemonState:
        """Read-only Abfrage, aus beliebigem Thread."""
        return self.session.state

    def subscribe(self, listener: EventListener) -> Callable[[], None]:
        """Registriert einen Event-Listener. Gibt eine Abmelde-Funktion zurück."""
        with self._listeners_lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._listeners_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def submit(self, command: Command) -> bool:
        """Nicht-blockierendes Einreihen; sicher aus Signal-Handlern.

        Bei voller Queue wird der Befehl verworfen (False).
        """
        try:
            self._queue.put_nowait(command)
            return True
        except queue.Full:
            logger.warning(f"[{get_session_id()}] Queue voll, Befehl verworfen: {command.value}")
            return False

    def process_next(self, timeout: float | None = None) -> bool:
        """Verarbeitet genau ein Element der Queue.

        Returns:
            False wenn innerhalb von timeout nichts ankam
        """
        try:
            item = self._queue.get(timeout=timeout)
        except queue.Empty:
            return False

        try:
            if isinstance(item, Command):
                self.dispatch(item)
            elif isinstance(item, _ProcessingFinished):
                self._finish(item)
            elif isinstance(item, _Deadline):
                self._handle_deadline(item)
            elif isinstance(item, _Progress):
                self._handle_progress(item)
            else:
                logger.warning(f"[{get_session_id()}] Unbekanntes Queue-Element: {item!r}")
        except Exception as e:
            logger.exception(f"[{get_session_id()}] Unerwarteter Fehler im Control-Loop: {e}")
        finally:
            self._queue.task_done()
        return True

    def run(self, poll_interval: float = LOOP_POLL_INTERVAL) -> None:
        """Consumer-Loop bis der Shutdown abgeschlossen ist."""
        logger.info(f"[{get_session_id()}] Control-Loop gestartet")
        while not self._stopped.is_set():
            self.process_next(timeout=poll_interval)
        logger.info(f"[{get_session_id()}] Control-Loop beendet")

    def dispatch(self, command: Command) -> None:
        """Wendet einen Befehl synchron an. Nur vom Consumer (oder Tests) aufrufen."""
        logger.debug(
            f"[{get_session_id()}] Befehl: {command.value} (Zustand: {self.session.state.value})"
        )
        try:
            if command is Command.TOGGLE:
                self._toggle()
            elif command is Command.CANCEL:
                self._cancel()
            elif command is Command.SHUTDOWN:
                self._shutdown()
        except Exception as e:
            logger.exception(f"[{get_session_id()}] Befehl {command.value} fehlgeschlagen: {e}")
            self._emit(EventType.ERROR, e)

    def join_worker(self, timeout: float | None = None) -> bool:
        """Wartet auf den ProcessingWorker. True wenn keiner (mehr) läuft."""
        worker = self._worker
        if worker is None:
            return True
        worker.join(timeout=timeout)
        return not worker.is_alive()

    # -------------------------------------------------------------------------
    # Befehle
    # -------------------------------------------------------------------------

    def _toggle(self) -> None:
        if self.session.is_recording():
            self._stop()
            return
        try:
            generation = self.session.start_recording()
        except InvalidTransition as e:
            logger.warning(f"[{get_session_id()}] Toggle ignoriert, Transkription läuft noch")
            self._emit(EventType.WARNING, e)
            return
        self._start(generation)

    def _start(self, generation: int) -> None:
        max_duration = self.config.max_duration
        try:
            self.recorder.start(
                max_duration,
                self._progress_callback(generation),
                self._deadline_callback(generation),
            )
        except Exception as e:
            self.session.cancel_recording()
            error = e if isinstance(e, RecordingError) else RecordingError(str(e))
            logger.error(f"[{get_session_id()}] Aufnahme-Start fehlgeschlagen: {e}")
            self._emit(EventType.ERROR, error)
            return

        self.handle = RecordingHandle(generation)
        self.watchdog.arm(generation, max_duration)
        logger.info(
            f"[{get_session_id()}] Aufnahme gestartet (Generation {generation}, max {max_duration:.0f}s)"
        )
        self._emit(EventType.RECORDING_STARTED, max_duration)

    def _stop(self) -> None:
        self.session.stop_recording()
        self.watchdog.disarm()
        handle = self.handle
        self.handle = None
        generation = handle.generation if handle else self.session.generation
        elapsed = handle.elapsed() if handle else 0.0

        logger.info(f"[{get_session_id()}] Aufnahme gestoppt nach {elapsed:.1f}s")
        self._emit(EventType.RECORDING_STOPPED, elapsed)

        self._worker = threading.Thread(
            target=self._process_recording,
            args=(generation,),
            daemon=True,
            name="ProcessingWorker",
        )
        self._worker.start()

    def _cancel(self) -> None:
        if not self.session.is_recording():
            logger.warning(
                f"[{get_session_id()}] Abbruch ignoriert (Zustand: {self.session.state.value})"
            )
            self._emit(EventType.WARNING, InvalidTransition(self.session.state, "cancel"))
            return

        self.watchdog.disarm()
        try:
            self.recorder.cancel()
        except Exception as e:
            error = e if isinstance(e, RecordingError) else RecordingError(str(e))
            logger.error(f"[{get_session_id()}] Abbruch der Aufnahme fehlgeschlagen: {e}")
            self._emit(EventType.ERROR, error)

        self.session.cancel_recording()
        self.handle = None
        logger.info(f"[{get_session_id()}] Aufnahme abgebrochen")
        self._emit(EventType.RECORDING_CANCELLED)

    def _shutdown(self) -> None:
        self._shutdown_requested = True
        if self.session.is_recording():
            self._cancel()
        if self.session.is_processing():
            logger.info(f"[{get_session_id()}] Shutdown nach Abschluss der Transkription")
            return
        self._complete_shutdown()

    def _complete_shutdown(self) -> None:
        self.watchdog.disarm()
        self._stopped.set()
        logger.info(f"[{get_session_id()}] Shutdown")
        self._emit(EventType.SHUTDOWN)

    # -------------------------------------------------------------------------
    # Interne Nachrichten
    # -------------------------------------------------------------------------

    def _handle_deadline(self, message: _Deadline) -> None:
        if message.generation != self.session.generation or not self.session.is_recording():
            logger.debug(f"[{get_session_id()}] Veraltete Deadline verworfen: {message.generation}")
            return
        logger.info(f"[{get_session_id()}] Maximale Aufnahmedauer erreicht")
        self._stop()

    def _handle_progress(self, message: _Progress) -> None:
        if message.generation != self.session.generation or not self.session.is_recording():
            return
        self._emit(EventType.RECORDING_PROGRESS, (message.elapsed, message.total))

    def _finish(self, message: _ProcessingFinished) -> None:
        if message.generation != self.session.generation or not self.session.is_processing():
            logger.warning(
                f"[{get_session_id()}] Veraltetes Ergebnis verworfen: Generation {message.generation}"
            )
            return

        self.session.complete_processing()
        self._worker = None
        if message.error is not None:
            self._emit(EventType.ERROR, message.error)
        else:
            self._emit(EventType.TRANSCRIPTION_COMPLETE, message.text)

        if self._shutdown_requested:
            self._complete_shutdown()

    def _post(self, message) -> None:
        # Blockierend: Ergebnisse und Deadlines dürfen nicht verloren gehen
        self._queue.put(message)

    def _on_watchdog_expired(self, generation: int) -> None:
        self._post(_Deadline(generation))

    def _deadline_callback(self, generation: int) -> Callable[[], None]:
        def on_deadline() -> None:
            self._post(_Deadline(generation))

        return on_deadline

    def _progress_callback(self, generation: int) -> Callable[[float, float], None]:
        def on_progress(elapsed: float, total: float) -> None:
            # Progress ist verlustbehaftet: bei voller Queue überspringen
            try:
                self._queue.put_nowait(_Progress(generation, elapsed, total))
            except queue.Full:
                pass

        return on_progress

    # -------------------------------------------------------------------------
    # ProcessingWorker
    # -------------------------------------------------------------------------

    def _process_recording(self, generation: int) -> None:
        """Läuft im ProcessingWorker-Thread."""
        text: str | None = None
        error: Exception | None = None
        try:
            text = self._transcribe_recording()
            self._apply_outputs(text)
        except (RecordingError, TranscriptionError) as e:
            logger.error(f"[{get_session_id()}] Verarbeitung fehlgeschlagen: {e}")
            error = e
        except Exception as e:
            logger.exception(f"[{get_session_id()}] Unerwarteter Fehler bei der Transkription: {e}")
            error = TranscriptionError(str(e))
        finally:
            self._post(_ProcessingFinished(generation, None if error else text, error))

    def _transcribe_recording(self) -> str:
        try:
            audio = self.recorder.stop_and_finalize()
        except RecordingError:
            raise
        except Exception as e:
            raise RecordingError(str(e)) from e

        logger.info(
            f"[{get_session_id()}] Audio: {audio.duration:.1f}s, {audio.human_readable_size()}"
        )
        try:
            with timed_operation("Transkription", logger=logger):
                text = self.transcriber.transcribe(audio, self.config.prompt)
        except TranscriptionError:
            raise
        except Exception as e:
            raise TranscriptionError(str(e)) from e

        text = (text or "").strip()
        if not text:
            raise TranscriptionError("Leeres Transkript")
        logger.info(f"[{get_session_id()}] Transkript: {log_preview(text)}")
        return text

    def _apply_outputs(self, text: str) -> None:
        for action in self.outputs:
            try:
                action.apply(text)
            except Exception as e:
                logger.warning(f"[{get_session_id()}] Ausgabe '{action.name}' fehlgeschlagen: {e}")

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def _emit(self, event_type: EventType, payload=None) -> None:
        event = DaemonEvent(
            type=event_type,
            state=self.session.state,
            generation=self.session.generation,
            payload=payload,
        )
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                logger.warning(f"[{get_session_id()}] Event-Listener fehlgeschlagen: {e}")


__all__ = ["DaemonController", "DaemonConfig", "EventListener"]
