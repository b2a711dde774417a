#!/usr/bin/env python3
"""
diktat_daemon – Hintergrund-Daemon für Diktat.

Verdrahtet Single-Instance-Guard, Recorder, Provider, Ausgaben,
Control-Channel und Presenter um einen DaemonController.

Threading:
- Main-Thread: Signal-Handler + join() auf den Control-Loop
- ControlLoop-Thread: DaemonController.run()
- ProcessingWorker-Thread: Stop + Transkription (vom Controller gestartet)
- ControlSocket-Thread(s): Socket-Befehle

Usage:
    diktat daemon
    diktat daemon --mode groq --domain dev --max-duration 2m
"""

import logging
import sys
import threading
from dataclasses import dataclass
from pathlib import Path

from cli.presenter import Presenter
from config import (
    DEFAULT_DOMAIN,
    DEFAULT_MAX_DURATION,
    DEFAULT_MODE,
    LOOP_POLL_INTERVAL,
    PID_FILE,
    WORKER_JOIN_TIMEOUT,
)
from core.commands import Command
from core.controller import DaemonConfig, DaemonController
from core.errors import LockConflict
from prompts import build_system_prompt
from utils.daemon import InstanceGuard
from utils.logging import error, get_session_id, log
from utils.state import EventType

logger = logging.getLogger("diktat")

# Nach diesen Events ist eine One-Shot-Aufnahme abgeschlossen
_ONE_SHOT_FINAL_EVENTS = (
    EventType.TRANSCRIPTION_COMPLETE,
    EventType.RECORDING_CANCELLED,
    EventType.ERROR,
)


@dataclass
class DaemonSettings:
    """Effektive Daemon-Konfiguration (CLI > ENV > .env > Default)."""

    mode: str = DEFAULT_MODE
    model: str | None = None
    language: str | None = None
    domain: str = DEFAULT_DOMAIN
    max_duration: float = DEFAULT_MAX_DURATION
    clipboard: bool = True
    keystroke: bool = False
    keystroke_tool: str | None = None
    notify: bool = False
    sound: bool = True
    control: str = "auto"
    trim_silence: bool = True
    voice_commands: bool = False
    pid_file: Path = PID_FILE
    socket_path: Path | None = None


class DiktatDaemon:
    """Besitzt genau einen DaemonController; keine globale Instanz.

    Alle Kollaborateure sind injizierbar (Tests), sonst werden sie
    über die Plattform- und Provider-Factories erzeugt.
    """

    def __init__(
        self,
        settings: DaemonSettings | None = None,
        *,
        recorder=None,
        transcriber=None,
        outputs=None,
        channel=None,
        guard: InstanceGuard | None = None,
        presenter=None,
    ) -> None:
        self.settings = settings or DaemonSettings()
        self.recorder = recorder
        self.transcriber = transcriber
        self.outputs = outputs
        self.channel = channel
        self.guard = guard or InstanceGuard(self.settings.pid_file)
        self.presenter = presenter
        self.controller: DaemonController | None = None
        self._notifier = None

    # -------------------------------------------------------------------------
    # Aufbau
    # -------------------------------------------------------------------------

    def _build_recorder(self):
        from audio import DaemonRecorder

        return DaemonRecorder(trim=self.settings.trim_silence)

    def _build_transcriber(self):
        from providers import get_transcriber

        transcriber = get_transcriber(
            self.settings.mode, self.settings.model, self.settings.language
        )
        # API-Key früh prüfen statt erst bei der ersten Aufnahme
        transcriber.validate()
        return transcriber

    def _get_notifier(self):
        if self._notifier is None and self.settings.notify:
            from diktat_platform import get_notifier

            try:
                self._notifier = get_notifier()
            except NotImplementedError as e:
                logger.warning(f"[{get_session_id()}] Benachrichtigungen deaktiviert: {e}")
        return self._notifier

    def _build_outputs(self) -> list:
        from diktat_platform import get_clipboard, get_keystroke

        outputs = []
        if self.settings.clipboard:
            try:
                outputs.append(get_clipboard())
            except ImportError as e:
                logger.warning(f"[{get_session_id()}] Zwischenablage deaktiviert: {e}")
        if self.settings.keystroke:
            try:
                outputs.append(get_keystroke(self.settings.keystroke_tool))
            except (RuntimeError, ImportError, ValueError) as e:
                logger.warning(f"[{get_session_id()}] Tastatureingabe deaktiviert: {e}")
        notifier = self._get_notifier()
        if notifier is not None:
            outputs.append(notifier)
        return outputs

    def _build_channel(self):
        from diktat_platform import get_control_channel
        from utils.ipc import get_ipc_address

        return get_control_channel(
            self.settings.control, get_ipc_address(self.settings.socket_path)
        )

    def _build_presenter(self) -> Presenter:
        sound_player = None
        if self.settings.sound:
            from diktat_platform import get_sound_player

            try:
                sound_player = get_sound_player()
            except ImportError as e:
                logger.warning(f"[{get_session_id()}] Sounds deaktiviert: {e}")
        return Presenter(sound_player=sound_player, notifier=self._get_notifier())

    def build(self, with_channel: bool = True) -> DaemonController:
        """Erzeugt fehlende Kollaborateure und den Controller.

        Ohne with_channel (One-Shot-Aufnahme) wird kein Steuerkanal gebaut.

        Raises:
            ValueError: Bei ungültiger Konfiguration (Provider, Domäne, API-Key)
        """
        prompt = build_system_prompt(self.settings.domain, self.settings.voice_commands)
        if self.transcriber is None:
            self.transcriber = self._build_transcriber()
        if self.recorder is None:
            self.recorder = self._build_recorder()
        if self.outputs is None:
            self.outputs = self._build_outputs()
        if self.channel is None and with_channel:
            self.channel = self._build_channel()
        if self.presenter is None:
            self.presenter = self._build_presenter()

        self.controller = DaemonController(
            self.recorder,
            self.transcriber,
            self.outputs,
            DaemonConfig(max_duration=self.settings.max_duration, prompt=prompt),
        )
        self.controller.subscribe(self.presenter)
        return self.controller

    # -------------------------------------------------------------------------
    # Lauf
    # -------------------------------------------------------------------------

    def run(self) -> int:
        """Läuft bis zum Shutdown. Muss im Main-Thread aufgerufen werden.

        Raises:
            LockConflict: Wenn bereits ein Daemon läuft
        """
        with self.guard:
            controller = self.controller or self.build()
            self.channel.start(controller.submit, controller.status)

            loop_thread = threading.Thread(
                target=controller.run, daemon=True, name="ControlLoop"
            )
            loop_thread.start()

            outputs = ", ".join(action.name for action in self.outputs) or "nur stdout"
            log(
                f"🎙️  Diktat bereit ({self.settings.mode}, {self.settings.domain}) "
                f"via {self.channel.describe()}"
            )
            logger.info(
                f"[{get_session_id()}] Daemon gestartet: mode={self.settings.mode}, "
                f"domain={self.settings.domain}, max={self.settings.max_duration:.0f}s, "
                f"outputs={outputs}"
            )

            try:
                # join() mit Timeout: Signal-Handler bleiben im Main-Thread zustellbar
                while loop_thread.is_alive():
                    loop_thread.join(LOOP_POLL_INTERVAL)
            finally:
                self.channel.close()
                if not controller.join_worker(WORKER_JOIN_TIMEOUT):
                    logger.warning(f"[{get_session_id()}] ProcessingWorker noch aktiv beim Beenden")
                logger.info(f"[{get_session_id()}] Daemon beendet")
        return 0

    def record_once(self) -> str | None:
        """Nimmt einmal bis max_duration auf und transkribiert.

        Strg+C beendet die Aufnahme vorzeitig, das Audio wird trotzdem
        transkribiert. Liefert das Transkript oder None bei Fehler/Abbruch.
        """
        controller = self.controller or self.build(with_channel=False)
        result: dict[str, str] = {}

        def on_event(event) -> None:
            if event.type is EventType.TRANSCRIPTION_COMPLETE:
                result["text"] = event.payload
            if event.type in _ONE_SHOT_FINAL_EVENTS:
                controller.submit(Command.SHUTDOWN)

        controller.subscribe(on_event)
        controller.submit(Command.TOGGLE)
        loop_thread = threading.Thread(target=controller.run, daemon=True, name="ControlLoop")
        loop_thread.start()

        stop_requested = False
        while loop_thread.is_alive():
            try:
                loop_thread.join(LOOP_POLL_INTERVAL)
            except KeyboardInterrupt:
                if stop_requested:
                    raise
                stop_requested = True
                logger.info(f"[{get_session_id()}] Aufnahme vorzeitig beendet (Strg+C)")
                controller.submit(Command.TOGGLE)

        if not controller.join_worker(WORKER_JOIN_TIMEOUT):
            logger.warning(f"[{get_session_id()}] ProcessingWorker noch aktiv beim Beenden")
        return result.get("text")


def _install_excepthook() -> None:
    """Globaler Exception Handler für Crashes."""

    def handle_exception(exc_type, exc_value, exc_traceback):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return
        logger.critical(
            f"Uncaught exception: {exc_type.__name__}: {exc_value}",
            exc_info=(exc_type, exc_value, exc_traceback),
        )

    sys.excepthook = handle_exception


def run_daemon(settings: DaemonSettings, **overrides) -> int:
    """Startet den Daemon und liefert den Exit-Code.

    Exit 1 bei laufender Instanz oder ungültiger Konfiguration.
    """
    _install_excepthook()
    daemon = DiktatDaemon(settings, **overrides)
    try:
        return daemon.run()
    except LockConflict as e:
        error(f"Daemon läuft bereits (PID {e.pid})")
        logger.error(f"[{get_session_id()}] {e}")
        return 1
    except ValueError as e:
        error(str(e))
        logger.error(f"[{get_session_id()}] Konfigurationsfehler: {e}")
        return 1
    except OSError as e:
        error(f"Daemon-Start fehlgeschlagen: {e}")
        logger.exception(f"[{get_session_id()}] Daemon-Start fehlgeschlagen: {e}")
        return 1


def run_once(settings: DaemonSettings, **overrides) -> int:
    """One-Shot: Aufnahme für settings.max_duration, dann Transkription.

    Exit 1 bei ungültiger Konfiguration, Fehler oder leerem Ergebnis.
    """
    daemon = DiktatDaemon(settings, **overrides)
    try:
        text = daemon.record_once()
    except ValueError as e:
        error(str(e))
        logger.error(f"[{get_session_id()}] Konfigurationsfehler: {e}")
        return 1
    return 0 if text else 1


__all__ = ["DaemonSettings", "DiktatDaemon", "run_daemon", "run_once"]
