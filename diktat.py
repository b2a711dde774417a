#!/usr/bin/env python3
"""
CLI-Einstiegspunkt für Diktat.

Startet den Daemon und steuert ihn über Socket (oder Signale als Fallback).
Transkripte werden auf stdout ausgegeben, Status auf stderr.

Usage:
    diktat daemon --domain dev
    diktat toggle        # Aufnahme starten/stoppen
    diktat cancel        # Aufnahme verwerfen
    diktat status        # idle | recording | processing
    diktat stop          # Daemon beenden
    diktat record -d 30s -c  # Einmal aufnehmen, ohne Daemon
    diktat transcribe audio.flac
    diktat config set domain dev
"""

import logging
from pathlib import Path
from typing import Annotated

import typer

from cli.config_cmd import config_app
from cli.types import ControlMode, Domain, KeystrokeTool, TranscriptionMode
from config import DEFAULT_MAX_DURATION, DEFAULT_RECORD_DURATION, PID_FILE
from core.commands import Command
from utils.env import load_environment
from utils.logging import error, get_session_id, log, setup_logging
from utils.timing import format_seconds, parse_duration

# Typer-App
app = typer.Typer(
    help="Diktat – Sprache zu Text per Hintergrund-Daemon",
    add_completion=False,
    no_args_is_help=True,
)

app.add_typer(config_app, name="config")

logger = logging.getLogger("diktat")


@app.callback()
def _main() -> None:
    # .env vor dem Parsen der Subcommand-Optionen laden (envvar-Defaults)
    load_environment()


def _parse_duration_option(value) -> float:
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return parse_duration(value)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e


SocketOption = Annotated[
    Path | None,
    typer.Option(
        "--socket",
        help="Pfad zum Control-Socket",
        envvar="DIKTAT_SOCKET",
    ),
]
PidFileOption = Annotated[
    Path,
    typer.Option(
        "--pid-file",
        help="Pfad zur Lock-Datei",
        envvar="DIKTAT_PID_FILE",
    ),
]


# =============================================================================
# Daemon
# =============================================================================


@app.command()
def daemon(
    mode: Annotated[
        TranscriptionMode,
        typer.Option(help="Transkriptions-Provider", envvar="DIKTAT_MODE"),
    ] = TranscriptionMode.openai,
    model: Annotated[
        str | None,
        typer.Option(
            help="Modellname (CLI > ENV > Provider-Default)",
            envvar="DIKTAT_MODEL",
        ),
    ] = None,
    language: Annotated[
        str | None,
        typer.Option(help="Sprachcode z.B. 'de', 'en'", envvar="DIKTAT_LANGUAGE"),
    ] = None,
    domain: Annotated[
        Domain,
        typer.Option(help="Domänen-Preset für den Prompt", envvar="DIKTAT_DOMAIN"),
    ] = Domain.general,
    max_duration: Annotated[
        float,
        typer.Option(
            help="Maximale Aufnahmedauer (z.B. 30s, 1m, 2m30s)",
            envvar="DIKTAT_MAX_DURATION",
            parser=_parse_duration_option,
        ),
    ] = format_seconds(DEFAULT_MAX_DURATION),
    clipboard: Annotated[
        bool,
        typer.Option(help="Transkript in die Zwischenablage", envvar="DIKTAT_CLIPBOARD"),
    ] = True,
    keystroke: Annotated[
        bool,
        typer.Option(help="Transkript ins aktive Fenster tippen", envvar="DIKTAT_KEYSTROKE"),
    ] = False,
    keystroke_tool: Annotated[
        KeystrokeTool | None,
        typer.Option(help="Keystroke-Tool (Default: Auto-Erkennung)", envvar="DIKTAT_KEYSTROKE_TOOL"),
    ] = None,
    notify: Annotated[
        bool,
        typer.Option(help="Desktop-Benachrichtigungen", envvar="DIKTAT_NOTIFY"),
    ] = False,
    sound: Annotated[
        bool,
        typer.Option(help="Audio-Cues bei Start/Stop", envvar="DIKTAT_SOUND"),
    ] = True,
    control: Annotated[
        ControlMode,
        typer.Option(help="Steuerkanal", envvar="DIKTAT_CONTROL"),
    ] = ControlMode.auto,
    trim_silence: Annotated[
        bool,
        typer.Option(help="Stille am Anfang/Ende entfernen", envvar="DIKTAT_TRIM_SILENCE"),
    ] = True,
    voice_commands: Annotated[
        bool,
        typer.Option(help="Gesprochene Satzzeichen interpretieren", envvar="DIKTAT_VOICE_COMMANDS"),
    ] = False,
    pid_file: PidFileOption = PID_FILE,
    socket: SocketOption = None,
    debug: Annotated[
        bool,
        typer.Option(help="Debug-Logging aktivieren"),
    ] = False,
) -> None:
    """Startet den Daemon im Vordergrund."""
    from diktat_daemon import DaemonSettings, run_daemon

    setup_logging(debug=debug)
    settings = DaemonSettings(
        mode=mode.value,
        model=model,
        language=language,
        domain=domain.value,
        max_duration=max_duration,
        clipboard=clipboard,
        keystroke=keystroke,
        keystroke_tool=keystroke_tool.value if keystroke_tool else None,
        notify=notify,
        sound=sound,
        control=control.value,
        trim_silence=trim_silence,
        voice_commands=voice_commands,
        pid_file=pid_file,
        socket_path=socket,
    )
    logger.debug(f"[{get_session_id()}] Settings: {settings}")
    exit_code = run_daemon(settings)
    if exit_code:
        raise typer.Exit(exit_code)


# =============================================================================
# Client-Befehle
# =============================================================================


def _ipc_client(socket: Path | None):
    from utils.ipc import IPCClient, get_ipc_address

    return IPCClient(get_ipc_address(socket))


def _running_pid(pid_file: Path) -> int | None:
    from diktat_platform import get_process_control
    from utils.daemon import read_pid

    pid = read_pid(pid_file)
    if pid is not None and get_process_control().is_alive(pid):
        return pid
    return None


def _send(command: Command, socket: Path | None, pid_file: Path) -> None:
    """Sendet einen Befehl per Socket, sonst per Signal an die PID."""
    from utils.ipc import RESPONSE_OK

    client = _ipc_client(socket)
    if client.is_available():
        try:
            reply = client.send_command(command.value)
        except OSError as e:
            error(f"Daemon antwortet nicht: {e}")
            raise typer.Exit(1)
        if reply != RESPONSE_OK:
            error(f"Daemon: {reply}")
            raise typer.Exit(1)
        logger.debug(f"[{get_session_id()}] {command.value} via Socket")
        return

    pid = _running_pid(pid_file)
    if pid is None:
        error("Kein laufender Daemon gefunden")
        raise typer.Exit(1)

    from diktat_platform import get_process_control

    if not get_process_control().send(pid, command):
        error(f"Signal an PID {pid} fehlgeschlagen")
        raise typer.Exit(1)
    logger.debug(f"[{get_session_id()}] {command.value} via Signal an PID {pid}")


@app.command()
def toggle(socket: SocketOption = None, pid_file: PidFileOption = PID_FILE) -> None:
    """Startet oder stoppt die Aufnahme."""
    _send(Command.TOGGLE, socket, pid_file)


@app.command()
def cancel(socket: SocketOption = None, pid_file: PidFileOption = PID_FILE) -> None:
    """Verwirft die laufende Aufnahme."""
    _send(Command.CANCEL, socket, pid_file)


@app.command()
def stop(socket: SocketOption = None, pid_file: PidFileOption = PID_FILE) -> None:
    """Beendet den Daemon (nach laufender Transkription)."""
    _send(Command.SHUTDOWN, socket, pid_file)
    log("👋 Stop gesendet")


@app.command()
def status(socket: SocketOption = None, pid_file: PidFileOption = PID_FILE) -> None:
    """Zeigt den Daemon-Zustand: idle, recording oder processing."""
    from utils.ipc import CMD_STATUS

    client = _ipc_client(socket)
    if client.is_available():
        try:
            print(client.send_command(CMD_STATUS))
            return
        except OSError as e:
            logger.debug(f"[{get_session_id()}] Status via Socket fehlgeschlagen: {e}")

    pid = _running_pid(pid_file)
    if pid is None:
        print("not running")
        raise typer.Exit(1)
    # Ohne Socket ist nur bekannt, dass der Prozess lebt
    print("running")


# =============================================================================
# One-Shot Aufnahme
# =============================================================================


@app.command()
def record(
    duration: Annotated[
        float,
        typer.Option(
            "-d",
            "--duration",
            help="Aufnahmedauer (z.B. 10s, 1m, 2m30s); Strg+C beendet früher",
            envvar="DIKTAT_DURATION",
            parser=_parse_duration_option,
        ),
    ] = format_seconds(DEFAULT_RECORD_DURATION),
    mode: Annotated[
        TranscriptionMode,
        typer.Option(help="Transkriptions-Provider", envvar="DIKTAT_MODE"),
    ] = TranscriptionMode.openai,
    model: Annotated[
        str | None,
        typer.Option(help="Modellname", envvar="DIKTAT_MODEL"),
    ] = None,
    language: Annotated[
        str | None,
        typer.Option(help="Sprachcode z.B. 'de', 'en'", envvar="DIKTAT_LANGUAGE"),
    ] = None,
    domain: Annotated[
        Domain,
        typer.Option(help="Domänen-Preset für den Prompt", envvar="DIKTAT_DOMAIN"),
    ] = Domain.general,
    clipboard: Annotated[
        bool,
        typer.Option(
            "-c/-C", "--clipboard/--no-clipboard",
            help="Transkript in die Zwischenablage",
            envvar="DIKTAT_CLIPBOARD",
        ),
    ] = False,
    keystroke: Annotated[
        bool,
        typer.Option(
            "-k", "--keystroke/--no-keystroke",
            help="Transkript ins aktive Fenster tippen",
            envvar="DIKTAT_KEYSTROKE",
        ),
    ] = False,
    keystroke_tool: Annotated[
        KeystrokeTool | None,
        typer.Option(help="Keystroke-Tool (Default: Auto-Erkennung)", envvar="DIKTAT_KEYSTROKE_TOOL"),
    ] = None,
    notify: Annotated[
        bool,
        typer.Option(
            "-n", "--notify/--no-notify",
            help="Desktop-Benachrichtigungen",
            envvar="DIKTAT_NOTIFY",
        ),
    ] = False,
    sound: Annotated[
        bool,
        typer.Option(help="Audio-Cues bei Start/Stop", envvar="DIKTAT_SOUND"),
    ] = True,
    trim_silence: Annotated[
        bool,
        typer.Option(help="Stille am Anfang/Ende entfernen", envvar="DIKTAT_TRIM_SILENCE"),
    ] = True,
    voice_commands: Annotated[
        bool,
        typer.Option(help="Gesprochene Satzzeichen interpretieren", envvar="DIKTAT_VOICE_COMMANDS"),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option(help="Debug-Logging aktivieren"),
    ] = False,
) -> None:
    """Nimmt einmal vom Mikrofon auf und transkribiert (ohne Daemon)."""
    from diktat_daemon import DaemonSettings, run_once

    setup_logging(debug=debug)
    settings = DaemonSettings(
        mode=mode.value,
        model=model,
        language=language,
        domain=domain.value,
        max_duration=duration,
        clipboard=clipboard,
        keystroke=keystroke,
        keystroke_tool=keystroke_tool.value if keystroke_tool else None,
        notify=notify,
        sound=sound,
        trim_silence=trim_silence,
        voice_commands=voice_commands,
    )
    logger.debug(f"[{get_session_id()}] One-Shot-Settings: {settings}")
    exit_code = run_once(settings)
    if exit_code:
        raise typer.Exit(exit_code)


# =============================================================================
# One-Shot Transkription
# =============================================================================


@app.command()
def transcribe(
    audio: Annotated[
        Path,
        typer.Argument(help="Pfad zur Audiodatei"),
    ],
    mode: Annotated[
        TranscriptionMode,
        typer.Option(help="Transkriptions-Provider", envvar="DIKTAT_MODE"),
    ] = TranscriptionMode.openai,
    model: Annotated[
        str | None,
        typer.Option(help="Modellname", envvar="DIKTAT_MODEL"),
    ] = None,
    language: Annotated[
        str | None,
        typer.Option(help="Sprachcode z.B. 'de', 'en'", envvar="DIKTAT_LANGUAGE"),
    ] = None,
    domain: Annotated[
        Domain,
        typer.Option(help="Domänen-Preset für den Prompt", envvar="DIKTAT_DOMAIN"),
    ] = Domain.general,
    voice_commands: Annotated[
        bool,
        typer.Option(help="Gesprochene Satzzeichen interpretieren", envvar="DIKTAT_VOICE_COMMANDS"),
    ] = False,
    copy: Annotated[
        bool,
        typer.Option("-c", "--copy", help="Ergebnis in Zwischenablage"),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option(help="Debug-Logging aktivieren"),
    ] = False,
) -> None:
    """Transkribiert eine Audiodatei einmalig."""
    from audio.recording import load_audio_file
    from core.errors import DiktatError
    from prompts import build_system_prompt
    from providers import get_transcriber

    setup_logging(debug=debug)

    if not audio.exists():
        error(f"Datei nicht gefunden: {audio}")
        raise typer.Exit(1)

    try:
        transcriber = get_transcriber(mode.value, model, language)
        blob = load_audio_file(audio)
        text = transcriber.transcribe(blob, build_system_prompt(domain.value, voice_commands))
    except (DiktatError, ValueError) as e:
        error(str(e))
        raise typer.Exit(1)

    text = (text or "").strip()
    print(text)

    if copy:
        from core.errors import OutputError
        from diktat_platform import get_clipboard

        try:
            get_clipboard().apply(text)
            log("📋 In Zwischenablage kopiert!")
        except (OutputError, ImportError):
            log("⚠️  Zwischenablage nicht verfügbar")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
