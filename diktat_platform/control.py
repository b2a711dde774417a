"""Control-Channels: externe Steuerung des Daemons.

Jeder Channel dekodiert Eingaben zu Command-Werten und übergibt sie per
submit() an den Controller. Kein Channel verändert selbst Zustand.

POSIX-Signale:  SIGUSR1 = toggle, SIGUSR2 = cancel, SIGINT/SIGTERM = shutdown
Socket:         newline-delimited Befehle (siehe utils/ipc.py)
"""

from __future__ import annotations

import logging
import os
import signal
import socket
import threading
from pathlib import Path

from config import CANCEL_SIGNAL, IPC_MAX_LINE, SHUTDOWN_SIGNALS, TOGGLE_SIGNAL
from core.commands import Command, parse_command
from core.errors import UnknownCommand
from core.ports import ControlChannel, StatusCallback, SubmitCallback
from utils.ipc import (
    CMD_STATUS,
    RESPONSE_BUSY,
    RESPONSE_OK,
    RESPONSE_UNKNOWN_COMMAND,
    decode_line,
    encode_line,
    get_ipc_address,
)

logger = logging.getLogger("diktat.platform.control")

ACCEPT_TIMEOUT = 0.5  # Sekunden, Accept-Loop prüft so oft das Stop-Flag
CLIENT_IDLE_TIMEOUT = 30.0  # Sekunden ohne Eingabe bis Verbindung geschlossen wird


def _signal_mapping() -> dict[int, Command]:
    mapping: dict[int, Command] = {}
    for name, command in (
        (TOGGLE_SIGNAL, Command.TOGGLE),
        (CANCEL_SIGNAL, Command.CANCEL),
        *((sig, Command.SHUTDOWN) for sig in SHUTDOWN_SIGNALS),
    ):
        signum = getattr(signal, name, None)
        if signum is not None:
            mapping[signum] = command
    return mapping


def _require_main_thread(what: str) -> None:
    if threading.current_thread() is not threading.main_thread():
        raise RuntimeError(f"{what} muss im Main-Thread gestartet werden")


# =============================================================================
# Signale
# =============================================================================


class SignalControlChannel:
    """POSIX-Signale als Steuerkanal.

    Handler rufen nur submit() auf. Vorherige Handler werden bei close()
    wiederhergestellt.
    """

    def __init__(self, mapping: dict[int, Command] | None = None) -> None:
        self._mapping = mapping if mapping is not None else _signal_mapping()
        self._previous: dict[int, object] = {}

    def _make_handler(self, submit: SubmitCallback, command: Command):
        def handler(signum, frame) -> None:
            submit(command)

        return handler

    def start(self, submit: SubmitCallback, status: StatusCallback) -> None:
        _require_main_thread("SignalControlChannel")
        for signum, command in self._mapping.items():
            self._previous[signum] = signal.signal(
                signum, self._make_handler(submit, command)
            )
        logger.info(f"Signal-Handler installiert: {self.describe()}")

    def close(self) -> None:
        for signum, previous in self._previous.items():
            try:
                signal.signal(signum, previous)
            except (ValueError, TypeError, OSError) as e:
                logger.debug(f"Signal-Handler {signum} nicht wiederhergestellt: {e}")
        self._previous.clear()

    def describe(self) -> str:
        parts = [
            f"{signal.Signals(signum).name}={command.value}"
            for signum, command in self._mapping.items()
        ]
        return "Signale (" + ", ".join(parts) + ")"


# =============================================================================
# Socket
# =============================================================================


class SocketControlChannel:
    """Unix Domain Socket (POSIX) oder Loopback-TCP als Steuerkanal.

    Pro Verbindung ein Handler-Thread. `status` wird direkt beantwortet und
    landet nie in der Queue.
    """

    def __init__(
        self,
        address: str | tuple[str, int] | None = None,
        *,
        install_interrupt: bool = False,
    ) -> None:
        self.address = address if address is not None else get_ipc_address()
        self._install_interrupt = install_interrupt
        self._previous_sigint = None
        self._server: socket.socket | None = None
        self._thread: threading.Thread | None = None
        self._running = threading.Event()
        self._submit: SubmitCallback | None = None
        self._status: StatusCallback | None = None

    @property
    def is_unix(self) -> bool:
        return not isinstance(self.address, tuple)

    @property
    def bound_address(self) -> str | tuple[str, int] | None:
        """Tatsächliche Adresse (TCP-Port 0 wird beim Binden aufgelöst)."""
        if self._server is None:
            return None
        return self._server.getsockname()

    def start(self, submit: SubmitCallback, status: StatusCallback) -> None:
        self._submit = submit
        self._status = status
        self._server = self._bind()
        self._running.set()
        self._thread = threading.Thread(
            target=self._accept_loop, daemon=True, name="ControlSocket"
        )
        self._thread.start()

        if self._install_interrupt and threading.current_thread() is threading.main_thread():
            self._previous_sigint = signal.signal(
                signal.SIGINT, lambda signum, frame: submit(Command.SHUTDOWN)
            )
        logger.info(f"Control-Socket lauscht: {self.describe()}")

    def _bind(self) -> socket.socket:
        if not self.is_unix:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind(self.address)
        else:
            path = Path(self.address)
            path.parent.mkdir(parents=True, exist_ok=True)
            # Verwaister Socket eines abgestürzten Daemons (InstanceGuard hält bereits den Lock)
            path.unlink(missing_ok=True)
            sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
            sock.bind(str(path))
            os.chmod(path, 0o600)
        sock.listen(5)
        sock.settimeout(ACCEPT_TIMEOUT)
        return sock

    def _accept_loop(self) -> None:
        while self._running.is_set():
            server = self._server
            if server is None:
                break
            try:
                conn, _ = server.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._running.is_set():
                    logger.warning(f"Control-Socket Accept-Fehler: {e}")
                break
            threading.Thread(
                target=self._serve_connection,
                args=(conn,),
                daemon=True,
                name="ControlClient",
            ).start()

    def _serve_connection(self, conn: socket.socket) -> None:
        with conn:
            conn.settimeout(CLIENT_IDLE_TIMEOUT)
            try:
                with conn.makefile("rb") as reader:
                    while True:
                        # Ein Byte mehr: Zeile mit genau IPC_MAX_LINE Bytes plus "\n" passt
                        raw = reader.readline(IPC_MAX_LINE + 1)
                        if not raw:
                            break
                        if not raw.endswith(b"\n") and len(raw) > IPC_MAX_LINE:
                            logger.warning("Control-Socket: Zeile zu lang, Verbindung geschlossen")
                            conn.sendall(encode_line(RESPONSE_UNKNOWN_COMMAND))
                            break
                        conn.sendall(encode_line(self.handle_line(decode_line(raw))))
            except socket.timeout:
                logger.debug("Control-Socket: Client-Timeout")
            except OSError as e:
                logger.debug(f"Control-Socket: Verbindung abgebrochen: {e}")

    def handle_line(self, line: str) -> str:
        """Beantwortet eine Befehlszeile."""
        if line.strip().lower() == CMD_STATUS:
            return self._status().value

        try:
            command = parse_command(line)
        except UnknownCommand:
            logger.warning(f"Control-Socket: unbekannter Befehl {line!r}")
            return RESPONSE_UNKNOWN_COMMAND

        logger.debug(f"Control-Socket: {command.value}")
        return RESPONSE_OK if self._submit(command) else RESPONSE_BUSY

    def close(self) -> None:
        self._running.clear()
        server, self._server = self._server, None
        if server is not None:
            server.close()
        if self._thread is not None:
            self._thread.join(timeout=ACCEPT_TIMEOUT * 4)
            self._thread = None
        if self._previous_sigint is not None:
            try:
                signal.signal(signal.SIGINT, self._previous_sigint)
            except ValueError:
                pass
            self._previous_sigint = None
        if self.is_unix:
            Path(self.address).unlink(missing_ok=True)

    def describe(self) -> str:
        if self.is_unix:
            return f"Socket {self.address}"
        host, port = self.address
        return f"TCP {host}:{port}"


# =============================================================================
# Kombination
# =============================================================================


class CompositeControlChannel:
    """Mehrere Channels hinter einem Port."""

    def __init__(self, channels: list[ControlChannel]) -> None:
        self.channels = list(channels)
        self._started: list[ControlChannel] = []

    def start(self, submit: SubmitCallback, status: StatusCallback) -> None:
        try:
            for channel in self.channels:
                channel.start(submit, status)
                self._started.append(channel)
        except Exception:
            self.close()
            raise

    def close(self) -> None:
        while self._started:
            channel = self._started.pop()
            try:
                channel.close()
            except Exception as e:
                logger.warning(f"{channel.describe()} nicht sauber geschlossen: {e}")

    def describe(self) -> str:
        return " + ".join(channel.describe() for channel in self.channels)


__all__ = [
    "SignalControlChannel",
    "SocketControlChannel",
    "CompositeControlChannel",
]
