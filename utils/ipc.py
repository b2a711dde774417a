"""Socket-based IPC between the CLI and the running daemon.

Protocol (newline-delimited UTF-8, one or more commands per connection):

    Client                          Daemon
       │                               │
       │──── "toggle\\n" ─────────────►│  queued
       │◄─── "ok\\n" ──────────────────│
       │──── "status\\n" ─────────────►│  answered directly
       │◄─── "recording\\n" ───────────│
       │──── "bogus\\n" ──────────────►│
       │◄─── "error: unknown command\\n"│

POSIX uses a Unix domain socket ($XDG_RUNTIME_DIR/diktat.sock). Platforms
without AF_UNIX fall back to loopback TCP.
"""

from __future__ import annotations

import logging
import socket
import sys
from pathlib import Path

from config import IPC_HOST, IPC_MAX_LINE, IPC_PORT, IPC_TIMEOUT, SOCKET_FILE

logger = logging.getLogger("diktat.ipc")

# -----------------------------------------------------------------------------
# Protocol Constants
# -----------------------------------------------------------------------------

# Queries (answered without entering the command queue)
CMD_STATUS = "status"

# Responses (Daemon → Client)
RESPONSE_OK = "ok"
RESPONSE_UNKNOWN_COMMAND = "error: unknown command"
RESPONSE_BUSY = "error: busy"


def has_unix_sockets() -> bool:
    """True when AF_UNIX is usable on this platform."""
    return hasattr(socket, "AF_UNIX") and sys.platform != "win32"


def get_ipc_address(socket_path: Path | None = None) -> str | tuple[str, int]:
    """Returns the Unix socket path, or (host, port) without AF_UNIX."""
    if has_unix_sockets():
        return str(socket_path or SOCKET_FILE)
    return (IPC_HOST, IPC_PORT)


def encode_line(text: str) -> bytes:
    return f"{text}\n".encode("utf-8")


def decode_line(raw: bytes) -> str:
    """Decodes one protocol line; undecodable bytes become U+FFFD."""
    return raw.decode("utf-8", errors="replace").strip()


# -----------------------------------------------------------------------------
# IPCClient - Used by the CLI
# -----------------------------------------------------------------------------


class IPCClient:
    """Sends one command per call and waits for the single-line reply.

    Usage:
        client = IPCClient()
        if client.is_available():
            reply = client.send_command("toggle")  # "ok"
    """

    def __init__(
        self,
        address: str | tuple[str, int] | None = None,
        timeout: float = IPC_TIMEOUT,
    ) -> None:
        self.address = address if address is not None else get_ipc_address()
        self.timeout = timeout

    def _connect(self) -> socket.socket:
        if isinstance(self.address, tuple):
            return socket.create_connection(self.address, timeout=self.timeout)
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        sock.settimeout(self.timeout)
        try:
            sock.connect(self.address)
        except OSError:
            sock.close()
            raise
        return sock

    def is_available(self) -> bool:
        """True when a daemon accepts connections at the address."""
        if not isinstance(self.address, tuple) and not Path(self.address).exists():
            return False
        try:
            with self._connect():
                return True
        except OSError:
            return False

    def send_command(self, command: str) -> str:
        """Send a command line and return the daemon's reply (without newline).

        Raises:
            OSError: When the daemon is unreachable or does not answer in time
        """
        with self._connect() as sock:
            sock.sendall(encode_line(command))
            with sock.makefile("rb") as reader:
                reply = reader.readline(IPC_MAX_LINE)
        if not reply:
            raise ConnectionError("Daemon closed the connection without reply")
        response = decode_line(reply)
        logger.debug(f"IPC {command!r} -> {response!r}")
        return response


__all__ = [
    "CMD_STATUS",
    "RESPONSE_OK",
    "RESPONSE_UNKNOWN_COMMAND",
    "RESPONSE_BUSY",
    "IPCClient",
    "decode_line",
    "encode_line",
    "get_ipc_address",
    "has_unix_sockets",
]
