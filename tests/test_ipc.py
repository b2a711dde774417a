"""Tests für utils/ipc.py - Protokoll-Helfer und IPCClient."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from utils import ipc
from utils.ipc import IPCClient, decode_line, encode_line, get_ipc_address


class TestLineCodec:
    def test_encode_appends_newline(self):
        assert encode_line("toggle") == b"toggle\n"

    def test_decode_strips_whitespace(self):
        assert decode_line(b"  ok\r\n") == "ok"

    def test_decode_replaces_invalid_utf8(self):
        assert decode_line(b"\xfftoggle\n") == "�toggle"


class TestGetIpcAddress:
    def test_unix_socket_path(self):
        with patch.object(ipc, "has_unix_sockets", return_value=True):
            assert get_ipc_address(Path("/run/user/1000/diktat.sock")) == (
                "/run/user/1000/diktat.sock"
            )

    def test_default_socket_file(self):
        with patch.object(ipc, "has_unix_sockets", return_value=True):
            assert get_ipc_address() == str(ipc.SOCKET_FILE)

    def test_tcp_fallback(self):
        """Ohne AF_UNIX: Loopback-TCP, Socket-Pfad wird ignoriert."""
        with patch.object(ipc, "has_unix_sockets", return_value=False):
            assert get_ipc_address(Path("/tmp/x.sock")) == ("127.0.0.1", 47653)


class TestIPCClient:
    def test_missing_socket_is_unavailable(self, tmp_path):
        client = IPCClient(str(tmp_path / "fehlt.sock"))
        assert client.is_available() is False

    def test_connect_error_is_unavailable(self):
        client = IPCClient(("127.0.0.1", 1))
        with patch.object(client, "_connect", side_effect=ConnectionRefusedError):
            assert client.is_available() is False

    def _mock_socket(self, reply: bytes):
        sock = MagicMock()
        sock.__enter__.return_value = sock
        reader = MagicMock()
        reader.__enter__.return_value = reader
        reader.readline.return_value = reply
        sock.makefile.return_value = reader
        return sock

    def test_send_command_returns_reply(self):
        client = IPCClient(("127.0.0.1", 47653))
        sock = self._mock_socket(b"ok\n")
        with patch.object(client, "_connect", return_value=sock):
            assert client.send_command("toggle") == "ok"
        sock.sendall.assert_called_once_with(b"toggle\n")

    def test_send_command_without_reply_raises(self):
        client = IPCClient(("127.0.0.1", 47653))
        with patch.object(client, "_connect", return_value=self._mock_socket(b"")):
            with pytest.raises(ConnectionError):
                client.send_command("toggle")

    def test_send_command_propagates_timeout(self):
        client = IPCClient(("127.0.0.1", 47653))
        with patch.object(client, "_connect", side_effect=TimeoutError):
            with pytest.raises(OSError):
                client.send_command("status")
