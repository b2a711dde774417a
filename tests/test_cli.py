"""Tests für diktat.py - CLI-Argument-Parsing und Client-Befehle mit Typer."""

from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from core.commands import Command
from diktat import app
from diktat_daemon import DaemonSettings

runner = CliRunner()


@pytest.fixture
def no_logging():
    with patch("diktat.setup_logging"):
        yield


@pytest.fixture
def run_daemon():
    """Mock für run_daemon(); liefert die übergebenen Settings."""
    with patch("diktat_daemon.run_daemon", return_value=0) as mock:
        yield mock


def _settings(mock) -> DaemonSettings:
    return mock.call_args.args[0]


class TestDaemonCommand:
    """Tests für `diktat daemon` - Optionen und ENV-Fallback."""

    def test_defaults(self, clean_env, no_logging, run_daemon):
        result = runner.invoke(app, ["daemon"])

        assert result.exit_code == 0, result.output
        settings = _settings(run_daemon)
        assert settings.mode == "openai"
        assert settings.domain == "general"
        assert settings.max_duration == 60.0
        assert settings.clipboard is True
        assert settings.keystroke is False
        assert settings.control == "auto"

    def test_options(self, clean_env, no_logging, run_daemon):
        result = runner.invoke(
            app,
            [
                "daemon",
                "--mode", "groq",
                "--domain", "dev",
                "--max-duration", "2m30s",
                "--keystroke",
                "--keystroke-tool", "wtype",
                "--no-clipboard",
                "--language", "de",
                "--control", "socket",
            ],
        )

        assert result.exit_code == 0, result.output
        settings = _settings(run_daemon)
        assert settings.mode == "groq"
        assert settings.domain == "dev"
        assert settings.max_duration == 150.0
        assert settings.keystroke is True
        assert settings.keystroke_tool == "wtype"
        assert settings.clipboard is False
        assert settings.language == "de"
        assert settings.control == "socket"

    def test_env_fallback(self, clean_env, no_logging, run_daemon, monkeypatch):
        """ENV-Variablen greifen, wenn keine CLI-Option gesetzt ist."""
        monkeypatch.setenv("DIKTAT_MODE", "gemini")
        monkeypatch.setenv("DIKTAT_MAX_DURATION", "30s")
        monkeypatch.setenv("DIKTAT_SOUND", "false")

        result = runner.invoke(app, ["daemon"])

        assert result.exit_code == 0, result.output
        settings = _settings(run_daemon)
        assert settings.mode == "gemini"
        assert settings.max_duration == 30.0
        assert settings.sound is False

    def test_cli_overrides_env(self, clean_env, no_logging, run_daemon, monkeypatch):
        monkeypatch.setenv("DIKTAT_MODE", "gemini")
        runner.invoke(app, ["daemon", "--mode", "openai"])
        assert _settings(run_daemon).mode == "openai"

    @pytest.mark.parametrize("value", ["abc", "0s", "1m30"])
    def test_invalid_max_duration(self, clean_env, no_logging, run_daemon, value):
        result = runner.invoke(app, ["daemon", "--max-duration", value])
        assert result.exit_code == 2
        run_daemon.assert_not_called()

    def test_unknown_mode_rejected(self, clean_env, no_logging, run_daemon):
        result = runner.invoke(app, ["daemon", "--mode", "deepgram"])
        assert result.exit_code == 2

    def test_exit_code_from_daemon(self, clean_env, no_logging, run_daemon):
        run_daemon.return_value = 1
        result = runner.invoke(app, ["daemon"])
        assert result.exit_code == 1

    def test_socket_and_pid_file(self, clean_env, no_logging, run_daemon, temp_paths):
        result = runner.invoke(
            app,
            [
                "daemon",
                "--socket", str(temp_paths["socket"]),
                "--pid-file", str(temp_paths["pid_file"]),
            ],
        )
        assert result.exit_code == 0, result.output
        settings = _settings(run_daemon)
        assert settings.socket_path == temp_paths["socket"]
        assert settings.pid_file == temp_paths["pid_file"]


def _client(available=True, reply="ok"):
    client = MagicMock()
    client.is_available.return_value = available
    client.send_command.return_value = reply
    return client


class TestClientCommands:
    """Tests für toggle / cancel / stop / status."""

    @pytest.mark.parametrize(
        "args,wire",
        [(["toggle"], "toggle"), (["cancel"], "cancel"), (["stop"], "shutdown")],
    )
    def test_sends_via_socket(self, clean_env, args, wire):
        client = _client()
        with patch("diktat._ipc_client", return_value=client):
            result = runner.invoke(app, args)

        assert result.exit_code == 0, result.output
        client.send_command.assert_called_once_with(wire)

    def test_busy_reply_fails(self, clean_env):
        with patch("diktat._ipc_client", return_value=_client(reply="error: busy")):
            result = runner.invoke(app, ["toggle"])
        assert result.exit_code == 1
        assert "error: busy" in result.output

    def test_socket_error_fails(self, clean_env):
        client = _client()
        client.send_command.side_effect = ConnectionError("keine Antwort")
        with patch("diktat._ipc_client", return_value=client):
            result = runner.invoke(app, ["toggle"])
        assert result.exit_code == 1

    def test_signal_fallback(self, clean_env):
        """Ohne Socket wird die PID aus der Lock-Datei signalisiert."""
        control = MagicMock()
        control.send.return_value = True
        with (
            patch("diktat._ipc_client", return_value=_client(available=False)),
            patch("diktat._running_pid", return_value=1234),
            patch("diktat_platform.get_process_control", return_value=control),
        ):
            result = runner.invoke(app, ["cancel"])

        assert result.exit_code == 0, result.output
        control.send.assert_called_once_with(1234, Command.CANCEL)

    def test_signal_fallback_failure(self, clean_env):
        control = MagicMock()
        control.send.return_value = False
        with (
            patch("diktat._ipc_client", return_value=_client(available=False)),
            patch("diktat._running_pid", return_value=1234),
            patch("diktat_platform.get_process_control", return_value=control),
        ):
            result = runner.invoke(app, ["toggle"])
        assert result.exit_code == 1

    def test_no_daemon(self, clean_env, temp_paths):
        with patch("diktat._ipc_client", return_value=_client(available=False)):
            result = runner.invoke(app, ["toggle", "--pid-file", str(temp_paths["pid_file"])])
        assert result.exit_code == 1
        assert "Kein laufender Daemon" in result.output

    def test_status_via_socket(self, clean_env):
        client = _client(reply="recording")
        with patch("diktat._ipc_client", return_value=client):
            result = runner.invoke(app, ["status"])
        assert result.exit_code == 0
        assert result.output.strip() == "recording"
        client.send_command.assert_called_once_with("status")

    def test_status_not_running(self, clean_env, temp_paths):
        with patch("diktat._ipc_client", return_value=_client(available=False)):
            result = runner.invoke(app, ["status", "--pid-file", str(temp_paths["pid_file"])])
        assert result.exit_code == 1
        assert "not running" in result.output

    def test_status_with_pid_only(self, clean_env):
        with (
            patch("diktat._ipc_client", return_value=_client(available=False)),
            patch("diktat._running_pid", return_value=1234),
        ):
            result = runner.invoke(app, ["status"])
        assert result.exit_code == 0
        assert result.output.strip() == "running"


class TestTranscribeCommand:
    """Tests für `diktat transcribe` - One-Shot mit Audiodatei."""

    def test_missing_file(self, clean_env, no_logging, tmp_path):
        result = runner.invoke(app, ["transcribe", str(tmp_path / "fehlt.flac")])
        assert result.exit_code == 1
        assert "nicht gefunden" in result.output

    def test_transcribes_file(self, clean_env, no_logging, tmp_path):
        audio = tmp_path / "aufnahme.flac"
        audio.write_bytes(b"fLaC")
        transcriber = MagicMock()
        transcriber.transcribe.return_value = " Hallo Welt \n"

        with (
            patch("providers.get_transcriber", return_value=transcriber) as mock_factory,
            patch("audio.recording.load_audio_file") as mock_load,
        ):
            result = runner.invoke(
                app, ["transcribe", str(audio), "--mode", "groq", "--domain", "medical"]
            )

        assert result.exit_code == 0, result.output
        assert "Hallo Welt" in result.output
        mock_factory.assert_called_once_with("groq", None, None)
        _blob, prompt = transcriber.transcribe.call_args.args
        assert "Domain Context: Medical / Healthcare" in prompt
        mock_load.assert_called_once()

    def test_transcription_error(self, clean_env, no_logging, tmp_path):
        from core.errors import TranscriptionError

        audio = tmp_path / "aufnahme.flac"
        audio.write_bytes(b"fLaC")
        transcriber = MagicMock()
        transcriber.transcribe.side_effect = TranscriptionError("API down")

        with (
            patch("providers.get_transcriber", return_value=transcriber),
            patch("audio.recording.load_audio_file"),
        ):
            result = runner.invoke(app, ["transcribe", str(audio)])

        assert result.exit_code == 1
        assert "API down" in result.output


class TestRecordCommand:
    """Tests für `diktat record` - One-Shot-Aufnahme vom Mikrofon."""

    @pytest.fixture
    def fakes(self):
        from conftest import FakeOutput, FakeRecorder, FakeTranscriber

        recorder, transcriber = FakeRecorder(), FakeTranscriber()
        clipboard = FakeOutput("clipboard")
        with (
            patch("diktat_daemon.DiktatDaemon._build_recorder", return_value=recorder),
            patch("diktat_daemon.DiktatDaemon._build_transcriber", return_value=transcriber),
            patch("diktat_platform.get_clipboard", return_value=clipboard),
        ):
            yield recorder, transcriber, clipboard

    def test_records_transcribes_and_copies(self, clean_env, no_logging, fakes):
        recorder, transcriber, clipboard = fakes

        result = runner.invoke(
            app, ["record", "-d", "0.3s", "-c", "--no-sound", "--domain", "dev"]
        )

        assert result.exit_code == 0, result.output
        assert "Hallo Welt" in result.output
        assert recorder.max_duration == 0.3
        assert recorder.calls == ["start", "stop"]
        assert clipboard.texts == ["Hallo Welt"]
        _audio, prompt = transcriber.calls[0]
        assert "Domain Context: Software Engineering" in prompt

    def test_clipboard_off_by_default(self, clean_env, no_logging, fakes):
        _recorder, _transcriber, clipboard = fakes
        result = runner.invoke(app, ["record", "-d", "0.2s", "--no-sound"])
        assert result.exit_code == 0, result.output
        assert clipboard.texts == []

    def test_duration_from_env(self, clean_env, no_logging, monkeypatch):
        monkeypatch.setenv("DIKTAT_DURATION", "45s")
        with patch("diktat_daemon.run_once", return_value=0) as mock_once:
            result = runner.invoke(app, ["record"])
        assert result.exit_code == 0, result.output
        assert mock_once.call_args.args[0].max_duration == 45.0

    def test_default_duration(self, clean_env, no_logging):
        with patch("diktat_daemon.run_once", return_value=0) as mock_once:
            runner.invoke(app, ["record"])
        settings = mock_once.call_args.args[0]
        assert settings.max_duration == 10.0
        assert settings.clipboard is False

    def test_invalid_duration(self, clean_env, no_logging):
        with patch("diktat_daemon.run_once") as mock_once:
            result = runner.invoke(app, ["record", "-d", "zehn"])
        assert result.exit_code == 2
        mock_once.assert_not_called()

    def test_failure_exits_1(self, clean_env, no_logging):
        with patch("diktat_daemon.run_once", return_value=1):
            result = runner.invoke(app, ["record", "-d", "5s"])
        assert result.exit_code == 1
