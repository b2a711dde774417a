"""Integration-Tests für den Single-Instance-Guard und Crash-Recovery."""

import os
import sys
from unittest.mock import patch

import pytest

from core.commands import Command
from core.errors import LockConflict
from diktat_platform.daemon import PosixProcessControl
from utils.daemon import InstanceGuard, read_pid


class TestAcquire:
    """Tests für InstanceGuard.acquire()."""

    def test_creates_pid_file(self, temp_paths):
        """Ohne Lock-Datei wird sie mit eigener PID angelegt."""
        guard = InstanceGuard(temp_paths["pid_file"], pid=4242)
        guard.acquire()

        assert guard.held
        assert temp_paths["pid_file"].read_text() == "4242\n"

    def test_live_holder_conflicts(self, temp_paths):
        """Lebender fremder Prozess → LockConflict, Datei bleibt unverändert."""
        temp_paths["pid_file"].write_text("1234\n")
        guard = InstanceGuard(temp_paths["pid_file"], pid=4242, is_alive=lambda pid: True)

        with pytest.raises(LockConflict) as exc_info:
            guard.acquire()

        assert exc_info.value.pid == 1234
        assert not guard.held
        assert read_pid(temp_paths["pid_file"]) == 1234

    def test_stale_pid_is_taken_over(self, temp_paths):
        """PID eines toten Prozesses wird überschrieben (Crash-Recovery)."""
        temp_paths["pid_file"].write_text("99999\n")
        guard = InstanceGuard(temp_paths["pid_file"], pid=4242, is_alive=lambda pid: False)

        guard.acquire()

        assert guard.held
        assert read_pid(temp_paths["pid_file"]) == 4242

    @pytest.mark.parametrize("content", ["not-a-number", "", "12 34"])
    def test_unreadable_record_is_taken_over(self, temp_paths, content):
        temp_paths["pid_file"].write_text(content)
        guard = InstanceGuard(temp_paths["pid_file"], pid=4242, is_alive=lambda pid: True)

        guard.acquire()
        assert read_pid(temp_paths["pid_file"]) == 4242

    def test_own_pid_is_not_a_conflict(self, temp_paths):
        temp_paths["pid_file"].write_text("4242\n")
        calls = []
        guard = InstanceGuard(
            temp_paths["pid_file"], pid=4242, is_alive=lambda pid: calls.append(pid) or True
        )

        guard.acquire()
        assert guard.held
        assert calls == []

    def test_no_tmp_file_left_behind(self, temp_paths):
        temp_paths["pid_file"].write_text("99999\n")
        InstanceGuard(temp_paths["pid_file"], pid=4242, is_alive=lambda pid: False).acquire()
        leftovers = [p.name for p in temp_paths["pid_file"].parent.iterdir()]
        assert leftovers == ["diktat.pid"]


class TestRelease:
    def test_release_removes_own_file(self, temp_paths):
        guard = InstanceGuard(temp_paths["pid_file"], pid=4242)
        guard.acquire()
        guard.release()

        assert not temp_paths["pid_file"].exists()
        assert not guard.held

    def test_release_keeps_foreign_file(self, temp_paths):
        """Gehört die Datei inzwischen einem anderen Daemon, bleibt sie stehen."""
        guard = InstanceGuard(temp_paths["pid_file"], pid=4242)
        guard.acquire()
        temp_paths["pid_file"].write_text("5555\n")

        guard.release()
        assert read_pid(temp_paths["pid_file"]) == 5555

    def test_release_without_acquire_is_noop(self, temp_paths):
        temp_paths["pid_file"].write_text("5555\n")
        InstanceGuard(temp_paths["pid_file"], pid=4242).release()
        assert temp_paths["pid_file"].exists()

    def test_release_tolerates_missing_file(self, temp_paths):
        guard = InstanceGuard(temp_paths["pid_file"], pid=4242)
        guard.acquire()
        temp_paths["pid_file"].unlink()
        guard.release()

    def test_context_manager(self, temp_paths):
        with InstanceGuard(temp_paths["pid_file"], pid=4242) as guard:
            assert guard.held
            assert temp_paths["pid_file"].exists()
        assert not temp_paths["pid_file"].exists()

    def test_context_manager_releases_on_error(self, temp_paths):
        with pytest.raises(RuntimeError):
            with InstanceGuard(temp_paths["pid_file"], pid=4242):
                raise RuntimeError("Crash im Daemon")
        assert not temp_paths["pid_file"].exists()


class TestSecondInstance:
    def test_second_guard_with_real_liveness(self, temp_paths):
        """Zweiter Guard im selben Prozess sieht die erste Instanz als lebendig."""
        first = InstanceGuard(temp_paths["pid_file"])
        first.acquire()
        try:
            second = InstanceGuard(temp_paths["pid_file"], pid=os.getpid() + 1)
            with pytest.raises(LockConflict) as exc_info:
                second.acquire()
            assert exc_info.value.pid == os.getpid()
        finally:
            first.release()


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX only")
class TestPosixProcessControl:
    def test_is_alive_for_own_process(self):
        assert PosixProcessControl().is_alive(os.getpid())

    def test_dead_process(self):
        with patch("os.kill", side_effect=ProcessLookupError):
            assert not PosixProcessControl().is_alive(99999)

    def test_permission_error_counts_as_alive(self):
        with patch("os.kill", side_effect=PermissionError):
            assert PosixProcessControl().is_alive(1)

    @pytest.mark.parametrize(
        "command,signame",
        [
            (Command.TOGGLE, "SIGUSR1"),
            (Command.CANCEL, "SIGUSR2"),
            (Command.SHUTDOWN, "SIGTERM"),
        ],
    )
    def test_send_maps_signals(self, command, signame):
        import signal

        with patch("os.kill") as mock_kill:
            assert PosixProcessControl().send(1234, command)
        mock_kill.assert_called_once_with(1234, getattr(signal, signame))

    def test_send_to_dead_process(self):
        with patch("os.kill", side_effect=ProcessLookupError):
            assert not PosixProcessControl().send(1234, Command.TOGGLE)
