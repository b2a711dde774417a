"""
Single-Instance-Guard über eine PID-Datei.

Die Datei enthält die PID des laufenden Daemons (Dezimal, mit Newline).
Ein Eintrag, dessen Prozess nicht mehr lebt (oder der nicht lesbar ist),
gilt als veraltet und wird übernommen (Crash-Recovery).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable

from config import PID_FILE
from core.errors import LockConflict
from utils.logging import get_session_id

logger = logging.getLogger("diktat.guard")


def _default_is_alive(pid: int) -> bool:
    from diktat_platform import get_process_control

    return get_process_control().is_alive(pid)


def read_pid(path: Path | None = None) -> int | None:
    """Liest die PID aus der Lock-Datei. None wenn fehlend oder unlesbar."""
    path = path or PID_FILE
    try:
        return int(path.read_text(encoding="utf-8").strip())
    except (OSError, ValueError):
        return None


class InstanceGuard:
    """Stellt sicher, dass höchstens ein Daemon pro Lock-Datei läuft.

    Usage:
        with InstanceGuard() as guard:
            run_daemon()
    """

    def __init__(
        self,
        path: Path | None = None,
        *,
        pid: int | None = None,
        is_alive: Callable[[int], bool] | None = None,
    ) -> None:
        self.path = Path(path or PID_FILE)
        self.pid = pid if pid is not None else os.getpid()
        self._is_alive = is_alive or _default_is_alive
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    def acquire(self) -> None:
        """Übernimmt die Lock-Datei.

        Raises:
            LockConflict: Wenn ein anderer lebender Prozess sie hält
            OSError: Wenn die Datei nicht geschrieben werden kann
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if self._try_create():
            self._held = True
            logger.info(f"[{get_session_id()}] Lock übernommen: {self.path} (PID {self.pid})")
            return

        holder = read_pid(self.path)
        if holder is not None and holder != self.pid and self._is_alive(holder):
            raise LockConflict(holder)

        # Veraltet oder unlesbar: atomar überschreiben
        logger.info(
            f"[{get_session_id()}] Veraltete Lock-Datei übernommen: {self.path} (alte PID: {holder})"
        )
        self._atomic_write()
        self._held = True

    def release(self) -> None:
        """Löscht die Lock-Datei, wenn sie noch uns gehört. Fehler werden ignoriert."""
        if not self._held:
            return
        self._held = False
        try:
            if read_pid(self.path) == self.pid:
                self.path.unlink(missing_ok=True)
                logger.debug(f"[{get_session_id()}] Lock freigegeben: {self.path}")
        except OSError as e:
            logger.debug(f"[{get_session_id()}] Lock-Datei nicht gelöscht: {e}")

    def _record(self) -> bytes:
        return f"{self.pid}\n".encode("ascii")

    def _try_create(self) -> bool:
        try:
            fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            return False
        with os.fdopen(fd, "wb") as f:
            f.write(self._record())
        return True

    def _atomic_write(self) -> None:
        tmp_path = self.path.with_name(f"{self.path.name}.{self.pid}.tmp")
        try:
            tmp_path.write_bytes(self._record())
            tmp_path.replace(self.path)
        finally:
            tmp_path.unlink(missing_ok=True)

    def __enter__(self) -> "InstanceGuard":
        self.acquire()
        return self

    def __exit__(self, *exc) -> None:
        self.release()


__all__ = ["InstanceGuard", "read_pid"]
