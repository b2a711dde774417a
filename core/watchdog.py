"""Watchdog für die maximale Aufnahmedauer."""

import logging
import threading
from typing import Callable

logger = logging.getLogger("diktat.watchdog")


class Watchdog:
    """Höchstens ein ausstehender Timer pro Instanz.

    Jedes arm()/disarm() erhöht ein Token. Ein Timer, dessen Token nicht mehr
    aktuell ist, ruft on_expire nicht auf.
    """

    def __init__(self, on_expire: Callable[[int], None]) -> None:
        self._on_expire = on_expire
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._token = 0
        self._generation: int | None = None

    @property
    def armed(self) -> bool:
        with self._lock:
            return self._timer is not None

    @property
    def generation(self) -> int | None:
        with self._lock:
            return self._generation

    def arm(self, generation: int, deadline_s: float) -> None:
        with self._lock:
            self._cancel_locked()
            self._token += 1
            self._generation = generation
            timer = threading.Timer(deadline_s, self._fire, args=(self._token, generation))
            timer.daemon = True
            timer.name = f"Watchdog-{generation}"
            self._timer = timer
            timer.start()
        logger.debug(f"Watchdog aktiv: Generation {generation}, {deadline_s:.1f}s")

    def disarm(self) -> None:
        with self._lock:
            was_armed = self._timer is not None
            self._cancel_locked()
            self._token += 1
            self._generation = None
        if was_armed:
            logger.debug("Watchdog deaktiviert")

    def _cancel_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self, token: int, generation: int) -> None:
        with self._lock:
            if token != self._token:
                return
            self._timer = None
            self._generation = None
        # Callback außerhalb des Locks: on_expire darf blockieren (Queue-Put)
        logger.info(f"Watchdog abgelaufen: Generation {generation}")
        self._on_expire(generation)


__all__ = ["Watchdog"]
