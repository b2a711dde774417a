"""Zustandsmaschine einer Diktat-Sitzung.

Erlaubte Übergänge:

    Idle ──start──► Recording ──stop──► Processing ──complete──► Idle
                        │
                        └──cancel──► Idle

Jeder andere Übergang wirft InvalidTransition und lässt den Zustand unverändert.
Wird nur vom DaemonController (einziger Consumer) verändert, daher ohne Lock.
"""

from utils.state import DaemonState

from .errors import InvalidTransition

# (Zustand, Aktion) -> Folgezustand
_TRANSITIONS: dict[tuple[DaemonState, str], DaemonState] = {
    (DaemonState.IDLE, "start"): DaemonState.RECORDING,
    (DaemonState.RECORDING, "stop"): DaemonState.PROCESSING,
    (DaemonState.RECORDING, "cancel"): DaemonState.IDLE,
    (DaemonState.PROCESSING, "complete"): DaemonState.IDLE,
}


class SessionState:
    """Aktueller Zustand plus Generationszähler der Aufnahmen."""

    def __init__(self) -> None:
        self._state = DaemonState.IDLE
        self._generation = 0

    @property
    def state(self) -> DaemonState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    def is_idle(self) -> bool:
        return self._state is DaemonState.IDLE

    def is_recording(self) -> bool:
        return self._state is DaemonState.RECORDING

    def is_processing(self) -> bool:
        return self._state is DaemonState.PROCESSING

    def _apply(self, action: str) -> None:
        target = _TRANSITIONS.get((self._state, action))
        if target is None:
            raise InvalidTransition(self._state, action)
        self._state = target

    def start_recording(self) -> int:
        """Idle → Recording. Gibt die neue Generation zurück."""
        self._apply("start")
        self._generation += 1
        return self._generation

    def stop_recording(self) -> None:
        """Recording → Processing."""
        self._apply("stop")

    def cancel_recording(self) -> None:
        """Recording → Idle (Aufnahme verworfen)."""
        self._apply("cancel")

    def complete_processing(self) -> None:
        """Processing → Idle."""
        self._apply("complete")

    def __repr__(self) -> str:
        return f"SessionState({self._state.value}, generation={self._generation})"


__all__ = ["SessionState"]
