"""Audio-Cues für den Aufnahme-Lifecycle.

Linux: erzeugte Sinus-Töne via numpy + sounddevice
macOS: System-Sounds via afplay
Windows: winsound mit System-Sounds
"""

import logging
import subprocess
import threading

logger = logging.getLogger("diktat.platform.sound")

CUES = ("start", "stop", "cancel", "error")

# Sound-Registry: Name → System-Sound-Pfad (macOS)
MACOS_SYSTEM_SOUNDS = {
    "start": "/System/Library/Sounds/Tink.aiff",
    "stop": "/System/Library/Sounds/Pop.aiff",
    "cancel": "/System/Library/Sounds/Funk.aiff",
    "error": "/System/Library/Sounds/Basso.aiff",
}

# Windows System-Sound Aliases
WINDOWS_SYSTEM_SOUNDS = {
    "start": "SystemAsterisk",
    "stop": "SystemExclamation",
    "cancel": "SystemDefault",
    "error": "SystemHand",
}

# Ton-Folgen: (Frequenz Hz, Dauer ms, Amplitude); Frequenz 0 = Pause
TONE_SEQUENCES = {
    "start": [(523.0, 80, 0.3), (659.0, 120, 0.3)],  # C5 → E5 aufsteigend
    "stop": [(659.0, 80, 0.3), (523.0, 120, 0.3)],  # E5 → C5 absteigend
    "cancel": [(392.0, 60, 0.24), (0.0, 40, 0.0), (392.0, 60, 0.24)],  # G4 doppelt
    "error": [(330.0, 150, 0.3), (0.0, 50, 0.0), (330.0, 150, 0.3)],
}

TONE_SAMPLE_RATE = 44100


def render_tones(sequence, sample_rate: int = TONE_SAMPLE_RATE):
    """Rendert eine Ton-Folge als float32-Array mit kurzem Fade-In/Out."""
    import numpy as np

    parts = []
    for freq, duration_ms, amplitude in sequence:
        n = int(sample_rate * duration_ms / 1000)
        if freq <= 0 or amplitude <= 0:
            parts.append(np.zeros(n, dtype=np.float32))
            continue
        t = np.arange(n, dtype=np.float32) / sample_rate
        tone = amplitude * np.sin(2 * np.pi * freq * t)
        fade = min(n // 5, int(sample_rate * 0.03))  # 20% oder max 30ms
        if fade > 0:
            ramp = np.linspace(0.0, 1.0, fade, dtype=np.float32)
            tone[:fade] *= ramp
            tone[-fade:] *= ramp[::-1]
        parts.append(tone.astype(np.float32))
    return np.concatenate(parts) if parts else np.zeros(0, dtype=np.float32)


class ToneSoundPlayer:
    """Erzeugte Töne via sounddevice (non-blocking)."""

    def play(self, name: str) -> None:
        sequence = TONE_SEQUENCES.get(name)
        if not sequence:
            logger.warning(f"Unbekannter Sound: {name}")
            return
        threading.Thread(
            target=self._play_blocking, args=(sequence,), daemon=True, name="SoundCue"
        ).start()

    def _play_blocking(self, sequence) -> None:
        try:
            import sounddevice as sd

            sd.play(render_tones(sequence), TONE_SAMPLE_RATE, blocking=True)
        except Exception as e:
            logger.debug(f"Sound-Playback fehlgeschlagen: {e}")


class MacOSSoundPlayer:
    """System-Sounds via afplay."""

    def play(self, name: str) -> None:
        """Spielt benannten Sound ab."""
        sound_path = MACOS_SYSTEM_SOUNDS.get(name)
        if not sound_path:
            logger.warning(f"Unbekannter Sound: {name}")
            return
        try:
            subprocess.Popen(
                ["afplay", sound_path],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            logger.debug(f"afplay fehlgeschlagen: {e}")


class WindowsSoundPlayer:
    """Windows Sound-Playback via winsound.

    Nutzt Windows System-Sounds für konsistente UX.
    """

    def __init__(self) -> None:
        import winsound

        self._winsound = winsound

    def play(self, name: str) -> None:
        """Spielt benannten System-Sound ab."""
        sound_alias = WINDOWS_SYSTEM_SOUNDS.get(name)
        if not sound_alias:
            logger.warning(f"Unbekannter Sound: {name}")
            return

        try:
            # SND_ALIAS | SND_ASYNC für non-blocking Playback
            self._winsound.PlaySound(
                sound_alias, self._winsound.SND_ALIAS | self._winsound.SND_ASYNC
            )
        except RuntimeError as e:
            logger.debug(f"Sound-Playback fehlgeschlagen: {e}")


__all__ = [
    "CUES",
    "TONE_SEQUENCES",
    "ToneSoundPlayer",
    "MacOSSoundPlayer",
    "WindowsSoundPlayer",
    "render_tones",
]
