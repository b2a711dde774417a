"""Audio-Modul für Diktat.

Bietet die Mikrofon-Aufnahme für den Daemon.

Usage:
    from audio import DaemonRecorder

    recorder = DaemonRecorder()
    recorder.start(60.0, on_progress, on_deadline)
    # ... später ...
    audio = recorder.stop_and_finalize()
"""

from .recording import DaemonRecorder, encode_audio, load_audio_file, trim_silence

__all__ = ["DaemonRecorder", "encode_audio", "load_audio_file", "trim_silence"]
