"""Audio-Aufnahme für Diktat.

Mikrofon-Aufnahme mit sounddevice, Kodierung mit soundfile.
Der DaemonRecorder erfüllt den Recorder-Port des Controllers.
"""

import io
import logging
import threading
import time

from config import (
    AUDIO_FORMAT,
    AUDIO_MIME_TYPES,
    BLOCKSIZE,
    CHANNELS,
    PROGRESS_INTERVAL,
    SAMPLE_RATE,
    VAD_THRESHOLD,
)
from core.errors import RecordingError
from core.ports import AudioBlob
from utils.logging import get_session_id

logger = logging.getLogger("diktat.audio")


def trim_silence(data, threshold: float, sample_rate: int, pad_s: float = 0.15):
    """Schneidet Stille am Anfang/Ende ab (RMS über kurze Fenster)."""
    import numpy as np

    mono = data.squeeze()
    if mono.ndim != 1:
        mono = mono.reshape(-1)
    window = int(sample_rate * 0.02)  # 20ms
    hop = int(sample_rate * 0.01)  # 10ms
    if mono.shape[0] <= window:
        return mono.astype(np.float32, copy=False)
    frame_count = (mono.shape[0] - window) // hop + 1
    strides = (mono.strides[0] * hop, mono.strides[0])
    frames = np.lib.stride_tricks.as_strided(
        mono, shape=(frame_count, window), strides=strides
    )
    rms = np.sqrt(np.mean(frames**2, axis=1))
    active = rms > threshold
    if not np.any(active):
        return mono.astype(np.float32, copy=False)
    first = int(np.argmax(active))
    last = int(len(active) - np.argmax(active[::-1]) - 1)
    start = max(0, first * hop - int(pad_s * sample_rate))
    end = min(mono.shape[0], last * hop + window + int(pad_s * sample_rate))
    return mono[start:end].astype(np.float32, copy=False)


def encode_audio(data, sample_rate: int, audio_format: str = AUDIO_FORMAT) -> AudioBlob:
    """Kodiert float32-Samples (FLAC/WAV/OGG) in einen AudioBlob."""
    import soundfile as sf

    buffer = io.BytesIO()
    sf.write(buffer, data, sample_rate, format=audio_format)
    return AudioBlob(
        data=buffer.getvalue(),
        mime_type=AUDIO_MIME_TYPES.get(audio_format, "application/octet-stream"),
        duration=len(data) / sample_rate,
    )


def load_audio_file(path) -> AudioBlob:
    """Liest eine Audiodatei für die One-Shot-Transkription."""
    import soundfile as sf

    try:
        info = sf.info(str(path))
    except RuntimeError as e:
        raise RecordingError(f"Audiodatei nicht lesbar: {path} ({e})") from e
    mime_type = AUDIO_MIME_TYPES.get(info.format, "application/octet-stream")
    with open(path, "rb") as f:
        data = f.read()
    return AudioBlob(data=data, mime_type=mime_type, duration=info.duration)


class DaemonRecorder:
    """Mikrofon-Aufnahme mit Progress-Thread und eigener Deadline.

    Usage:
        recorder = DaemonRecorder()
        recorder.start(60.0, on_progress, on_deadline)
        # ... später ...
        audio = recorder.stop_and_finalize()
    """

    def __init__(
        self,
        sample_rate: int = SAMPLE_RATE,
        channels: int = CHANNELS,
        blocksize: int = BLOCKSIZE,
        trim: bool = True,
        progress_interval: float = PROGRESS_INTERVAL,
    ):
        self.sample_rate = sample_rate
        self.channels = channels
        self.blocksize = blocksize
        self.trim = trim
        self.progress_interval = progress_interval

        self._chunks: list = []
        self._chunks_lock = threading.Lock()
        self._stream = None
        self._recording_start: float = 0
        self._stop_event = threading.Event()
        self._progress_thread: threading.Thread | None = None

    def is_recording(self) -> bool:
        """True wenn aktuell aufgenommen wird."""
        return self._stream is not None

    def _audio_callback(self, indata, _frames, _time_info, status):
        """Callback: Sammelt Audio-Chunks während der Aufnahme."""
        if status:
            logger.debug(f"[{get_session_id()}] Audio-Status: {status}")
        with self._chunks_lock:
            self._chunks.append(indata.copy())

    def start(self, max_duration: float, on_progress, on_deadline) -> None:
        import sounddevice as sd

        if self._stream is not None:
            raise RecordingError("Aufnahme läuft bereits")

        with self._chunks_lock:
            self._chunks = []
        self._stop_event.clear()
        self._recording_start = time.monotonic()

        try:
            stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                blocksize=self.blocksize,
                dtype="float32",
                callback=self._audio_callback,
            )
        except (sd.PortAudioError, ValueError) as e:
            raise RecordingError(f"Mikrofon nicht verfügbar: {e}") from e
        try:
            stream.start()
        except (sd.PortAudioError, ValueError) as e:
            stream.close()
            raise RecordingError(f"Mikrofon nicht startbar: {e}") from e
        self._stream = stream

        self._progress_thread = threading.Thread(
            target=self._progress_loop,
            args=(max_duration, on_progress, on_deadline),
            daemon=True,
            name="RecordingProgress",
        )
        self._progress_thread.start()
        logger.info(f"[{get_session_id()}] Mikrofon geöffnet ({self.sample_rate} Hz)")

    def _progress_loop(self, max_duration: float, on_progress, on_deadline) -> None:
        while not self._stop_event.wait(self.progress_interval):
            elapsed = time.monotonic() - self._recording_start
            on_progress(min(elapsed, max_duration), max_duration)
            if elapsed >= max_duration:
                on_deadline()
                return

    def _close_stream(self) -> None:
        self._stop_event.set()
        stream, self._stream = self._stream, None
        if stream is not None:
            try:
                stream.stop()
                stream.close()
            except Exception as e:
                raise RecordingError(f"Audio-Stream nicht geschlossen: {e}") from e
            finally:
                thread, self._progress_thread = self._progress_thread, None
                if thread is not None and thread is not threading.current_thread():
                    thread.join(timeout=1.0)

    def stop_and_finalize(self) -> AudioBlob:
        """Stoppt die Aufnahme und liefert das kodierte Audio.

        Raises:
            RecordingError: Wenn keine Audiodaten aufgenommen wurden
        """
        import numpy as np

        self._close_stream()
        duration = time.monotonic() - self._recording_start
        logger.info(f"[{get_session_id()}] Aufnahme: {duration:.1f}s")

        with self._chunks_lock:
            chunks, self._chunks = self._chunks, []
        if not chunks:
            raise RecordingError("Keine Audiodaten aufgenommen")

        data = np.concatenate(chunks)
        if self.trim:
            before = len(data)
            data = trim_silence(data, VAD_THRESHOLD, self.sample_rate)
            logger.debug(f"[{get_session_id()}] Stille entfernt: {before} -> {len(data)} Samples")

        try:
            return encode_audio(data, self.sample_rate)
        except (RuntimeError, ValueError) as e:
            raise RecordingError(f"Audio-Kodierung fehlgeschlagen: {e}") from e

    def cancel(self) -> None:
        """Verwirft die laufende Aufnahme."""
        try:
            self._close_stream()
        finally:
            with self._chunks_lock:
                self._chunks = []
        logger.info(f"[{get_session_id()}] Aufnahme verworfen")


__all__ = ["DaemonRecorder", "encode_audio", "load_audio_file", "trim_silence"]
