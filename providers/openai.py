"""OpenAI Transcription API Provider.

Nutzt die OpenAI Transcription API mit gpt-4o-transcribe oder whisper-1.
"""

import logging
import os
import threading

from config import DEFAULT_OPENAI_MODEL
from core.errors import TranscriptionError
from utils.timing import log_preview, timed_operation

logger = logging.getLogger("diktat.providers.openai")

# Singleton Client
_client = None
_client_lock = threading.Lock()


def _get_client():
    """Gibt OpenAI-Client Singleton zurück (Lazy Init, Thread-Safe)."""
    global _client
    if _client is None:
        with _client_lock:
            if _client is None:  # Double-check nach Lock
                from openai import OpenAI

                _client = OpenAI()  # Nutzt OPENAI_API_KEY automatisch
                logger.debug("OpenAI-Client initialisiert")
    return _client


class OpenAIProvider:
    """OpenAI Transcription API Provider.

    Unterstützt:
        - gpt-4o-transcribe (beste Qualität)
        - gpt-4o-mini-transcribe (schneller, günstiger)
        - whisper-1 (original Whisper)
    """

    name = "openai"
    default_model = DEFAULT_OPENAI_MODEL

    def __init__(self, model: str | None = None, language: str | None = None) -> None:
        self.model = model or self.default_model
        self.language = language
        # API-Key Validierung beim ersten Aufruf
        self._validated = False

    def validate(self) -> None:
        """Prüft ob API-Key gesetzt ist."""
        if self._validated:
            return
        if not os.getenv("OPENAI_API_KEY"):
            raise ValueError(
                "OPENAI_API_KEY nicht gesetzt. "
                "Bitte `export OPENAI_API_KEY='sk-...'` ausführen."
            )
        self._validated = True

    def transcribe(self, audio, prompt: str = "") -> str:
        """Transkribiert Audio über die OpenAI API.

        Args:
            audio: AudioBlob (FLAC/WAV)
            prompt: Kontext-Prompt (Domäne, Fachbegriffe)

        Returns:
            Transkribierter Text

        Raises:
            TranscriptionError: Bei API-Fehlern
        """
        from openai import OpenAIError

        from providers import audio_filename

        self.validate()

        logger.info(
            f"OpenAI: {self.model}, {audio.human_readable_size()}, lang={self.language or 'auto'}"
        )

        params = {
            "model": self.model,
            "file": (audio_filename(audio), audio.data, audio.mime_type),
            "response_format": "text",
        }
        if self.language:
            params["language"] = self.language
        if prompt:
            params["prompt"] = prompt

        try:
            with timed_operation("OpenAI-Transkription", logger=logger, include_session=False):
                response = _get_client().audio.transcriptions.create(**params)
        except OpenAIError as e:
            raise TranscriptionError(f"OpenAI: {e}") from e

        # API gibt bei format="text" String zurück, sonst Objekt
        result = response if isinstance(response, str) else getattr(response, "text", "")
        logger.debug(f"Ergebnis: {log_preview(result)}")
        return result


__all__ = ["OpenAIProvider"]
