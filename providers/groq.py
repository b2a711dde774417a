"""Groq Whisper Provider.

Nutzt Groq's LPU-Chips für extrem schnelle Whisper-Inferenz (~300x Echtzeit).
"""

import logging
import os
import threading

from config import DEFAULT_GROQ_MODEL
from core.errors import TranscriptionError
from utils.timing import log_preview, timed_operation

logger = logging.getLogger("diktat.providers.groq")

# Singleton Client
_client = None
_client_lock = threading.Lock()


def _get_client():
    """Gibt Groq-Client Singleton zurück (Lazy Init, Thread-Safe)."""
    global _client
    if _client is None:
        with _client_lock:
            if _client is None:
                from groq import Groq

                api_key = os.getenv("GROQ_API_KEY")
                if not api_key:
                    raise ValueError("GROQ_API_KEY nicht gesetzt")
                _client = Groq(api_key=api_key)
                logger.debug("Groq-Client initialisiert")
    return _client


class GroqProvider:
    """Groq Whisper Provider.

    Unterstützt:
        - whisper-large-v3 (beste Qualität)
        - whisper-large-v3-turbo (schneller)
    """

    name = "groq"
    default_model = DEFAULT_GROQ_MODEL

    def __init__(self, model: str | None = None, language: str | None = None) -> None:
        self.model = model or self.default_model
        self.language = language
        self._validated = False

    def validate(self) -> None:
        """Prüft ob API-Key gesetzt ist."""
        if self._validated:
            return
        if not os.getenv("GROQ_API_KEY"):
            raise ValueError(
                "GROQ_API_KEY nicht gesetzt. "
                "Registrierung unter https://console.groq.com (kostenlose Credits)"
            )
        self._validated = True

    def transcribe(self, audio, prompt: str = "") -> str:
        """Transkribiert Audio über Groq API.

        Raises:
            TranscriptionError: Bei API-Fehlern
        """
        from groq import GroqError

        from providers import audio_filename

        self.validate()

        logger.info(
            f"Groq: {self.model}, {audio.human_readable_size()}, lang={self.language or 'auto'}"
        )

        params = {
            "file": (audio_filename(audio), audio.data),
            "model": self.model,
            "response_format": "text",
            "temperature": 0.0,  # Konsistente Ergebnisse ohne Kreativität
        }
        if self.language:
            params["language"] = self.language
        if prompt:
            params["prompt"] = prompt

        try:
            with timed_operation("Groq-Transkription", logger=logger, include_session=False):
                response = _get_client().audio.transcriptions.create(**params)
        except GroqError as e:
            raise TranscriptionError(f"Groq: {e}") from e

        # Groq gibt bei response_format="text" String zurück
        if isinstance(response, str):
            result = response
        elif hasattr(response, "text"):
            result = response.text
        else:
            raise TranscriptionError(f"Unerwarteter Groq-Response-Typ: {type(response)}")

        logger.debug(f"Ergebnis: {log_preview(result)}")
        return result


__all__ = ["GroqProvider"]
