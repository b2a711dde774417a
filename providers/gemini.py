"""Google Gemini Provider.

Gemini transkribiert multimodal: das Audio geht als Inline-Part in den Request,
der Domänen-Prompt als System-Instruktion.
"""

import logging
import os
import threading

from config import DEFAULT_GEMINI_MODEL
from core.errors import TranscriptionError
from utils.timing import log_preview, timed_operation

logger = logging.getLogger("diktat.providers.gemini")

USER_INSTRUCTION = "Transcribe this audio."

# Singleton Client
_client = None
_client_lock = threading.Lock()


def _get_client():
    """Gibt Gemini-Client Singleton zurück (Lazy Init, Thread-Safe)."""
    global _client
    if _client is None:
        with _client_lock:
            if _client is None:
                from google import genai

                api_key = os.getenv("GEMINI_API_KEY")
                if not api_key:
                    raise ValueError("GEMINI_API_KEY nicht gesetzt")
                _client = genai.Client(api_key=api_key)
                logger.debug("Gemini-Client initialisiert")
    return _client


class GeminiProvider:
    """Gemini Provider (gemini-2.5-flash, gemini-2.5-flash-lite, ...)."""

    name = "gemini"
    default_model = DEFAULT_GEMINI_MODEL

    def __init__(self, model: str | None = None, language: str | None = None) -> None:
        self.model = model or self.default_model
        self.language = language
        self._validated = False

    def validate(self) -> None:
        """Prüft ob API-Key gesetzt ist."""
        if self._validated:
            return
        if not os.getenv("GEMINI_API_KEY"):
            raise ValueError(
                "GEMINI_API_KEY nicht gesetzt. "
                "API-Key unter https://aistudio.google.com/apikey erstellen."
            )
        self._validated = True

    def _user_instruction(self) -> str:
        if self.language:
            return f"{USER_INSTRUCTION} The spoken language is '{self.language}'."
        return USER_INSTRUCTION

    def transcribe(self, audio, prompt: str = "") -> str:
        """Transkribiert Audio über die Gemini API.

        Raises:
            TranscriptionError: Bei API-Fehlern oder leerer Antwort
        """
        from google.genai import errors, types

        self.validate()

        logger.info(
            f"Gemini: {self.model}, {audio.human_readable_size()}, lang={self.language or 'auto'}"
        )

        contents = [
            types.Part.from_bytes(data=audio.data, mime_type=audio.mime_type),
            self._user_instruction(),
        ]
        config = types.GenerateContentConfig(
            system_instruction=prompt or None,
            # Transkription braucht kein Reasoning, spart Latenz
            thinking_config=types.ThinkingConfig(thinking_budget=0),
        )

        try:
            with timed_operation("Gemini-Transkription", logger=logger, include_session=False):
                response = _get_client().models.generate_content(
                    model=self.model, contents=contents, config=config
                )
        except errors.APIError as e:
            raise TranscriptionError(f"Gemini: {e}") from e

        result = (response.text or "").strip()
        if not result:
            raise TranscriptionError("Gemini: leere Antwort")
        logger.debug(f"Ergebnis: {log_preview(result)}")
        return result


__all__ = ["GeminiProvider"]
