"""Transkriptions-Provider für Diktat.

Dieses Modul stellt ein einheitliches Interface für alle Transkriptions-Provider bereit.

Usage:
    from providers import get_transcriber

    transcriber = get_transcriber("openai", language="de")
    text = transcriber.transcribe(audio, prompt)

Unterstützte Provider:
    - openai: OpenAI Transcription API (gpt-4o-transcribe)
    - groq: Groq Whisper auf LPU
    - gemini: Google Gemini (multimodal, Prompt als System-Instruktion)
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from core.ports import AudioBlob, Transcriber

# Defaults zentral in config.py halten (vermeidet Drift)
from config import DEFAULT_GEMINI_MODEL, DEFAULT_GROQ_MODEL, DEFAULT_OPENAI_MODEL

# Default-Modelle pro Provider
DEFAULT_MODELS = {
    "openai": DEFAULT_OPENAI_MODEL,
    "groq": DEFAULT_GROQ_MODEL,
    "gemini": DEFAULT_GEMINI_MODEL,
}

PROVIDERS = tuple(DEFAULT_MODELS)

_EXTENSIONS = {
    "audio/flac": "flac",
    "audio/wav": "wav",
    "audio/ogg": "ogg",
    "audio/mpeg": "mp3",
}


def audio_filename(audio: "AudioBlob") -> str:
    """Dateiname für Multipart-Uploads (Endung bestimmt das Format)."""
    return f"recording.{_EXTENSIONS.get(audio.mime_type, 'flac')}"


def get_transcriber(
    mode: str,
    model: str | None = None,
    language: str | None = None,
) -> "Transcriber":
    """Factory für Transkriptions-Provider.

    Args:
        mode: Provider-Name ('openai', 'groq', 'gemini')
        model: Modell oder None für das Provider-Default
        language: Sprachcode oder None für Auto-Detection

    Returns:
        Transcriber-Implementierung

    Raises:
        ValueError: Bei unbekanntem Provider
    """
    if mode == "openai":
        from .openai import OpenAIProvider

        return OpenAIProvider(model=model, language=language)
    elif mode == "groq":
        from .groq import GroqProvider

        return GroqProvider(model=model, language=language)
    elif mode == "gemini":
        from .gemini import GeminiProvider

        return GeminiProvider(model=model, language=language)
    else:
        raise ValueError(f"Unbekannter Provider: {mode}")


def get_default_model(mode: str) -> str:
    """Gibt das Default-Modell für einen Provider zurück."""
    return DEFAULT_MODELS.get(mode, DEFAULT_OPENAI_MODEL)


__all__ = [
    "get_transcriber",
    "get_default_model",
    "audio_filename",
    "DEFAULT_MODELS",
    "PROVIDERS",
]
