"""Shared CLI type definitions for Diktat.

Enums used by diktat.py and diktat_daemon.py.
"""

from enum import Enum


class TranscriptionMode(str, Enum):
    """Transkriptions-Provider."""

    openai = "openai"
    groq = "groq"
    gemini = "gemini"


class Domain(str, Enum):
    """Domänen-Presets für den Transkriptions-Prompt."""

    general = "general"
    dev = "dev"
    medical = "medical"
    legal = "legal"
    finance = "finance"


class ControlMode(str, Enum):
    """Steuerkanäle des Daemons."""

    auto = "auto"
    signals = "signals"
    socket = "socket"


class KeystrokeTool(str, Enum):
    """Tools für Tastatureingabe (Linux)."""

    ydotool = "ydotool"
    wtype = "wtype"
    xdotool = "xdotool"
