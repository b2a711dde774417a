"""Zentrale Konfiguration für Diktat.

Gemeinsame Konstanten für Audio, Daemon-Steuerung und IPC.
Vermeidet Duplikation zwischen Modulen.
"""

import os
import tempfile
from pathlib import Path

# =============================================================================
# Audio-Konfiguration
# =============================================================================

# Whisper-Modelle erwarten 16kHz Mono – andere Sampleraten verschlechtern Ergebnisse
SAMPLE_RATE = 16000
CHANNELS = 1
BLOCKSIZE = 1024

# FLAC ist verlustfrei und ~50% kleiner als WAV (schnellerer Upload)
AUDIO_FORMAT = "FLAC"
AUDIO_MIME_TYPES = {
    "FLAC": "audio/flac",
    "WAV": "audio/wav",
    "OGG": "audio/ogg",
}

VAD_THRESHOLD = 0.015  # RMS-Schwelle für Silence-Trimming

# =============================================================================
# Daemon-Konfiguration
# =============================================================================

DEFAULT_MAX_DURATION = 60.0  # Sekunden, Watchdog-Limit pro Aufnahme
DEFAULT_RECORD_DURATION = 10.0  # Sekunden, One-Shot-Aufnahme (diktat record)
PROGRESS_INTERVAL = 0.5  # Sekunden zwischen Progress-Callbacks des Recorders
COMMAND_QUEUE_SIZE = 16  # Bounded Queue zwischen Control-Channel und Controller
LOOP_POLL_INTERVAL = 0.2  # Main-Thread Join-Intervall (Signale bleiben zustellbar)
WORKER_JOIN_TIMEOUT = 30.0  # Max. Warten auf ProcessingWorker beim Beenden

# Signal-Mapping (POSIX): USR1 = Toggle, USR2 = Cancel, INT/TERM = Shutdown
TOGGLE_SIGNAL = "SIGUSR1"
CANCEL_SIGNAL = "SIGUSR2"
SHUTDOWN_SIGNALS = ("SIGINT", "SIGTERM")

# =============================================================================
# Default-Modelle
# =============================================================================

DEFAULT_MODE = "openai"
DEFAULT_OPENAI_MODEL = "gpt-4o-transcribe"
DEFAULT_GROQ_MODEL = "whisper-large-v3"
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_DOMAIN = "general"

# =============================================================================
# IPC-Dateipfade
# =============================================================================

TEMP_DIR = Path(tempfile.gettempdir())

# Lock-Datei mit der PID des laufenden Daemons (Single-Instance-Guard)
PID_FILE = Path(os.getenv("DIKTAT_PID_FILE") or TEMP_DIR / "diktat.pid")

# Unix Domain Socket für Steuerbefehle (toggle/cancel/status)
_RUNTIME_DIR = Path(os.getenv("XDG_RUNTIME_DIR") or TEMP_DIR)
SOCKET_FILE = Path(os.getenv("DIKTAT_SOCKET") or _RUNTIME_DIR / "diktat.sock")

# Fallback ohne AF_UNIX (Windows): Loopback-TCP
IPC_HOST = "127.0.0.1"
IPC_PORT = 47653
IPC_TIMEOUT = 2.0  # Sekunden, Client-Timeout für Antworten
IPC_MAX_LINE = 256  # Bytes pro Befehlszeile

# =============================================================================
# Lokale Pfade
# =============================================================================

# User-Verzeichnis für Konfiguration und Logs
USER_CONFIG_DIR = Path.home() / ".diktat"
USER_CONFIG_DIR.mkdir(parents=True, exist_ok=True)

LOG_DIR = USER_CONFIG_DIR / "logs"
LOG_DIR.mkdir(parents=True, exist_ok=True)
LOG_FILE = LOG_DIR / "diktat.log"


__all__ = [
    # Audio
    "SAMPLE_RATE",
    "CHANNELS",
    "BLOCKSIZE",
    "AUDIO_FORMAT",
    "AUDIO_MIME_TYPES",
    "VAD_THRESHOLD",
    # Daemon
    "DEFAULT_MAX_DURATION",
    "DEFAULT_RECORD_DURATION",
    "PROGRESS_INTERVAL",
    "COMMAND_QUEUE_SIZE",
    "LOOP_POLL_INTERVAL",
    "WORKER_JOIN_TIMEOUT",
    "TOGGLE_SIGNAL",
    "CANCEL_SIGNAL",
    "SHUTDOWN_SIGNALS",
    # Models
    "DEFAULT_MODE",
    "DEFAULT_OPENAI_MODEL",
    "DEFAULT_GROQ_MODEL",
    "DEFAULT_GEMINI_MODEL",
    "DEFAULT_DOMAIN",
    # IPC
    "TEMP_DIR",
    "PID_FILE",
    "SOCKET_FILE",
    "IPC_HOST",
    "IPC_PORT",
    "IPC_TIMEOUT",
    "IPC_MAX_LINE",
    # Paths
    "USER_CONFIG_DIR",
    "LOG_DIR",
    "LOG_FILE",
]
