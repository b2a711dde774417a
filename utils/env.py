""".env-Dateien und Umgebungsvariablen.

Reihenfolge beim Laden (erste Quelle gewinnt):
1) Prozess-Umgebung (`os.environ`)
2) User-Konfiguration `~/.diktat/.env` (auch Ziel von `diktat config set`)
3) Projekt-`.env` im aktuellen Verzeichnis
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import dotenv_values

logger = logging.getLogger("diktat")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def parse_bool(value: str | None) -> bool | None:
    """Interpretiert true/false, yes/no, on/off, 1/0. None wenn unbekannt."""
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    return None


def user_env_file() -> Path:
    """Pfad der User-`.env` (zur Laufzeit aus config gelesen, Tests patchen ihn)."""
    from config import USER_CONFIG_DIR

    return USER_CONFIG_DIR / ".env"


def _read_env_file(path: Path) -> dict[str, str]:
    if not path.exists():
        return {}
    return {str(k): str(v) for k, v in dotenv_values(path).items() if v is not None}


def load_environment() -> None:
    """Übernimmt `.env`-Werte in `os.environ`, ohne gesetzte Variablen zu überschreiben."""
    merged = _read_env_file(Path(".env"))
    merged.update(_read_env_file(user_env_file()))

    loaded = [key for key in merged if key not in os.environ]
    for key in loaded:
        os.environ[key] = merged[key]
    if loaded:
        logger.debug(f".env geladen: {', '.join(sorted(loaded))}")


__all__ = ["load_environment", "parse_bool", "user_env_file"]
