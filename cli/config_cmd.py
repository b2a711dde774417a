"""`diktat config`: Einstellungen in ~/.diktat/.env verwalten.

Schlüssel sind Kurzformen der Umgebungsvariablen (`domain` → `DIKTAT_DOMAIN`).
Werte werden vor dem Schreiben geprüft, API-Keys nur maskiert angezeigt.

Usage:
    diktat config init
    diktat config set max_duration 2m
    diktat config get openai_api_key
    diktat config list
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable

import typer
from dotenv import dotenv_values, set_key

from cli.types import ControlMode, Domain, KeystrokeTool, TranscriptionMode
from config import DEFAULT_DOMAIN, DEFAULT_MAX_DURATION, DEFAULT_MODE, DEFAULT_RECORD_DURATION
from utils.env import parse_bool, user_env_file
from utils.logging import error, log
from utils.timing import format_seconds, parse_duration

NOT_SET = "(not set)"

config_app = typer.Typer(
    help="Einstellungen in ~/.diktat/.env verwalten",
    no_args_is_help=True,
)


# =============================================================================
# Validierung
# =============================================================================


def _any(value: str) -> str:
    if not value.strip():
        raise ValueError("Wert darf nicht leer sein")
    return value.strip()


def _bool(value: str) -> str:
    parsed = parse_bool(value)
    if parsed is None:
        raise ValueError("Wert muss 'true' oder 'false' sein")
    return "true" if parsed else "false"


def _duration(value: str) -> str:
    parse_duration(value)
    return value.strip()


def _choice(enum_type: type[Enum]) -> Callable[[str], str]:
    def validate(value: str) -> str:
        normalized = value.strip().lower()
        choices = [member.value for member in enum_type]
        if normalized not in choices:
            raise ValueError(f"Ungültiger Wert '{value}'. Erlaubt: {', '.join(choices)}")
        return normalized

    return validate


@dataclass(frozen=True)
class ConfigKey:
    env_name: str
    validate: Callable[[str], str]
    secret: bool = False


CONFIG_KEYS: dict[str, ConfigKey] = {
    "mode": ConfigKey("DIKTAT_MODE", _choice(TranscriptionMode)),
    "model": ConfigKey("DIKTAT_MODEL", _any),
    "language": ConfigKey("DIKTAT_LANGUAGE", _any),
    "domain": ConfigKey("DIKTAT_DOMAIN", _choice(Domain)),
    "duration": ConfigKey("DIKTAT_DURATION", _duration),
    "max_duration": ConfigKey("DIKTAT_MAX_DURATION", _duration),
    "clipboard": ConfigKey("DIKTAT_CLIPBOARD", _bool),
    "keystroke": ConfigKey("DIKTAT_KEYSTROKE", _bool),
    "keystroke_tool": ConfigKey("DIKTAT_KEYSTROKE_TOOL", _choice(KeystrokeTool)),
    "notify": ConfigKey("DIKTAT_NOTIFY", _bool),
    "sound": ConfigKey("DIKTAT_SOUND", _bool),
    "control": ConfigKey("DIKTAT_CONTROL", _choice(ControlMode)),
    "trim_silence": ConfigKey("DIKTAT_TRIM_SILENCE", _bool),
    "voice_commands": ConfigKey("DIKTAT_VOICE_COMMANDS", _bool),
    "openai_api_key": ConfigKey("OPENAI_API_KEY", _any, secret=True),
    "groq_api_key": ConfigKey("GROQ_API_KEY", _any, secret=True),
    "gemini_api_key": ConfigKey("GEMINI_API_KEY", _any, secret=True),
}

# Von `config init` geschrieben
INIT_DEFAULTS = {
    "mode": DEFAULT_MODE,
    "domain": DEFAULT_DOMAIN,
    "duration": format_seconds(DEFAULT_RECORD_DURATION),
    "max_duration": format_seconds(DEFAULT_MAX_DURATION),
    "clipboard": "false",
    "keystroke": "false",
    "notify": "false",
}


def mask_secret(value: str) -> str:
    """Zeigt nur die ersten und letzten 4 Zeichen, kurze Werte komplett maskiert."""
    if len(value) <= 8:
        return "*" * len(value)
    return f"{value[:4]}...{value[-4:]}"


def _lookup(key: str) -> ConfigKey:
    entry = CONFIG_KEYS.get(key.lower())
    if entry is None:
        error(f"Unbekannter Schlüssel '{key}'. Gültig: {', '.join(CONFIG_KEYS)}")
        raise typer.Exit(1)
    return entry


def _read_values() -> dict[str, str | None]:
    path = user_env_file()
    return dotenv_values(path) if path.exists() else {}


def _display(entry: ConfigKey, value: str | None) -> str:
    if value is None:
        return NOT_SET
    return mask_secret(value) if entry.secret else value


# =============================================================================
# Befehle
# =============================================================================


@config_app.command()
def init() -> None:
    """Legt die Konfigurationsdatei mit Standardwerten an."""
    path = user_env_file()
    if path.exists():
        error(f"Konfiguration existiert bereits: {path}")
        raise typer.Exit(1)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.touch(mode=0o600)
    for key, value in INIT_DEFAULTS.items():
        set_key(path, CONFIG_KEYS[key].env_name, value, quote_mode="auto")
    log(f"✅ Konfiguration angelegt: {path}")


@config_app.command("set")
def set_value(
    key: str = typer.Argument(..., help="Schlüssel, z.B. domain"),
    value: str = typer.Argument(..., help="Neuer Wert"),
) -> None:
    """Setzt einen Wert (wird vorher geprüft)."""
    entry = _lookup(key)
    try:
        normalized = entry.validate(value)
    except ValueError as e:
        error(f"{key}: {e}")
        raise typer.Exit(1)

    path = user_env_file()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.touch(mode=0o600, exist_ok=True)
    set_key(path, entry.env_name, normalized, quote_mode="auto")
    log(f"✅ {key.lower()} = {_display(entry, normalized)}")


@config_app.command("get")
def get_value(key: str = typer.Argument(..., help="Schlüssel, z.B. domain")) -> None:
    """Zeigt einen Wert (API-Keys maskiert)."""
    entry = _lookup(key)
    print(_display(entry, _read_values().get(entry.env_name)))


@config_app.command("list")
def list_values() -> None:
    """Zeigt alle Schlüssel mit ihren Werten."""
    values = _read_values()
    for key, entry in CONFIG_KEYS.items():
        print(f"{key} = {_display(entry, values.get(entry.env_name))}")


@config_app.command("path")
def show_path() -> None:
    """Zeigt den Pfad der Konfigurationsdatei."""
    print(user_env_file())


__all__ = ["CONFIG_KEYS", "config_app", "mask_secret"]
