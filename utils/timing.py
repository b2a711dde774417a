"""Zeitmessung und Dauer-Formate für Diktat.

Context Manager für Performance-Tracking, Parser für Dauer-Angaben
("30s", "1m", "2m30s") und die Progress-Anzeige des Daemons.
"""

import re
import time
from contextlib import contextmanager

from .logging import get_logger, get_session_id

# "2m30s", "90s", "1m", "45" (Sekunden), optional mit Nachkommastellen
_DURATION_RE = re.compile(
    r"^\s*(?:(?P<minutes>\d+(?:\.\d+)?)m)?\s*(?:(?P<seconds>\d+(?:\.\d+)?)s?)?\s*$"
)

PROGRESS_BAR_WIDTH = 20


def format_duration(milliseconds: float) -> str:
    """Formatiert Dauer menschenlesbar: ms für kurze, s für längere Zeiten."""
    if milliseconds >= 1000:
        return f"{milliseconds / 1000:.2f}s"
    return f"{milliseconds:.0f}ms"


def parse_duration(value: str) -> float:
    """Parst eine Dauer-Angabe in Sekunden.

    Akzeptiert "30s", "1m", "2m30s" oder eine reine Zahl (Sekunden).

    Raises:
        ValueError: Bei leerer, unbekannter oder nicht-positiver Angabe
    """
    match = _DURATION_RE.match(value or "")
    if not match or not (match.group("minutes") or match.group("seconds")):
        raise ValueError(f"Ungültige Dauer: {value!r} (erwartet z.B. 30s, 1m, 2m30s)")

    # "1m30" ohne Einheit am Ende ist mehrdeutig
    if match.group("minutes") and match.group("seconds"):
        if not value.strip().endswith("s"):
            raise ValueError(f"Ungültige Dauer: {value!r} (Sekunden mit 's' angeben)")

    total = float(match.group("minutes") or 0) * 60 + float(match.group("seconds") or 0)
    if total <= 0:
        raise ValueError(f"Dauer muss positiv sein: {value!r}")
    return total


def format_seconds(seconds: float) -> str:
    """Formatiert Sekunden kompakt: "45s", "1m", "2m30s"."""
    total = int(round(seconds))
    minutes, secs = divmod(total, 60)
    if minutes and secs:
        return f"{minutes}m{secs}s"
    if minutes:
        return f"{minutes}m"
    return f"{secs}s"


def format_progress(elapsed: float, total: float, width: int = PROGRESS_BAR_WIDTH) -> str:
    """Rendert eine Progress-Zeile: ``[████░░░░]  12s / 60s``."""
    ratio = 0.0 if total <= 0 else min(max(elapsed / total, 0.0), 1.0)
    filled = int(ratio * width)
    bar = "█" * filled + "░" * (width - filled)
    return f"[{bar}] {int(elapsed):3d}s / {int(total)}s"


def log_preview(text: str, max_length: int = 100) -> str:
    """Kürzt Text für Log-Ausgabe mit Ellipsis wenn nötig."""
    if len(text) <= max_length:
        return text
    return f"{text[:max_length]}..."


@contextmanager
def timed_operation(
    name: str,
    *,
    logger=None,
    include_session: bool = True,
):
    """Kontextmanager für Zeitmessung mit automatischem Logging.

    Args:
        name: Name der Operation (Log-Label).
        logger: Optionaler Logger. Default: diktat Root-Logger.
        include_session: Wenn False, wird keine Session-ID vorangestellt.

    Usage:
        with timed_operation("API-Call"):
            response = api.call()
    """
    op_logger = logger or get_logger()
    session_id = get_session_id() if include_session else ""
    prefix = f"[{session_id}] " if session_id else ""
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        op_logger.info(f"{prefix}{name}: {format_duration(elapsed_ms)}")
