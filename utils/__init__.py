"""Utility-Module für Diktat.

Gemeinsame Hilfsfunktionen für Logging und Zeitmessung.

Usage:
    from utils import setup_logging, log, error, timed_operation

    setup_logging(debug=True)
    with timed_operation("API-Call"):
        do_something()
"""

# NOTE:
# Keep this package-level re-export module intentionally small.
# Avoid importing modules here that in turn import `config`, otherwise we can
# end up with circular imports during app startup.

from .logging import setup_logging, log, error, get_logger, get_session_id
from .timing import timed_operation, format_duration, log_preview

__all__ = [
    "setup_logging",
    "log",
    "error",
    "get_logger",
    "get_session_id",
    "timed_operation",
    "log_preview",
    "format_duration",
]
