"""CLI module for Diktat."""

from .types import (
    TranscriptionMode,
    Domain,
    ControlMode,
    KeystrokeTool,
)

__all__ = [
    "TranscriptionMode",
    "Domain",
    "ControlMode",
    "KeystrokeTool",
]
