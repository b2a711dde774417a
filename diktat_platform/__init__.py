"""Platform-Abstraktion für Diktat.

Dieses Modul stellt plattformunabhängige Interfaces bereit und
lädt automatisch die richtige Implementierung für das aktuelle OS.

Usage:
    from diktat_platform import get_clipboard, get_control_channel

    clipboard = get_clipboard()
    clipboard.apply("Hello World")

    channel = get_control_channel("auto")
    channel.start(controller.submit, controller.status)
"""

import logging
import os
import sys

logger = logging.getLogger("diktat.platform")

CONTROL_MODES = ("auto", "signals", "socket")


def get_platform() -> str:
    """Ermittelt die aktuelle Plattform.

    Returns:
        'macos', 'windows' oder 'linux'

    Raises:
        RuntimeError: Bei nicht unterstützter Plattform
    """
    if sys.platform == "darwin":
        return "macos"
    elif sys.platform == "win32":
        return "windows"
    elif sys.platform.startswith("linux"):
        return "linux"
    raise RuntimeError(f"Nicht unterstützte Plattform: {sys.platform}")


def _is_wayland() -> bool:
    return bool(os.getenv("WAYLAND_DISPLAY")) or os.getenv("XDG_SESSION_TYPE") == "wayland"


def get_clipboard():
    """Factory für plattformspezifischen Clipboard-Handler."""
    platform = get_platform()
    if platform == "macos":
        from .clipboard import MacOSClipboard

        return MacOSClipboard()
    if platform == "linux" and _is_wayland():
        from .clipboard import WaylandClipboard

        return WaylandClipboard()
    from .clipboard import PyperclipClipboard

    return PyperclipClipboard()


def get_keystroke(tool: str | None = None):
    """Factory für Tastatureingabe.

    Args:
        tool: 'ydotool', 'wtype', 'xdotool' oder None (Auto-Erkennung)

    Raises:
        RuntimeError: Wenn unter Linux kein Tool gefunden wurde
    """
    from .keystroke import CommandKeystroke, PynputKeystroke, detect_keystroke_tool

    if tool:
        return CommandKeystroke(tool)
    if get_platform() == "linux":
        detected = detect_keystroke_tool()
        if detected is None:
            raise RuntimeError("Kein Keystroke-Tool gefunden (ydotool, wtype oder xdotool)")
        logger.debug(f"Keystroke-Tool: {detected}")
        return CommandKeystroke(detected)
    return PynputKeystroke()


def get_notifier():
    """Factory für Desktop-Benachrichtigungen."""
    platform = get_platform()
    if platform == "macos":
        from .notifier import MacOSNotifier

        return MacOSNotifier()
    if platform == "linux":
        from .notifier import NotifySendNotifier

        return NotifySendNotifier()
    raise NotImplementedError(f"Benachrichtigungen nicht implementiert für {platform}")


def get_sound_player():
    """Factory für plattformspezifischen Sound-Player."""
    platform = get_platform()
    if platform == "macos":
        from .sound import MacOSSoundPlayer

        return MacOSSoundPlayer()
    elif platform == "windows":
        from .sound import WindowsSoundPlayer

        return WindowsSoundPlayer()
    from .sound import ToneSoundPlayer

    return ToneSoundPlayer()


def get_process_control():
    """Factory für Liveness-Probe und Signal-Versand."""
    from .daemon import get_process_control as _get

    return _get()


def get_control_channel(mode: str = "auto", address=None):
    """Factory für den Control-Channel.

    Args:
        mode: 'auto' (POSIX: Signale + Socket, sonst Socket),
              'signals' oder 'socket'
        address: Socket-Pfad oder (host, port); None = Default

    Raises:
        ValueError: Bei unbekanntem Modus oder Signalen auf Windows
    """
    from .control import CompositeControlChannel, SignalControlChannel, SocketControlChannel

    if mode not in CONTROL_MODES:
        raise ValueError(f"Unbekannter Control-Modus: {mode}. Verfügbar: {', '.join(CONTROL_MODES)}")

    posix = get_platform() != "windows"
    if mode == "signals":
        if not posix:
            raise ValueError("Signal-Steuerung ist auf Windows nicht verfügbar")
        return SignalControlChannel()
    if mode == "socket" or not posix:
        return SocketControlChannel(address, install_interrupt=True)
    return CompositeControlChannel([SignalControlChannel(), SocketControlChannel(address)])


__all__ = [
    "CONTROL_MODES",
    "get_platform",
    "get_clipboard",
    "get_keystroke",
    "get_notifier",
    "get_sound_player",
    "get_process_control",
    "get_control_channel",
]
