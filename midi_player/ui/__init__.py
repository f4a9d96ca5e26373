"""User interface layer."""

from .common import (
    PLAYLIST_COMMANDS,
    TOGGLE_COMMANDS,
    TRANSPORT_COMMANDS,
    format_position,
    locale_choices,
    locale_display_name,
    playback_status_text,
)
from .desktop_types import DesktopApp
from .tkinter_app import create_tkinter_app

__all__ = [
    "DesktopApp",
    "PLAYLIST_COMMANDS",
    "TOGGLE_COMMANDS",
    "TRANSPORT_COMMANDS",
    "create_tkinter_app",
    "format_position",
    "locale_choices",
    "locale_display_name",
    "playback_status_text",
]
