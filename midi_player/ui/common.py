"""UI-neutral helpers shared by desktop UI implementations."""
from __future__ import annotations

from ..constants import APP_TITLE, AVAILABLE_LOCALES, MIDI_FILE_SUFFIXES
from ..domain.player import PlaybackState
from ..utils import format_duration

TRANSPORT_COMMANDS: tuple[str, ...] = (
    "previousSong",
    "playSong",
    "pauseSong",
    "stopSong",
    "nextSong",
)
PLAYLIST_COMMANDS: tuple[str, ...] = (
    "loadMidiFile",
    "removeSong",
    "shufflePlaylist",
    "sortPlaylist",
    "clearPlaylist",
)
TOGGLE_COMMANDS: tuple[str, ...] = ("loopSong", "loopPlaylist")

LOCALE_DEFAULT_NAMES = {
    "en_US": "English (United States)",
    "fr_FR": "Français (France)",
}

_STATE_DEFAULTS = {
    PlaybackState.STOPPED: "Stopped",
    PlaybackState.PLAYING: "Playing {0}",
    PlaybackState.PAUSED: "Paused {0}",
}


def window_title(catalog) -> str:
    return catalog.get_message("midiplayer.frame.title", default=APP_TITLE)


def locale_display_name(catalog, locale: str) -> str:
    return catalog.get_message(
        f"midiplayer.locale.{locale}",
        default=LOCALE_DEFAULT_NAMES.get(locale, locale),
    )


def locale_choices(catalog, locales: tuple[str, ...] = AVAILABLE_LOCALES) -> list[tuple[str, str]]:
    """Return (display name, locale) pairs in catalog order."""
    return [(locale_display_name(catalog, locale), locale) for locale in locales]


def playback_status_text(catalog, state: PlaybackState, track_name: str = "") -> str:
    return catalog.get_message(
        f"midiplayer.frame.status.{state.value}",
        track_name,
        default=_STATE_DEFAULTS[state],
    )


def format_position(current_ms: int, length_ms: int) -> str:
    """Render "m:ss / m:ss", or an empty string when nothing is loaded."""
    if length_ms <= 0:
        return ""
    current = format_duration(max(0, current_ms) / 1000.0)
    total = format_duration(length_ms / 1000.0)
    return f"{current} / {total}"


def midi_file_types(catalog) -> list[tuple[str, str]]:
    patterns = " ".join(f"*{suffix}" for suffix in MIDI_FILE_SUFFIXES)
    return [
        (catalog.get_message("midiplayer.frame.file_chooser.midi", default="MIDI files"), patterns),
        (catalog.get_message("midiplayer.frame.file_chooser.all", default="All files"), "*"),
    ]
