"""Shared constants for the MIDI player."""
from __future__ import annotations

APP_TITLE = "MIDI Player"

AVAILABLE_LOCALES: tuple[str, ...] = ("en_US", "fr_FR")
DEFAULT_LOCALE = AVAILABLE_LOCALES[0]

MIDI_FILE_SUFFIXES: tuple[str, ...] = (".mid", ".midi", ".kar", ".rmi")

# Property names fired by the observable player.
LOOP_CHANGE = "midiplayer.loop"
PLAYING_START_CHANGE = "midiplayer.playing.start"
PLAYING_PAUSE_CHANGE = "midiplayer.playing.pause"
PLAYING_STOP_CHANGE = "midiplayer.playing.stop"
PLAYBACK_STATE_CHANGE = "midiplayer.playing.state"
CURRENT_SONG_CHANGE = "midiplayer.current_song.change"
PLAYLIST_LOOP_CHANGE = "midiplayer.playlist.loop"
PLAYLIST_SIZE_CHANGE = "midiplayer.playlist.size"
PLAYLIST_CONTENT_CHANGE = "midiplayer.playlist.content.change"

LOCALE_PROPERTY = "user.language"

# Console output levels.
INFO = "info"
WARNING = "warning"
ERROR_LEVEL = "error"
CLEAR = "clear"
