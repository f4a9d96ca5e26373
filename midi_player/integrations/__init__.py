"""Integrations with playback libraries and MIDI files."""

from .midi_files import SongLengthCache, format_song_info, is_midi_file, read_song_length
from .vlc_backend import VlcMidiBackend

__all__ = [
    "SongLengthCache",
    "VlcMidiBackend",
    "format_song_info",
    "is_midi_file",
    "read_song_length",
]
