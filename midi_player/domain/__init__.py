"""Domain logic for playlists and playback state."""

from .player import MidiPlayer, PlaybackState, natural_key, to_track

__all__ = [
    "MidiPlayer",
    "PlaybackState",
    "natural_key",
    "to_track",
]
