"""MIDI file inspection helpers."""

from __future__ import annotations

import os
import threading
from pathlib import Path

import mido

from ..constants import MIDI_FILE_SUFFIXES
from ..utils import format_duration


def is_midi_file(path: str | os.PathLike) -> bool:
    return Path(path).suffix.lower() in MIDI_FILE_SUFFIXES


def format_song_info(path: str | os.PathLike, length_seconds: float | None) -> str:
    """Render "<file name> (m:ss)", omitting the duration when unknown."""
    name = Path(path).name
    duration = format_duration(length_seconds)
    if not duration:
        return name
    return f"{name} ({duration})"


class SongLengthCache:
    """Caches MIDI song lengths read with mido, one entry per path.

    An entry is reused while the file keeps the modification time it was read
    with and replaced otherwise.
    """

    def __init__(self, logger=None) -> None:
        self.logger = logger
        self._lengths: dict[str, tuple[float, float | None]] = {}
        self._lock = threading.Lock()

    def read_song_length(self, path: str | os.PathLike) -> float | None:
        resolved = os.path.abspath(os.fspath(path))
        try:
            mtime = os.path.getmtime(resolved)
        except OSError:
            return None
        with self._lock:
            cached = self._lengths.get(resolved)
        if cached is not None and cached[0] == mtime:
            return cached[1]
        length = read_song_length(resolved, logger=self.logger)
        with self._lock:
            self._lengths[resolved] = (mtime, length)
        return length

    def __len__(self) -> int:
        with self._lock:
            return len(self._lengths)

    def song_info(self, path: Path) -> str:
        return format_song_info(path, self.read_song_length(path))

    def clear(self) -> None:
        with self._lock:
            self._lengths.clear()


def read_song_length(path: str | os.PathLike, *, logger=None) -> float | None:
    """Return the playing time of a MIDI file in seconds, or None when unreadable."""
    try:
        midi_file = mido.MidiFile(os.fspath(path))
        return float(midi_file.length)
    except (OSError, EOFError, ValueError, KeyError, TypeError):
        if logger is not None:
            logger.debug("Cannot read MIDI length: %s", path, exc_info=True)
        return None
