"""Playlist, playback cursor and playback state of the MIDI player."""

from __future__ import annotations

import os
import random
import re
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Sequence

_DIGITS_RE = re.compile(r"(\d+)")


class PlaybackState(str, Enum):
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"


def to_track(value: str | os.PathLike | None) -> Path | None:
    if value is None:
        return None
    if isinstance(value, Path):
        return value
    if isinstance(value, (str, os.PathLike)):
        return Path(value)
    raise TypeError(f"Unsupported track reference: {type(value).__name__}")


def natural_key(track: Path) -> list[int | str]:
    """Sort key comparing digit runs numerically ("song2" before "song10")."""
    parts = _DIGITS_RE.split(str(track))
    return [int(part) if index % 2 else part.casefold() for index, part in enumerate(parts)]


class MidiPlayer:
    """Playlist/player state holder.

    The cursor is ``None`` exactly when the playlist is empty and otherwise
    points inside the playlist. All mutators report success with a boolean;
    only structural misuse (bad indices, wrong types) raises.

    Subclasses observe changes through the ``_on_*`` hooks, which run after
    the state has been updated.
    """

    def __init__(
        self,
        tracks: Iterable[str | os.PathLike] | None = None,
        *,
        looping: bool = False,
        playlist_looping: bool = False,
    ) -> None:
        self._playlist: list[Path] = []
        self._cursor: int | None = None
        self._state = PlaybackState.STOPPED
        self._looping = bool(looping)
        self._playlist_looping = bool(playlist_looping)
        for track in tracks or ():
            converted = to_track(track)
            if converted is not None:
                self._playlist.append(converted)
        if self._playlist:
            self._cursor = 0

    # Read access

    @property
    def playlist(self) -> tuple[Path, ...]:
        return tuple(self._playlist)

    @property
    def cursor(self) -> int | None:
        return self._cursor

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def looping(self) -> bool:
        return self._looping

    @property
    def playlist_looping(self) -> bool:
        return self._playlist_looping

    def __len__(self) -> int:
        return len(self._playlist)

    def is_empty(self) -> bool:
        return not self._playlist

    def is_playing(self) -> bool:
        return self._state is PlaybackState.PLAYING

    def is_paused(self) -> bool:
        return self._state is PlaybackState.PAUSED

    def is_stopped(self) -> bool:
        return self._state is PlaybackState.STOPPED

    def current_track(self) -> Path | None:
        if self._cursor is None:
            return None
        return self._playlist[self._cursor]

    def track_at(self, index: int) -> Path:
        return self._playlist[index]

    def index_of(self, track: str | os.PathLike | None) -> int:
        converted = to_track(track)
        try:
            return self._playlist.index(converted)
        except ValueError:
            return -1

    def is_current_track(self, track: str | os.PathLike | None) -> bool:
        current = self.current_track()
        if current is None:
            return track is None
        return current == to_track(track)

    # Hooks

    def _on_playlist_changed(
        self, old_size: int, old_cursor: int | None, *, reordered: bool
    ) -> None:
        """Called after the playlist content changed (size or order)."""

    def _on_cursor_moved(self, old_cursor: int | None) -> None:
        """Called after a navigation operation, even when the index is unchanged."""

    def _on_flag_changed(self, name: str, old_value: bool, new_value: bool) -> None:
        """Called after ``looping`` or ``playlist_looping`` changed."""

    def _on_state_changed(self, old_state: PlaybackState, new_state: PlaybackState) -> None:
        """Called after a playback state transition."""

    # Insertion

    def add(self, track: str | os.PathLike | None) -> bool:
        return self.insert(len(self._playlist), track)

    def insert(self, index: int, track: str | os.PathLike | None) -> bool:
        converted = to_track(track)
        if converted is None:
            return False
        return self._insert_tracks(index, [converted])

    def add_all(self, tracks: Iterable[str | os.PathLike] | None) -> bool:
        return self.insert_all(len(self._playlist), tracks)

    def insert_all(self, index: int, tracks: Iterable[str | os.PathLike] | None) -> bool:
        if tracks is None:
            return False
        converted = [track for track in (to_track(item) for item in tracks) if track is not None]
        if not converted:
            return False
        return self._insert_tracks(index, converted)

    def _insert_tracks(self, index: int, tracks: list[Path]) -> bool:
        if not 0 <= index <= len(self._playlist):
            raise IndexError(f"Insert index {index} outside 0..{len(self._playlist)}")
        old_size = len(self._playlist)
        old_cursor = self._cursor
        self._playlist[index:index] = tracks
        if self._cursor is None:
            self._cursor = 0
        elif index <= self._cursor:
            self._cursor += len(tracks)
        self._on_playlist_changed(old_size, old_cursor, reordered=False)
        return True

    # Removal

    def remove(self, index: int) -> bool:
        if not 0 <= index < len(self._playlist):
            return False
        return self._remove_indices({index})

    def remove_all(self, indices: Iterable[int] | None) -> bool:
        if indices is None:
            return False
        valid = {index for index in indices if 0 <= index < len(self._playlist)}
        if not valid:
            return False
        return self._remove_indices(valid)

    def remove_track(self, track: str | os.PathLike | None) -> bool:
        index = self.index_of(track)
        if index < 0:
            return False
        return self._remove_indices({index})

    def remove_tracks(self, tracks: Iterable[str | os.PathLike] | None) -> bool:
        if tracks is None:
            return False
        targets = {
            converted for converted in (to_track(item) for item in tracks) if converted is not None
        }
        indices = {index for index, track in enumerate(self._playlist) if track in targets}
        if not indices:
            return False
        return self._remove_indices(indices)

    def _remove_indices(self, indices: set[int]) -> bool:
        old_size = len(self._playlist)
        old_cursor = self._cursor
        current_removed = old_cursor is not None and old_cursor in indices
        for index in sorted(indices, reverse=True):
            del self._playlist[index]
        if not self._playlist:
            self._cursor = None
        elif old_cursor is not None:
            shift = sum(1 for index in indices if index < old_cursor)
            self._cursor = min(old_cursor - shift, len(self._playlist) - 1)
        if current_removed and not self.is_stopped():
            self.stop_playing()
        self._on_playlist_changed(old_size, old_cursor, reordered=False)
        return True

    def clear(self) -> bool:
        if not self._playlist:
            return False
        old_size = len(self._playlist)
        old_cursor = self._cursor
        if not self.is_stopped():
            self.stop_playing()
        self._playlist.clear()
        self._cursor = None
        self._on_playlist_changed(old_size, old_cursor, reordered=False)
        return True

    # Reordering

    def move_rows(self, start: int, end: int, to: int) -> bool:
        """Move rows ``start..end`` (inclusive) so they land before the row at ``to``.

        Moving downwards the block ends right before the row that was at ``to``;
        ``to == len(playlist)`` moves the block to the end.
        """
        size = len(self._playlist)
        if start < 0 or end >= size:
            raise IndexError(f"Rows {start}..{end} outside playlist of size {size}")
        if not 0 <= to <= size:
            raise IndexError(f"Target row {to} outside 0..{size}")
        if start > end:
            raise ValueError(f"Start ({start}) must be lesser or equal to end ({end})")
        if start <= to <= end:
            return False
        order = list(range(size))
        block = order[start : end + 1]
        if to < start:
            order[to : end + 1] = block + order[to:start]
        else:
            order[start:to] = order[end + 1 : to] + block
        self._apply_order(order)
        return True

    def move_row(self, index: int, to: int) -> bool:
        return self.move_rows(index, index, to)

    def shuffle_playlist(self, rng: random.Random | None = None) -> bool:
        if len(self._playlist) <= 1:
            return False
        order = list(range(len(self._playlist)))
        (rng or random).shuffle(order)
        self._apply_order(order)
        return True

    def sort_playlist(
        self,
        key: Callable[[Path], object] | None = None,
        reverse: bool = False,
    ) -> bool:
        if len(self._playlist) <= 1:
            return False
        sort_key = key or natural_key
        order = sorted(
            range(len(self._playlist)),
            key=lambda index: sort_key(self._playlist[index]),
            reverse=reverse,
        )
        self._apply_order(order)
        return True

    def _apply_order(self, order: Sequence[int]) -> None:
        old_cursor = self._cursor
        self._playlist = [self._playlist[index] for index in order]
        if old_cursor is not None:
            self._cursor = order.index(old_cursor)
        self._on_playlist_changed(len(self._playlist), old_cursor, reordered=True)

    # Flags

    def set_looping(self, looping: bool) -> bool:
        looping = bool(looping)
        if looping == self._looping:
            return False
        self._looping = looping
        self._on_flag_changed("looping", not looping, looping)
        return True

    def set_playlist_looping(self, looping: bool) -> bool:
        looping = bool(looping)
        if looping == self._playlist_looping:
            return False
        self._playlist_looping = looping
        self._on_flag_changed("playlist_looping", not looping, looping)
        return True

    # Playback state

    def start_playing(self) -> bool:
        if self._cursor is None or self._state is PlaybackState.PLAYING:
            return False
        self._set_state(PlaybackState.PLAYING)
        return True

    def pause_playing(self) -> bool:
        if self._state is not PlaybackState.PLAYING:
            return False
        self._set_state(PlaybackState.PAUSED)
        return True

    def stop_playing(self) -> bool:
        if self._state is PlaybackState.STOPPED:
            return False
        self._set_state(PlaybackState.STOPPED)
        return True

    def _set_state(self, new_state: PlaybackState) -> None:
        old_state = self._state
        self._state = new_state
        self._on_state_changed(old_state, new_state)

    # Navigation

    def move_to_previous_song(self) -> bool:
        if self._cursor is None:
            return False
        if self._cursor > 0:
            return self._move_cursor(self._cursor - 1)
        if self._playlist_looping:
            return self._move_cursor(len(self._playlist) - 1)
        return False

    def move_to_next_song(self, force: bool = False) -> bool:
        """Advance the cursor.

        At the last row the cursor wraps to the first one when playlist looping
        is enabled or ``force`` is set; otherwise the call fails.
        """
        if self._cursor is None:
            return False
        last = len(self._playlist) - 1
        if self._cursor < last:
            return self._move_cursor(self._cursor + 1)
        if self._playlist_looping or force:
            return self._move_cursor(0)
        return False

    def move_to_song(self, index: int) -> bool:
        if not 0 <= index < len(self._playlist):
            return False
        return self._move_cursor(index)

    def move_to_track(self, track: str | os.PathLike | None) -> bool:
        return self.move_to_song(self.index_of(track))

    def start_playing_at(self, index: int) -> bool:
        if not self.move_to_song(index):
            return False
        self.start_playing()
        return True

    def _move_cursor(self, index: int) -> bool:
        old_cursor = self._cursor
        self._cursor = index
        self._on_cursor_moved(old_cursor)
        return True
