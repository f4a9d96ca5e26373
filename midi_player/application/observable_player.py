"""MIDI player state holder that publishes its changes to listeners."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable

from ..constants import (
    CURRENT_SONG_CHANGE,
    LOOP_CHANGE,
    PLAYBACK_STATE_CHANGE,
    PLAYING_PAUSE_CHANGE,
    PLAYING_START_CHANGE,
    PLAYING_STOP_CHANGE,
    PLAYLIST_CONTENT_CHANGE,
    PLAYLIST_LOOP_CHANGE,
    PLAYLIST_SIZE_CHANGE,
)
from ..domain.player import MidiPlayer, PlaybackState
from ..events import (
    ALL_COLUMNS,
    ALL_ROWS,
    HEADER_ROW,
    DispatchQueue,
    Notifier,
    PropertyChangeEvent,
    TableChangeEvent,
)

PLAYLIST_COLUMN_KEY = "midiplayer.playlist.column.title.name"
PLAYLIST_COLUMN_DEFAULT = "Playlist"

_STATE_PROPERTIES = {
    PlaybackState.PLAYING: PLAYING_START_CHANGE,
    PlaybackState.PAUSED: PLAYING_PAUSE_CHANGE,
    PlaybackState.STOPPED: PLAYING_STOP_CHANGE,
}
_FLAG_PROPERTIES = {
    "looping": LOOP_CHANGE,
    "playlist_looping": PLAYLIST_LOOP_CHANGE,
}


def _default_song_info(track: Path) -> str:
    return track.name


class ObservableMidiPlayer(MidiPlayer):
    """Player whose mutators fire property, table and error notifications.

    Each listener kind lives in its own ``Notifier``. With a dispatcher the
    notifications are delivered on its UI thread.
    """

    def __init__(
        self,
        tracks: Iterable[str] | None = None,
        *,
        looping: bool = False,
        playlist_looping: bool = False,
        dispatcher: DispatchQueue | None = None,
        catalog=None,
        song_info: Callable[[Path], str] | None = None,
        logger=None,
    ) -> None:
        super().__init__(tracks, looping=looping, playlist_looping=playlist_looping)
        self.catalog = catalog
        self.song_info = song_info or _default_song_info
        self.logger = logger
        self.property_notifier: Notifier = Notifier("player.property", dispatcher=dispatcher)
        self.table_notifier: Notifier = Notifier("player.table", dispatcher=dispatcher)
        self.error_notifier: Notifier = Notifier("player.error", dispatcher=dispatcher)
        self._external_listeners: list = []

    @property
    def notify_on_ui_thread(self) -> bool:
        return self.property_notifier.notify_on_ui_thread

    # Listener registration

    def add_property_change_listener(self, listener, *, external: bool = False) -> bool:
        added = self.property_notifier.subscribe(listener)
        if added and external:
            self._external_listeners.append(listener)
        return added

    def remove_property_change_listener(self, listener) -> bool:
        removed = self.property_notifier.unsubscribe(listener)
        if removed and listener in self._external_listeners:
            self._external_listeners.remove(listener)
        return removed

    def contains_property_change_listener(self, listener) -> bool:
        return self.property_notifier.contains(listener)

    def property_change_listeners(self) -> tuple:
        return self.property_notifier.list_all()

    def clear_external_listeners(self) -> None:
        for listener in list(self._external_listeners):
            self.property_notifier.unsubscribe(listener)
        self._external_listeners.clear()

    def add_table_model_listener(self, listener) -> bool:
        return self.table_notifier.subscribe(listener)

    def remove_table_model_listener(self, listener) -> bool:
        return self.table_notifier.unsubscribe(listener)

    def contains_table_model_listener(self, listener) -> bool:
        return self.table_notifier.contains(listener)

    def add_error_listener(self, listener) -> bool:
        return self.error_notifier.subscribe(listener)

    def remove_error_listener(self, listener) -> bool:
        return self.error_notifier.unsubscribe(listener)

    def contains_error_listener(self, listener) -> bool:
        return self.error_notifier.contains(listener)

    # Firing

    def fire_property_change(self, name: str, old_value, new_value) -> bool:
        return self.property_notifier.fire_change(
            old_value,
            new_value,
            lambda old, new: PropertyChangeEvent(self, name, old, new),
        )

    def fire_table_changed(
        self,
        first_row: int = ALL_ROWS,
        last_row: int = ALL_ROWS,
        column: int = ALL_COLUMNS,
    ) -> None:
        self.table_notifier.fire(TableChangeEvent(self, first_row, last_row, column))

    def report_error(self, message: str, exc: BaseException | None = None) -> None:
        if self.logger is not None:
            self.logger.error("Player error: %s", message, exc_info=exc)
        self.error_notifier.fire(message, exc)

    # Hooks

    def _on_playlist_changed(self, old_size, old_cursor, *, reordered):
        if reordered:
            self.fire_property_change(PLAYLIST_CONTENT_CHANGE, None, self.playlist)
        else:
            self.fire_property_change(PLAYLIST_SIZE_CHANGE, old_size, len(self))
        self.fire_property_change(CURRENT_SONG_CHANGE, old_cursor, self.cursor)
        self.fire_table_changed()

    def _on_cursor_moved(self, old_cursor):
        self.fire_property_change(CURRENT_SONG_CHANGE, old_cursor, self.cursor)
        self.fire_table_changed()

    def _on_flag_changed(self, name, old_value, new_value):
        self.fire_property_change(_FLAG_PROPERTIES[name], old_value, new_value)
        self.fire_table_changed()

    def _on_state_changed(self, old_state, new_state):
        self.fire_property_change(_STATE_PROPERTIES[new_state], False, True)
        self.fire_property_change(PLAYBACK_STATE_CHANGE, old_state, new_state)
        self.fire_table_changed()

    # Table view

    def row_count(self) -> int:
        return len(self)

    def column_count(self) -> int:
        return 1

    def column_name(self, column: int) -> str:
        self._check_column(column)
        if self.catalog is None:
            return PLAYLIST_COLUMN_DEFAULT
        return self.catalog.get_message(PLAYLIST_COLUMN_KEY, default=PLAYLIST_COLUMN_DEFAULT)

    def column_type(self, column: int) -> type:
        self._check_column(column)
        return Path

    def is_cell_editable(self, row: int, column: int) -> bool:
        return False

    def value_at(self, row: int, column: int = 0) -> str:
        self._check_column(column)
        if not 0 <= row < len(self):
            raise IndexError(f"Row {row} outside playlist of size {len(self)}")
        track = self.track_at(row)
        return f"{row + 1}. {self.song_info(track)}"

    def set_value_at(self, value, row: int, column: int) -> None:
        raise NotImplementedError("Playlist cells are read-only")

    def _check_column(self, column: int) -> None:
        if column != 0:
            raise IndexError(f"Column {column} outside 0..0")

    def locale_changed(self, event=None) -> None:
        self.fire_table_changed(HEADER_ROW, HEADER_ROW)
