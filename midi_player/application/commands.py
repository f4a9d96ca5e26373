"""Console commands operating the MIDI player."""

from __future__ import annotations

import logging
import os
import shlex
from datetime import datetime
from pathlib import Path
from typing import Iterable, Sequence

from ..constants import (
    CLEAR,
    ERROR_LEVEL,
    INFO,
    LOOP_CHANGE,
    PLAYBACK_STATE_CHANGE,
    PLAYLIST_LOOP_CHANGE,
    PLAYLIST_SIZE_CHANGE,
    WARNING,
)
from ..events import Notifier
from ..integrations.midi_files import is_midi_file
from ..utils import parse_switch
from .observable_player import ObservableMidiPlayer

SUCCESS = 0
ERROR = 1

_LOG_LEVELS = {INFO: logging.INFO, WARNING: logging.WARNING, ERROR_LEVEL: logging.ERROR}


class PlayerCommand:
    """A named console command with localized label and help texts."""

    identifiers: tuple[str, ...] = ()
    message_prefix = ""
    label_default = ""
    brief_help_default = ""
    help_default = ""
    observes_player = False

    def __init__(self, catalog, logger) -> None:
        self.catalog = catalog
        self.logger = logger
        self.enabled = True
        self.selected: bool | None = None
        self._texts: dict[str, str] = {}
        self.listeners: Notifier = Notifier(f"command.{self.identifier}")

    @property
    def identifier(self) -> str:
        return self.identifiers[0]

    def message(self, suffix: str, *args, default: str | None = None) -> str:
        return self.catalog.get_message(f"{self.message_prefix}.{suffix}", *args, default=default)

    def _cached(self, suffix: str, default: str) -> str:
        text = self._texts.get(suffix)
        if text is None:
            text = self.message(suffix, default=default)
            self._texts[suffix] = text
        return text

    def label(self) -> str:
        return self._cached("name", self.label_default)

    def text_and_underline(self) -> tuple[str, int]:
        return self.catalog.text_and_underline(
            f"{self.message_prefix}.name", default=self.label_default
        )

    def brief_help(self) -> str:
        return self._cached("help.short", self.brief_help_default)

    def help(self) -> str:
        return self._cached("help.long", self.help_default)

    def locale_changed(self, event=None) -> None:
        self._texts.clear()
        self.listeners.fire(self)

    def set_enabled(self, enabled: bool) -> None:
        enabled = bool(enabled)
        if enabled == self.enabled:
            return
        self.enabled = enabled
        self.listeners.fire(self)

    def refresh_state(self) -> None:
        """Recompute state derived from other objects before the command runs."""

    def set_selected(self, selected: bool | None) -> None:
        if selected == self.selected:
            return
        self.selected = selected
        self.listeners.fire(self)

    def run(self, shell: "CommandShell", args: Sequence[str]) -> int:
        raise NotImplementedError


class PlayerAction(PlayerCommand):
    """Command bound to the player whose enabled flag follows player events."""

    observes_player = True
    watched_properties: tuple[str, ...] = (PLAYBACK_STATE_CHANGE, PLAYLIST_SIZE_CHANGE)

    def __init__(self, player: ObservableMidiPlayer, catalog, logger) -> None:
        super().__init__(catalog, logger)
        self.player = player
        self.update_state()

    def property_change(self, event) -> None:
        if event.property_name in self.watched_properties:
            self.update_state()

    def update_state(self) -> None:
        self.set_enabled(self.is_enabled_for_player())

    def refresh_state(self) -> None:
        # Player events may still be queued for the UI thread.
        self.update_state()

    def is_enabled_for_player(self) -> bool:
        return not self.player.is_empty()


def _parse_row(value: str, size: int) -> int | None:
    """Parse a 1-based playlist row as shown by the playlist command."""
    try:
        row = int(value)
    except ValueError:
        return None
    if 1 <= row <= size:
        return row - 1
    return None


class PlayCommand(PlayerAction):
    identifiers = ("playSong", "play")
    message_prefix = "midiplayer.action.play"
    label_default = "&Play"
    brief_help_default = "Play the current song"
    help_default = "playSong [row|file]: start or resume playback, optionally at a row or file"

    def is_enabled_for_player(self):
        return True

    def run(self, shell, args):
        if len(args) > 1:
            target = " ".join(args[1:])
            index = _parse_row(target, len(self.player))
            if index is None:
                index = self._resolve_file(shell, target)
                if index is None:
                    return ERROR
            self.player.start_playing_at(index)
            return SUCCESS
        if self.player.is_playing():
            shell.publish(self.message("run.already_playing", default="Already playing"), WARNING)
            return SUCCESS
        if not self.player.start_playing():
            shell.publish(self.message("run.playlist_empty", default="Playlist is empty"), WARNING)
            return ERROR
        return SUCCESS

    def _resolve_file(self, shell, target: str) -> int | None:
        path = Path(target).expanduser()
        if not path.is_file():
            shell.publish(
                self.message("run.file_path_invalid", target, default="Invalid file path: {0}"),
                ERROR_LEVEL,
            )
            return None
        resolved = path.resolve()
        index = self.player.index_of(resolved)
        if index < 0:
            self.player.add(resolved)
            index = len(self.player) - 1
        return index


class PauseCommand(PlayerAction):
    identifiers = ("pauseSong", "pause")
    message_prefix = "midiplayer.action.pause"
    label_default = "P&ause"
    brief_help_default = "Pause the current song"
    help_default = "pauseSong: pause playback, playSong resumes it"

    def is_enabled_for_player(self):
        return self.player.is_playing()

    def run(self, shell, args):
        if not self.player.pause_playing():
            shell.publish(self.message("run.not_playing", default="Nothing is playing"), WARNING)
            return ERROR
        return SUCCESS


class StopCommand(PlayerAction):
    identifiers = ("stopSong", "stop")
    message_prefix = "midiplayer.action.stop"
    label_default = "&Stop"
    brief_help_default = "Stop playback"
    help_default = "stopSong: stop playback and rewind the current song"

    def is_enabled_for_player(self):
        return not self.player.is_stopped()

    def run(self, shell, args):
        if not self.player.stop_playing():
            shell.publish(self.message("run.not_playing", default="Nothing is playing"), WARNING)
            return ERROR
        return SUCCESS


class NextCommand(PlayerAction):
    identifiers = ("nextSong", "next")
    message_prefix = "midiplayer.action.next"
    label_default = "&Next"
    brief_help_default = "Go to the next song"
    help_default = "nextSong: move to the next song of the playlist"

    def run(self, shell, args):
        if not self.player.move_to_next_song():
            shell.publish(
                self.message("run.last_song", default="Already at the last song"), WARNING
            )
            return ERROR
        return SUCCESS


class PreviousCommand(PlayerAction):
    identifiers = ("previousSong", "previous")
    message_prefix = "midiplayer.action.previous"
    label_default = "P&revious"
    brief_help_default = "Go to the previous song"
    help_default = "previousSong: move to the previous song of the playlist"

    def run(self, shell, args):
        if not self.player.move_to_previous_song():
            shell.publish(
                self.message("run.first_song", default="Already at the first song"), WARNING
            )
            return ERROR
        return SUCCESS


class _ToggleAction(PlayerAction):
    """Switch command for one of the player's looping flags."""

    flag_property = ""
    watched_properties = (PLAYLIST_SIZE_CHANGE, LOOP_CHANGE, PLAYLIST_LOOP_CHANGE)

    def current(self) -> bool:
        raise NotImplementedError

    def apply(self, value: bool) -> bool:
        raise NotImplementedError

    def is_enabled_for_player(self):
        return True

    def update_state(self) -> None:
        super().update_state()
        self.set_selected(self.current())

    def run(self, shell, args):
        if len(args) > 1:
            value = parse_switch(args[1])
            if value is None:
                shell.publish(
                    self.message(
                        "run.invalid_switch", args[1], default="Expected on or off, got {0}"
                    ),
                    ERROR_LEVEL,
                )
                return ERROR
        else:
            value = not self.current()
        self.apply(value)
        if value:
            status = self.message("run.on", default="on")
        else:
            status = self.message("run.off", default="off")
        shell.publish(f"{self.label()}: {status}")
        return SUCCESS


class LoopSongCommand(_ToggleAction):
    identifiers = ("loopSong", "loop")
    message_prefix = "midiplayer.action.loop"
    label_default = "&Loop song"
    brief_help_default = "Repeat the current song"
    help_default = "loopSong [on|off]: repeat the current song, toggles without argument"

    def current(self):
        return self.player.looping

    def apply(self, value):
        return self.player.set_looping(value)


class LoopPlaylistCommand(_ToggleAction):
    identifiers = ("loopPlaylist",)
    message_prefix = "midiplayer.action.loop_playlist"
    label_default = "Loop pla&ylist"
    brief_help_default = "Repeat the whole playlist"
    help_default = "loopPlaylist [on|off]: restart the playlist after its last song"

    def current(self):
        return self.player.playlist_looping

    def apply(self, value):
        return self.player.set_playlist_looping(value)


class ShuffleCommand(PlayerAction):
    identifiers = ("shufflePlaylist", "shuffle")
    message_prefix = "midiplayer.action.shuffle"
    label_default = "S&huffle"
    brief_help_default = "Shuffle the playlist"
    help_default = "shufflePlaylist: randomly reorder the playlist, the current song is kept"

    def __init__(self, player, catalog, logger, *, rng=None) -> None:
        self.rng = rng
        super().__init__(player, catalog, logger)

    def is_enabled_for_player(self):
        return len(self.player) > 1

    def run(self, shell, args):
        if not self.player.shuffle_playlist(self.rng):
            shell.publish(
                self.message("run.too_short", default="Not enough songs to reorder"), WARNING
            )
            return ERROR
        return SUCCESS


class SortCommand(PlayerAction):
    identifiers = ("sortPlaylist", "sort")
    message_prefix = "midiplayer.action.sort"
    label_default = "S&ort"
    brief_help_default = "Sort the playlist"
    help_default = "sortPlaylist [reverse]: sort the playlist by file path in natural order"

    def is_enabled_for_player(self):
        return len(self.player) > 1

    def run(self, shell, args):
        reverse = len(args) > 1 and args[1].lower() in ("reverse", "desc", "-r")
        if not self.player.sort_playlist(reverse=reverse):
            shell.publish(
                self.message("run.too_short", default="Not enough songs to reorder"), WARNING
            )
            return ERROR
        return SUCCESS


class ClearPlaylistCommand(PlayerAction):
    identifiers = ("clearPlaylist",)
    message_prefix = "midiplayer.action.clear"
    label_default = "&Clear"
    brief_help_default = "Empty the playlist"
    help_default = "clearPlaylist: stop playback and remove every song"

    def run(self, shell, args):
        if not self.player.clear():
            shell.publish(self.message("run.empty", default="Playlist is already empty"), WARNING)
            return ERROR
        return SUCCESS


class RemoveCommand(PlayerAction):
    identifiers = ("removeSong", "remove")
    message_prefix = "midiplayer.action.remove"
    label_default = "Re&move"
    brief_help_default = "Remove songs from the playlist"
    help_default = "removeSong <row>...: remove the given rows (1-based) from the playlist"

    def run(self, shell, args):
        if len(args) < 2:
            shell.publish(
                self.message("run.row_mandatory", default="Row number expected"), ERROR_LEVEL
            )
            return ERROR
        indices = []
        for value in args[1:]:
            index = _parse_row(value, len(self.player))
            if index is None:
                shell.publish(
                    self.message("run.row_invalid", value, default="Invalid row: {0}"), ERROR_LEVEL
                )
                return ERROR
            indices.append(index)
        self.player.remove_all(indices)
        return SUCCESS


class MoveCommand(PlayerAction):
    identifiers = ("moveSong", "move")
    message_prefix = "midiplayer.action.move"
    label_default = "Mo&ve"
    brief_help_default = "Move songs inside the playlist"
    help_default = (
        "moveSong <start> <end> <to>: move rows start..end (1-based) before row to; "
        "use the row count plus one to move them to the end"
    )

    def run(self, shell, args):
        if len(args) != 4:
            shell.publish(self.help(), ERROR_LEVEL)
            return ERROR
        try:
            start, end, to = (int(value) - 1 for value in args[1:])
            moved = self.player.move_rows(start, end, to)
        except (ValueError, IndexError) as exc:
            shell.publish(
                self.message("run.invalid_rows", exc, default="Invalid rows: {0}"), ERROR_LEVEL
            )
            return ERROR
        if not moved:
            shell.publish(self.message("run.not_moved", default="Rows were not moved"), WARNING)
        return SUCCESS


class LoadMidiFileCommand(PlayerAction):
    identifiers = ("loadMidiFile", "load")
    message_prefix = "midiplayer.action.load_midi_file"
    label_default = "&Add files..."
    brief_help_default = "Add MIDI files to the playlist"
    help_default = "loadMidiFile <file>...: append MIDI files or directories of MIDI files"

    def is_enabled_for_player(self):
        return True

    def run(self, shell, args):
        if len(args) < 2:
            shell.publish(
                self.message("run.file_mandatory", default="File path expected"), ERROR_LEVEL
            )
            return ERROR
        tracks: list[Path] = []
        status = SUCCESS
        for value in args[1:]:
            path = Path(value).expanduser()
            if path.is_dir():
                tracks.extend(
                    sorted(
                        child.resolve()
                        for child in path.iterdir()
                        if child.is_file() and is_midi_file(child)
                    )
                )
            elif path.is_file() and os.access(path, os.R_OK):
                tracks.append(path.resolve())
            elif path.exists():
                shell.publish(
                    self.message("run.file_not_readable", value, default="File not readable: {0}"),
                    ERROR_LEVEL,
                )
                status = ERROR
            else:
                shell.publish(
                    self.message("run.file_path_invalid", value, default="Invalid file path: {0}"),
                    ERROR_LEVEL,
                )
                status = ERROR
        if tracks:
            self.player.add_all(tracks)
            shell.publish(self.message("run.added", len(tracks), default="{0} song(s) added"))
        return status


class PlaylistCommand(PlayerAction):
    identifiers = ("playlist", "list")
    message_prefix = "midiplayer.action.playlist"
    label_default = "Play&list"
    brief_help_default = "Print the playlist"
    help_default = "playlist: print every row, the current song is marked with *"

    def is_enabled_for_player(self):
        return True

    def run(self, shell, args):
        if self.player.is_empty():
            shell.publish(self.message("run.empty", default="Playlist is empty"))
            return SUCCESS
        for row in range(self.player.row_count()):
            marker = "*" if row == self.player.cursor else " "
            shell.publish(f"{marker} {self.player.value_at(row, 0)}")
        return SUCCESS


class LocaleCommand(PlayerCommand):
    identifiers = ("locale",)
    message_prefix = "midiplayer.console.action.locale"
    label_default = "&Language"
    brief_help_default = "Show or change the language"
    help_default = "locale [name]: print the current locale or switch to one of {0}"

    def __init__(self, catalog, logger, locale_manager) -> None:
        super().__init__(catalog, logger)
        self.locale_manager = locale_manager

    def help(self):
        return self.message(
            "help.long",
            ", ".join(self.locale_manager.available_locales),
            default=self.help_default,
        )

    def run(self, shell, args):
        if len(args) < 2:
            shell.publish(
                self.message(
                    "run.current_locale",
                    self.locale_manager.locale,
                    default="Current locale: {0}",
                )
            )
            return SUCCESS
        try:
            self.locale_manager.set_locale(args[1])
        except ValueError:
            shell.publish(
                self.message(
                    "run.invalid_locale",
                    args[1],
                    ", ".join(self.locale_manager.available_locales),
                    default="Unknown locale {0}, expected one of {1}",
                ),
                ERROR_LEVEL,
            )
            return ERROR
        return SUCCESS


class HelpCommand(PlayerCommand):
    identifiers = ("help", "man")
    message_prefix = "midiplayer.console.action.help"
    label_default = "&Help"
    brief_help_default = "List commands or describe one"
    help_default = "help [command]: list every command, or print the help of one command"

    def run(self, shell, args):
        if len(args) > 1:
            command = shell.get_command(args[1])
            if command is None:
                shell.publish(shell.unknown_command_message(args[1]), ERROR_LEVEL)
                return ERROR
            shell.publish(command.help())
            return SUCCESS
        for command in shell.commands():
            shell.publish(f"{command.identifier:<16} {command.brief_help()}")
        return SUCCESS


class EchoCommand(PlayerCommand):
    identifiers = ("echo",)
    message_prefix = "midiplayer.console.action.echo"
    label_default = "Echo"
    brief_help_default = "Print text"
    help_default = "echo <text>: print the given text"

    def run(self, shell, args):
        shell.publish(" ".join(args[1:]))
        return SUCCESS


class TimeCommand(PlayerCommand):
    identifiers = ("time", "date")
    message_prefix = "midiplayer.console.action.time"
    label_default = "Time"
    brief_help_default = "Print the current date and time"
    help_default = "time [format]: print the current time, format uses strftime codes"
    default_format = "%Y-%m-%d %H:%M:%S"

    def run(self, shell, args):
        pattern = " ".join(args[1:]) or self.default_format
        try:
            shell.publish(datetime.now().strftime(pattern))
        except ValueError:
            shell.publish(
                self.message(
                    "run.invalid_date_format", pattern, default="Invalid date format: {0}"
                ),
                ERROR_LEVEL,
            )
            return ERROR
        return SUCCESS


class ClearCommand(PlayerCommand):
    identifiers = ("clear", "cls")
    message_prefix = "midiplayer.console.action.clear"
    label_default = "Clear console"
    brief_help_default = "Clear the console output"
    help_default = "clear: erase the console output"

    def run(self, shell, args):
        shell.publish("", CLEAR)
        return SUCCESS


class ExitCommand(PlayerCommand):
    identifiers = ("exit", "quit")
    message_prefix = "midiplayer.action.exit"
    label_default = "E&xit"
    brief_help_default = "Quit the application"
    help_default = "exit [code]: quit the application with an optional return code"

    def run(self, shell, args):
        code = SUCCESS
        if len(args) > 1:
            try:
                code = int(args[1])
            except ValueError:
                shell.publish(
                    self.message(
                        "run.invalid_return_code", args[1], default="Invalid return code: {0}"
                    ),
                    ERROR_LEVEL,
                )
                return ERROR
        shell.request_exit(code)
        return SUCCESS


class CommandShell:
    """Registry of commands and line interpreter for the console."""

    def __init__(self, catalog, logger) -> None:
        self.catalog = catalog
        self.logger = logger
        self._commands: list[PlayerCommand] = []
        self._by_name: dict[str, PlayerCommand] = {}
        self.output_notifier: Notifier = Notifier("shell.output")
        self.exit_notifier: Notifier = Notifier("shell.exit")
        self.exit_code: int | None = None

    def add_output_listener(self, listener) -> bool:
        return self.output_notifier.subscribe(listener)

    def remove_output_listener(self, listener) -> bool:
        return self.output_notifier.unsubscribe(listener)

    def add_exit_listener(self, listener) -> bool:
        return self.exit_notifier.subscribe(listener)

    def remove_exit_listener(self, listener) -> bool:
        return self.exit_notifier.unsubscribe(listener)

    def add_command(self, command: PlayerCommand) -> bool:
        if command in self._commands:
            return False
        for name in command.identifiers:
            previous = self._by_name.get(name.lower())
            if previous is not None and previous is not command:
                self.logger.warning("Command %s shadows %s", name, previous.identifier)
            self._by_name[name.lower()] = command
        self._commands.append(command)
        return True

    def add_commands(self, commands: Iterable[PlayerCommand]) -> bool:
        added = False
        for command in commands:
            added = self.add_command(command) or added
        return added

    def remove_command(self, command: PlayerCommand) -> bool:
        if command not in self._commands:
            return False
        self._commands.remove(command)
        for name in command.identifiers:
            if self._by_name.get(name.lower()) is command:
                del self._by_name[name.lower()]
        return True

    def remove_commands(self, commands: Iterable[PlayerCommand]) -> bool:
        removed = False
        for command in list(commands):
            removed = self.remove_command(command) or removed
        return removed

    def clear(self) -> None:
        self._commands.clear()
        self._by_name.clear()

    def commands(self) -> tuple[PlayerCommand, ...]:
        return tuple(self._commands)

    def get_command(self, name: str) -> PlayerCommand | None:
        return self._by_name.get(name.lower())

    def unknown_command_message(self, name: str) -> str:
        return self.catalog.get_message(
            "midiplayer.console.run.unknown_command",
            name,
            default="Unknown command: {0}",
        )

    def publish(self, message: str, level: str = INFO) -> None:
        if level != CLEAR:
            self.logger.log(_LOG_LEVELS.get(level, logging.INFO), "Console: %s", message)
        self.output_notifier.fire(level, message)

    def request_exit(self, code: int = SUCCESS) -> None:
        self.exit_code = code
        self.logger.info("Exit requested with code %s", code)
        self.exit_notifier.fire(code)

    def run_line(self, line: str) -> int:
        try:
            tokens = shlex.split(line)
        except ValueError as exc:
            self.publish(str(exc), ERROR_LEVEL)
            return ERROR
        if not tokens:
            return SUCCESS
        return self.run_command(tokens)

    def run_command(self, tokens: Sequence[str]) -> int:
        command = self.get_command(tokens[0])
        if command is None:
            self.publish(self.unknown_command_message(tokens[0]), ERROR_LEVEL)
            return ERROR
        command.refresh_state()
        if not command.enabled:
            self.publish(
                self.catalog.get_message(
                    "midiplayer.console.run.command_disabled",
                    command.identifier,
                    default="Command {0} is not available now",
                ),
                WARNING,
            )
            return ERROR
        self.logger.debug("Running command: %s", list(tokens))
        try:
            return command.run(self, tuple(tokens))
        except Exception as exc:
            self.logger.exception("Command failed: %s", tokens[0])
            self.publish(
                self.catalog.get_message(
                    "midiplayer.console.run.command_failed",
                    tokens[0],
                    exc,
                    default="Command {0} failed: {1}",
                ),
                ERROR_LEVEL,
            )
            return ERROR


class PlayerController(CommandShell):
    """Shell whose player commands observe the player they operate."""

    def __init__(self, player: ObservableMidiPlayer, catalog, logger) -> None:
        super().__init__(catalog, logger)
        self.player = player

    def add_command(self, command: PlayerCommand) -> bool:
        added = super().add_command(command)
        if added and command.observes_player:
            self.player.add_property_change_listener(command.property_change, external=True)
        return added

    def remove_command(self, command: PlayerCommand) -> bool:
        removed = super().remove_command(command)
        if removed and command.observes_player:
            self.player.remove_property_change_listener(command.property_change)
        return removed

    def clear(self) -> None:
        super().clear()
        self.player.clear_external_listeners()


def build_default_commands(
    player: ObservableMidiPlayer,
    catalog,
    locale_manager,
    logger,
    *,
    rng=None,
) -> list[PlayerCommand]:
    return [
        PlayCommand(player, catalog, logger),
        PauseCommand(player, catalog, logger),
        StopCommand(player, catalog, logger),
        PreviousCommand(player, catalog, logger),
        NextCommand(player, catalog, logger),
        LoopSongCommand(player, catalog, logger),
        LoopPlaylistCommand(player, catalog, logger),
        ShuffleCommand(player, catalog, logger, rng=rng),
        SortCommand(player, catalog, logger),
        RemoveCommand(player, catalog, logger),
        MoveCommand(player, catalog, logger),
        ClearPlaylistCommand(player, catalog, logger),
        LoadMidiFileCommand(player, catalog, logger),
        PlaylistCommand(player, catalog, logger),
        LocaleCommand(catalog, logger, locale_manager),
        HelpCommand(catalog, logger),
        EchoCommand(catalog, logger),
        TimeCommand(catalog, logger),
        ClearCommand(catalog, logger),
        ExitCommand(catalog, logger),
    ]
