import os
from pathlib import Path

import pytest
import tkinter as tk

from midi_player.application.bootstrap import initialize_app_services
from midi_player.config import AppConfig
from midi_player.ui.tkinter_app import TkinterMidiPlayerApp


class _Logger:
    def __init__(self):
        self.debugs = []
        self.errors = []

    def debug(self, message, *args, **_kwargs):
        self.debugs.append(message % args if args else message)

    def info(self, message, *args, **_kwargs):
        return None

    def warning(self, message, *args, **_kwargs):
        return None

    def error(self, message, *args, **_kwargs):
        self.errors.append(message % args if args else message)

    def log(self, level, message, *args, **_kwargs):
        return None

    def exception(self, message, *args, **_kwargs):
        self.errors.append(message % args if args else message)


class _Backend:
    def __init__(self):
        self.loaded = []
        self.volumes = []

    def load(self, path):
        self.loaded.append(path)

    def play(self):
        return None

    def set_pause(self, on):
        return None

    def stop(self):
        return None

    def is_finished(self):
        return False

    def has_failed(self):
        return False

    def set_volume(self, vol_0_100):
        self.volumes.append(vol_0_100)

    def get_time_ms(self):
        return 61000

    def get_length_ms(self):
        return 125000

    def release(self):
        return None


def _build_config(tmp_path: Path) -> AppConfig:
    logs = tmp_path / "logs"
    logs.mkdir(parents=True, exist_ok=True)
    return AppConfig(
        log_level="INFO",
        file_log_level="DEBUG",
        log_dir=str(logs),
        log_file=str(logs / "app.log"),
        locale="en_US",
        notify_on_ui_thread=True,
        volume=70,
    )


def _songs(tmp_path: Path, *names):
    paths = []
    for name in names:
        path = tmp_path / name
        path.write_bytes(b"MThd")
        paths.append(str(path))
    return paths


@pytest.fixture
def ui_app(tmp_path: Path):
    logger = _Logger()
    os.environ.pop("TCL_LIBRARY", None)
    os.environ.pop("TK_LIBRARY", None)
    backend = _Backend()
    services = initialize_app_services(
        config=_build_config(tmp_path),
        logger=logger,
        backend_factory=lambda: backend,
    )
    app_instance = services.app
    assert isinstance(app_instance, TkinterMidiPlayerApp)

    root = None
    last_exc = None
    for _ in range(2):
        try:
            root = app_instance.build_for_test()
            root.withdraw()
            break
        except tk.TclError as exc:
            last_exc = exc
            app_instance.root = None
    if root is None:
        pytest.skip(f"Tk runtime unavailable: {last_exc}")
    yield app_instance, services, backend, tmp_path
    if app_instance.root is not None:
        app_instance._on_close()


def _rows(app_instance):
    tree = app_instance.playlist_tree
    return [tree.item(item, "values")[0] for item in tree.get_children()]


def test_widgets_follow_command_state(ui_app):
    app_instance, _services, _backend, _tmp_path = ui_app

    assert app_instance.buttons["playSong"].cget("text") == "Play"
    assert app_instance.buttons["pauseSong"].instate(["disabled"])
    assert app_instance.buttons["clearPlaylist"].instate(["disabled"])
    assert app_instance.playlist_tree.heading("song", "text") == "Playlist"
    assert app_instance.status_var.get() == "Stopped"
    assert app_instance.locale_var.get() == "English (United States)"
    assert "<Alt-KeyPress-p>" in app_instance._mnemonic_bindings


def test_playlist_rendering_and_playback(ui_app):
    app_instance, services, backend, tmp_path = ui_app
    first, second = _songs(tmp_path, "a.mid", "b.mid")

    app_instance._run_command("loadMidiFile", first, second)
    assert _rows(app_instance) == ["1. a.mid", "2. b.mid"]
    assert app_instance.buttons["clearPlaylist"].instate(["!disabled"])

    app_instance._run_command("playSong", "2")
    tree = app_instance.playlist_tree
    assert "current" in tree.item("1", "tags")
    assert app_instance.status_var.get() == "Playing b.mid"
    assert app_instance.buttons["pauseSong"].instate(["!disabled"])
    assert backend.loaded == [str(Path(second).resolve())]

    app_instance._on_command_button("pauseSong")
    assert services.player.is_paused()
    assert app_instance.status_var.get() == "Paused b.mid"


def test_move_and_remove_selection(ui_app):
    app_instance, services, _backend, tmp_path = ui_app
    app_instance._run_command("loadMidiFile", *_songs(tmp_path, "a.mid", "b.mid", "c.mid"))
    tree = app_instance.playlist_tree

    tree.selection_set(["0"])
    assert app_instance._on_move_selection(1) == "break"
    assert _rows(app_instance) == ["1. b.mid", "2. a.mid", "3. c.mid"]
    assert tree.selection() == ("1",)

    app_instance._on_move_selection(-1)
    assert _rows(app_instance) == ["1. a.mid", "2. b.mid", "3. c.mid"]

    tree.selection_set(["1", "2"])
    app_instance._on_remove_selected()
    assert [track.name for track in services.player.playlist] == ["a.mid"]


def test_toggle_buttons_sync_with_commands(ui_app):
    app_instance, services, _backend, _tmp_path = ui_app
    variable = app_instance.toggle_vars["loopSong"]

    variable.set(True)
    app_instance._on_toggle("loopSong", variable)
    assert services.player.looping is True

    services.controller.run_line("loopSong off")
    assert variable.get() is False

    assert app_instance._on_mnemonic("loopPlaylist") == "break"
    assert services.player.playlist_looping is True


def test_locale_switch_relabels_widgets(ui_app):
    app_instance, services, _backend, _tmp_path = ui_app

    app_instance.locale_var.set("French (France)")
    app_instance._on_locale_selected()

    assert services.locale_manager.locale == "fr_FR"
    assert app_instance.root.title() == "Lecteur MIDI"
    assert app_instance.buttons["playSong"].cget("text") == "Lecture"
    assert app_instance.playlist_tree.heading("song", "text") == "Liste de lecture"
    assert app_instance.locale_var.get() == "Français (France)"
    assert app_instance.status_var.get() == "Arrêté"


def test_console_entry_and_error_channel(ui_app):
    app_instance, services, _backend, _tmp_path = ui_app
    output = app_instance.console_output

    app_instance.console_entry.insert(0, "echo hi")
    assert app_instance._on_console_submit() == "break"
    assert output.get("1.0", "end-1c") == "> echo hi\nhi\n"
    assert app_instance.console_entry.get() == ""

    services.player.report_error("Cannot play x.mid", None)
    assert app_instance.status_var.get() == "Cannot play x.mid"
    assert "error" in output.tag_names("3.0")

    services.controller.run_line("clear")
    assert output.get("1.0", "end-1c") == ""


def test_volume_and_position_updates(ui_app):
    app_instance, services, backend, tmp_path = ui_app
    app_instance._run_command("loadMidiFile", *_songs(tmp_path, "a.mid"))
    app_instance._run_command("playSong")

    app_instance.volume_var.set(30)
    app_instance._on_volume_change()
    app_instance._schedule_tick()

    assert services.engine.volume == 30
    assert backend.volumes[-1] == 30
    assert app_instance.position_var.get() == "1:01 / 2:05"


def test_exit_command_closes_window(ui_app):
    app_instance, services, _backend, _tmp_path = ui_app

    services.controller.run_line("exit")

    assert app_instance.root is None
    assert services.player.contains_table_model_listener(app_instance._on_table_changed) is False
