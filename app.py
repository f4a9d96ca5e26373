"""Desktop and console entrypoint for the MIDI player."""

from __future__ import annotations

import argparse
import atexit
import itertools
import os
import platform
import shlex
import sys
from typing import Iterator, Sequence

from midi_player.application.bootstrap import initialize_app_services, shutdown_app_services
from midi_player.application.console import ConsoleSession
from midi_player.application.context import AppContext
from midi_player.config import load_config
from midi_player.constants import APP_TITLE
from midi_player.logging_config import setup_logging

CONFIG = load_config()
logger = setup_logging(CONFIG)


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


SKIP_APP_INIT = _env_flag("MIDI_PLAYER_SKIP_APP_INIT")

logger.info("Starting %s", APP_TITLE)
logger.info("Log file: %s", CONFIG.log_file)
logger.debug(
    "Config: LOG_LEVEL=%s FILE_LOG_LEVEL=%s LOG_DIR=%s LOCALE=%s NOTIFY_ON_UI_THREAD=%s "
    "SOUNDFONT=%s SONG_LOOPING=%s PLAYLIST_LOOPING=%s TICK_MS=%s DISPATCH_POLL_MS=%s VOLUME=%s",
    CONFIG.log_level,
    CONFIG.file_log_level,
    CONFIG.log_dir,
    CONFIG.locale,
    CONFIG.notify_on_ui_thread,
    CONFIG.soundfont_path or "<default>",
    CONFIG.song_looping,
    CONFIG.playlist_looping,
    CONFIG.tick_interval_ms,
    CONFIG.dispatch_poll_ms,
    CONFIG.volume,
)
logger.debug("Python version: %s", sys.version.replace("\n", " "))
logger.debug("Platform: %s", platform.platform())

APP_CONTEXT = AppContext(config=CONFIG, logger=logger, skip_app_init=SKIP_APP_INIT)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="midi-player", description=APP_TITLE)
    parser.add_argument(
        "--console",
        action="store_true",
        help="run the command console instead of the desktop window",
    )
    parser.add_argument(
        "--shuffle",
        action="store_true",
        help="shuffle the playlist after loading the given files",
    )
    parser.add_argument("files", nargs="*", help="MIDI files or directories to load")
    return parser


def _initialize_runtime(console_mode: bool) -> None:
    services = initialize_app_services(
        config=CONFIG,
        logger=logger,
        create_ui=not console_mode,
    )
    APP_CONTEXT.console_mode = console_mode
    APP_CONTEXT.bind_services(services)


def _startup_lines(files: Sequence[str], shuffle: bool) -> list[str]:
    lines = []
    if files:
        lines.append(shlex.join(["loadMidiFile", *files]))
    if shuffle:
        lines.append("shufflePlaylist")
    return lines


def _read_console_lines(prompt: str = "> ") -> Iterator[str]:
    interactive = sys.stdin.isatty()
    while True:
        try:
            line = input(prompt) if interactive else sys.stdin.readline()
        except EOFError:
            return
        if not interactive and not line:
            return
        yield line


def _shutdown_runtime() -> None:
    services = APP_CONTEXT.services
    if services is None:
        return
    APP_CONTEXT.services = None
    try:
        shutdown_app_services(services, logger)
    except Exception:
        logger.exception("Runtime shutdown failed")


atexit.register(_shutdown_runtime)


def _launch_console(startup: list[str]) -> int:
    controller = APP_CONTEXT.controller
    session = ConsoleSession(
        controller,
        APP_CONTEXT.engine,
        logger,
        dispatcher=APP_CONTEXT.dispatcher,
        tick_interval_ms=CONFIG.tick_interval_ms,
    )
    logger.info("Launching command console")
    return session.run(itertools.chain(startup, _read_console_lines()))


def _launch_desktop(startup: list[str]) -> int:
    desktop_app = APP_CONTEXT.app
    if desktop_app is None:
        raise RuntimeError("Desktop app is not initialized.")
    for line in startup:
        APP_CONTEXT.controller.run_line(line)
    logger.info("Launching desktop app")
    desktop_app.launch()
    code = APP_CONTEXT.controller.exit_code
    return 0 if code is None else code


def launch(argv: Sequence[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    if SKIP_APP_INIT:
        logger.info("MIDI_PLAYER_SKIP_APP_INIT enabled; launch skipped")
        return 0
    _initialize_runtime(args.console)
    startup = _startup_lines(args.files, args.shuffle)
    try:
        if args.console:
            return _launch_console(startup)
        return _launch_desktop(startup)
    finally:
        _shutdown_runtime()


if __name__ == "__main__":
    raise SystemExit(launch())
