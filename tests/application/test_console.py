import shlex
import threading

from midi_player.application.commands import (
    CLEAR,
    ERROR_LEVEL,
    PlayerController,
    build_default_commands,
)
from midi_player.application.console import ConsoleSession, print_output
from midi_player.application.observable_player import ObservableMidiPlayer
from midi_player.events import DispatchQueue
from midi_player.i18n import LocaleManager, MessageCatalog


class _Logger:
    def __init__(self):
        self.infos = []

    def debug(self, message, *args, **_kwargs):
        return None

    def info(self, message, *args, **_kwargs):
        self.infos.append(message % args if args else message)

    def warning(self, message, *args, **_kwargs):
        return None

    def error(self, message, *args, **_kwargs):
        return None

    def log(self, level, message, *args, **_kwargs):
        return None

    def exception(self, message, *args, **_kwargs):
        return None


class _Engine:
    def __init__(self):
        self.ticks = []

    def tick(self):
        self.ticks.append(threading.current_thread().name)


def _session(dispatcher=None, engine=None):
    logger = _Logger()
    locale_manager = LocaleManager("en_US")
    catalog = MessageCatalog(locale_manager, logger)
    player = ObservableMidiPlayer(dispatcher=dispatcher, catalog=catalog, logger=logger)
    controller = PlayerController(player, catalog, logger)
    controller.add_commands(build_default_commands(player, catalog, locale_manager, logger))
    output = []
    session = ConsoleSession(
        controller,
        engine,
        logger,
        dispatcher=dispatcher,
        tick_interval_ms=20,
        output=lambda level, message: output.append((level, message)),
    )
    return session, controller, player, output


def test_run_executes_lines_on_worker_and_stops_on_exit():
    session, controller, _player, output = _session()

    code = session.run(["echo one", "", "   ", "exit 4", "echo never"])

    assert code == 4
    assert output == [("info", "one")]
    assert session.stopped is True
    assert controller.output_notifier.contains(session.output) is False


def test_run_returns_success_when_input_ends():
    session, _controller, _player, output = _session()

    assert session.run(["nope"]) == 0
    assert output == [(ERROR_LEVEL, "Unknown command: nope")]


def test_player_notifications_are_delivered_on_worker(tmp_path):
    dispatcher = DispatchQueue()
    session, controller, player, _output = _session(dispatcher=dispatcher)
    song = tmp_path / "a.mid"
    song.write_bytes(b"MThd")
    seen = []
    player.add_property_change_listener(
        lambda event: seen.append(threading.current_thread().name)
    )

    session.start()
    try:
        assert session.submit(shlex.join(["loadMidiFile", str(song)]), timeout=2.0) == 0
        assert session.submit("playSong", timeout=2.0) == 0
    finally:
        session.close()

    assert player.is_playing()
    assert seen
    assert set(seen) == {"midi-player-console"}
    assert controller.get_command("pauseSong").enabled is True


def test_ticker_posts_engine_ticks_to_worker():
    engine = _Engine()
    session, _controller, _player, _output = _session(engine=engine)
    session.start()
    try:
        waiter = threading.Event()
        for _ in range(100):
            if engine.ticks:
                break
            waiter.wait(0.02)
    finally:
        session.close()

    assert engine.ticks
    assert set(engine.ticks) == {"midi-player-console"}


def test_print_output_routes_levels(capsys):
    print_output("info", "hello")
    print_output(ERROR_LEVEL, "oops")
    print_output(CLEAR, "")

    captured = capsys.readouterr()
    assert captured.out.startswith("hello\n")
    assert "\033[2J" in captured.out
    assert captured.err == "oops\n"
