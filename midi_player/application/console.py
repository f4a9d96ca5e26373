"""Headless command console running on a dispatch worker thread."""

from __future__ import annotations

import sys
import threading
from typing import Callable, Iterable

from ..events import DispatchQueue
from .commands import CLEAR, ERROR_LEVEL, SUCCESS, PlayerController
from .playback_engine import PlaybackEngine

OutputWriter = Callable[[str, str], None]


def print_output(level: str, message: str) -> None:
    if level == CLEAR:
        sys.stdout.write("\033[2J\033[H")
        sys.stdout.flush()
        return
    stream = sys.stderr if level == ERROR_LEVEL else sys.stdout
    print(message, file=stream, flush=True)


class ConsoleSession:
    """Feeds console lines to the controller on the dispatcher's worker thread.

    The worker plays the role of the UI thread: commands, player
    notifications and engine ticks all run on it, one at a time.
    """

    def __init__(
        self,
        controller: PlayerController,
        engine: PlaybackEngine | None,
        logger,
        *,
        dispatcher: DispatchQueue | None = None,
        tick_interval_ms: int = 120,
        output: OutputWriter | None = None,
    ) -> None:
        self.controller = controller
        self.engine = engine
        self.logger = logger
        self.dispatcher = dispatcher if dispatcher is not None else DispatchQueue(logger)
        self.tick_interval_ms = tick_interval_ms
        self.output = output or print_output
        self._stop = threading.Event()
        self._ticker: threading.Thread | None = None
        controller.add_output_listener(self.output)
        controller.add_exit_listener(self._on_exit)

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def _on_exit(self, code: int) -> None:
        self._stop.set()

    def start(self) -> None:
        self.dispatcher.start_worker("midi-player-console")
        if self.engine is not None and self._ticker is None:
            ticker = threading.Thread(
                target=self._tick_loop,
                args=(self.engine,),
                name="midi-player-ticker",
                daemon=True,
            )
            ticker.start()
            self._ticker = ticker
        self.logger.debug("Console session started")

    def _tick_loop(self, engine: PlaybackEngine) -> None:
        interval = self.tick_interval_ms / 1000.0
        while not self._stop.wait(interval):
            self.dispatcher.post(engine.tick)

    def submit(self, line: str, timeout: float | None = None) -> int | None:
        """Run one line on the worker and wait for its status code."""
        done = threading.Event()
        result: list[int] = []

        def _task() -> None:
            try:
                result.append(self.controller.run_line(line))
            finally:
                done.set()

        self.dispatcher.post(_task)
        if not done.wait(timeout):
            self.logger.warning("Console command timed out: %s", line)
            return None
        return result[0] if result else None

    def run(self, lines: Iterable[str]) -> int:
        self.start()
        try:
            for raw_line in lines:
                line = raw_line.strip()
                if line:
                    self.submit(line)
                if self.stopped:
                    break
        except KeyboardInterrupt:
            self.logger.info("Console interrupted")
        finally:
            self.close()
        code = self.controller.exit_code
        return SUCCESS if code is None else code

    def close(self) -> None:
        self._stop.set()
        if self._ticker is not None:
            self._ticker.join(timeout=1.0)
            self._ticker = None
        self.dispatcher.stop(timeout=1.0)
        self.controller.remove_output_listener(self.output)
        self.controller.remove_exit_listener(self._on_exit)
