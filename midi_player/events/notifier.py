"""Listener registries and UI-thread dispatch for change notifications."""

from __future__ import annotations

import queue
import threading
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

L = TypeVar("L")

ALL_ROWS = -1
HEADER_ROW = -2
ALL_COLUMNS = -1


@dataclass(frozen=True)
class PropertyChangeEvent:
    source: Any
    property_name: str
    old_value: Any = None
    new_value: Any = None


@dataclass(frozen=True)
class TableChangeEvent:
    """Coarse redraw hint for the playlist table.

    ``first_row == ALL_ROWS`` means every row may have changed,
    ``first_row == HEADER_ROW`` means the column headers must be refreshed.
    """

    source: Any
    first_row: int = ALL_ROWS
    last_row: int = ALL_ROWS
    column: int = ALL_COLUMNS

    @property
    def is_header_change(self) -> bool:
        return self.first_row == HEADER_ROW


def values_differ(old_value: Any, new_value: Any) -> bool:
    """Return False only when both values are known and equal."""
    if old_value is None or new_value is None:
        return True
    return old_value != new_value


class _Stop:
    pass


_STOP = _Stop()


class DispatchQueue:
    """FIFO of notification tasks executed by one designated UI thread."""

    def __init__(self, logger=None) -> None:
        self.logger = logger
        self._tasks: queue.SimpleQueue = queue.SimpleQueue()
        self._ui_thread_id: int | None = None
        self._worker: threading.Thread | None = None

    def bind_current_thread(self) -> None:
        self._ui_thread_id = threading.get_ident()

    @property
    def bound(self) -> bool:
        return self._ui_thread_id is not None

    def is_ui_thread(self) -> bool:
        return self._ui_thread_id is not None and threading.get_ident() == self._ui_thread_id

    def post(self, task: Callable[[], None]) -> None:
        self._tasks.put(task)

    def pending(self) -> int:
        return self._tasks.qsize()

    def drain(self, limit: int | None = None) -> int:
        """Run queued tasks on the calling (UI) thread and return how many ran."""
        executed = 0
        while limit is None or executed < limit:
            try:
                task = self._tasks.get_nowait()
            except queue.Empty:
                break
            if task is _STOP:
                continue
            self._run_task(task)
            executed += 1
        return executed

    def start_worker(self, name: str = "midi-player-ui") -> threading.Thread:
        """Start a daemon thread that becomes the UI thread and runs tasks until stopped."""
        if self._worker is not None and self._worker.is_alive():
            return self._worker
        ready = threading.Event()

        def _loop() -> None:
            self.bind_current_thread()
            ready.set()
            while True:
                task = self._tasks.get()
                if task is _STOP:
                    return
                self._run_task(task)

        worker = threading.Thread(target=_loop, name=name, daemon=True)
        worker.start()
        ready.wait()
        self._worker = worker
        return worker

    def stop(self, timeout: float | None = None) -> None:
        worker = self._worker
        if worker is None:
            return
        self._tasks.put(_STOP)
        worker.join(timeout)
        self._worker = None
        self._ui_thread_id = None

    def _run_task(self, task: Callable[[], None]) -> None:
        try:
            task()
        except Exception:
            if self.logger is None:
                raise
            self.logger.exception("Queued UI task failed")


class Notifier(Generic[L]):
    """Ordered listener registry for one event category.

    The same listener may be registered several times and is then called once
    per registration. Listener exceptions propagate to the caller of ``fire``.
    """

    def __init__(self, name: str, *, dispatcher: DispatchQueue | None = None) -> None:
        self.name = name
        self.dispatcher = dispatcher
        self._listeners: list[L] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: L | None) -> bool:
        if listener is None:
            return False
        with self._lock:
            self._listeners.append(listener)
        return True

    def unsubscribe(self, listener: L | None) -> bool:
        if listener is None:
            return False
        with self._lock:
            try:
                self._listeners.remove(listener)
            except ValueError:
                return False
        return True

    def contains(self, listener: L | None) -> bool:
        with self._lock:
            return listener is not None and listener in self._listeners

    def list_all(self) -> tuple[L, ...]:
        with self._lock:
            return tuple(self._listeners)

    def clear(self) -> None:
        with self._lock:
            self._listeners.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._listeners)

    @property
    def notify_on_ui_thread(self) -> bool:
        return self.dispatcher is not None

    def notify(self, deliver: Callable[[L], None]) -> None:
        """Call ``deliver`` for each listener, on the UI thread when one is configured."""
        dispatcher = self.dispatcher
        if dispatcher is not None and not dispatcher.is_ui_thread():
            dispatcher.post(lambda: self._deliver_all(deliver))
            return
        self._deliver_all(deliver)

    def _deliver_all(self, deliver: Callable[[L], None]) -> None:
        for listener in self.list_all():
            deliver(listener)

    def fire(self, *args: Any) -> None:
        self.notify(lambda listener: listener(*args))

    def fire_change(
        self,
        old_value: Any,
        new_value: Any,
        build_event: Callable[[Any, Any], Any],
    ) -> bool:
        """Fire ``build_event(old, new)`` unless both values are known and equal."""
        if not values_differ(old_value, new_value):
            return False
        self.fire(build_event(old_value, new_value))
        return True
