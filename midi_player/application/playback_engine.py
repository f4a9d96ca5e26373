"""Drives an audio backend from the player's playback state."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Protocol

from ..constants import CURRENT_SONG_CHANGE, PLAYBACK_STATE_CHANGE
from ..domain.player import PlaybackState
from .observable_player import ObservableMidiPlayer


class MidiBackend(Protocol):
    def load(self, path: str) -> None: ...

    def play(self) -> None: ...

    def set_pause(self, on: bool) -> None: ...

    def stop(self) -> None: ...

    def is_finished(self) -> bool: ...

    def has_failed(self) -> bool: ...

    def set_volume(self, vol_0_100: int) -> None: ...

    def get_time_ms(self) -> int: ...

    def get_length_ms(self) -> int: ...

    def release(self) -> None: ...


BackendFactory = Callable[[], MidiBackend]


class PlaybackEngine:
    """Keeps the backend in step with the player.

    The engine listens to the player's property events and reconciles the
    backend with the player's current state, so deferred deliveries are
    harmless. ``tick`` must be called periodically to detect the end of a
    track.
    """

    def __init__(
        self,
        player: ObservableMidiPlayer,
        backend_factory: BackendFactory,
        logger,
        *,
        volume: int | None = None,
    ) -> None:
        self.player = player
        self.backend_factory = backend_factory
        self.logger = logger
        self.volume = volume
        self._backend: MidiBackend | None = None
        self._loaded: Path | None = None
        self._backend_state = PlaybackState.STOPPED
        player.add_property_change_listener(self.property_change)

    @property
    def loaded_track(self) -> Path | None:
        return self._loaded

    @property
    def backend_state(self) -> PlaybackState:
        return self._backend_state

    def property_change(self, event) -> None:
        if event.property_name in (PLAYBACK_STATE_CHANGE, CURRENT_SONG_CHANGE):
            self.sync()

    def _ensure_backend(self) -> MidiBackend:
        if self._backend is None:
            backend = self.backend_factory()
            if self.volume is not None:
                backend.set_volume(self.volume)
            self._backend = backend
            self.logger.debug("Playback backend created: %s", type(backend).__name__)
        return self._backend

    def sync(self) -> None:
        player = self.player
        track = player.current_track()
        try:
            if player.is_stopped() or track is None:
                self._stop_backend()
            elif player.is_playing():
                if self._loaded != track:
                    self._load_and_play(track)
                elif self._backend_state is PlaybackState.PAUSED:
                    self._ensure_backend().set_pause(False)
                    self._backend_state = PlaybackState.PLAYING
                    self.logger.info("Playback resumed: %s", track.name)
                elif self._backend_state is PlaybackState.STOPPED:
                    self._load_and_play(track)
            elif player.is_paused():
                if self._loaded != track:
                    self._stop_backend()
                elif self._backend_state is PlaybackState.PLAYING:
                    self._ensure_backend().set_pause(True)
                    self._backend_state = PlaybackState.PAUSED
                    self.logger.info("Playback paused: %s", track.name)
        except Exception as exc:
            self._fail(track, exc)

    def _load_and_play(self, track: Path) -> None:
        backend = self._ensure_backend()
        backend.load(str(track))
        self._loaded = track
        backend.play()
        self._backend_state = PlaybackState.PLAYING
        self.logger.info("Playback started: %s", track)

    def _stop_backend(self) -> None:
        if self._backend is not None and self._backend_state is not PlaybackState.STOPPED:
            self._backend.stop()
            self.logger.info("Playback stopped")
        self._backend_state = PlaybackState.STOPPED
        self._loaded = None

    def _fail(self, track: Path | None, exc: Exception) -> None:
        name = track.name if track is not None else "?"
        self.logger.exception("Playback failed for %s", name)
        self._backend_state = PlaybackState.STOPPED
        self._loaded = None
        self.player.report_error(f"Cannot play {name}: {exc}", exc)
        self.player.stop_playing()

    def tick(self) -> None:
        """Advance to the next song when the backend reports the end of the current one."""
        backend = self._backend
        if backend is None or self._backend_state is not PlaybackState.PLAYING:
            return
        if not self.player.is_playing():
            return
        try:
            if backend.has_failed():
                raise RuntimeError("backend reported an error")
            finished = backend.is_finished()
        except Exception as exc:
            self._fail(self._loaded, exc)
            return
        if not finished:
            return
        self.logger.debug("End of track: %s", self._loaded)
        # The next sync reloads, even when the next entry has the same path.
        self._loaded = None
        if self.player.looping or self.player.move_to_next_song():
            self.sync()
            return
        self.player.stop_playing()
        self._stop_backend()

    def set_volume(self, volume: int) -> None:
        self.volume = max(0, min(100, int(volume)))
        if self._backend is not None:
            self._backend.set_volume(self.volume)

    def position_ms(self) -> tuple[int, int]:
        if self._backend is None or self._backend_state is PlaybackState.STOPPED:
            return 0, 0
        return self._backend.get_time_ms(), self._backend.get_length_ms()

    def close(self) -> None:
        self.player.remove_property_change_listener(self.property_change)
        backend = self._backend
        self._backend = None
        self._loaded = None
        self._backend_state = PlaybackState.STOPPED
        if backend is not None:
            backend.release()
