"""libVLC playback backend for MIDI files."""

from __future__ import annotations

import os
import sys

try:
    import vlc as _vlc
except Exception:  # pragma: no cover - dependency optional at import time
    _vlc = None


class VlcMidiBackend:
    """Thin libVLC wrapper; MIDI files are rendered by VLC's FluidSynth module."""

    def __init__(
        self,
        *,
        soundfont_path: str = "",
        volume: int | None = None,
        logger=None,
        vlc_module=None,
        platform_name: str | None = None,
    ) -> None:
        self._vlc = vlc_module if vlc_module is not None else _vlc
        if self._vlc is None:
            raise RuntimeError("python-vlc is not available")
        self.logger = logger
        platform_value = platform_name if platform_name is not None else sys.platform
        args = ["--no-video"]
        if str(platform_value).startswith("linux"):
            args.append("--no-xlib")
        if soundfont_path:
            args.append(f"--soundfont={soundfont_path}")
        self.instance = self._vlc.Instance(args)
        if self.instance is None:
            raise RuntimeError("libVLC could not be initialized")
        self.player = self.instance.media_player_new()
        self.media = None
        if volume is not None:
            self.set_volume(volume)

    def load(self, path: str) -> None:
        if not os.path.isfile(path):
            raise FileNotFoundError(path)
        self._release_media()
        media = self.instance.media_new(os.path.abspath(path))
        self.player.set_media(media)
        self.media = media

    def play(self) -> None:
        rc = int(self.player.play())
        if rc == -1:
            raise RuntimeError("VLC failed to start playback.")

    def set_pause(self, on: bool) -> None:
        self.player.set_pause(1 if on else 0)

    def stop(self) -> None:
        self.player.stop()

    def is_playing(self) -> bool:
        return bool(self.player.is_playing())

    def is_finished(self) -> bool:
        return self.get_state() == self._vlc.State.Ended

    def has_failed(self) -> bool:
        return self.get_state() == self._vlc.State.Error

    def set_volume(self, vol_0_100: int) -> None:
        self.player.audio_set_volume(max(0, min(100, int(vol_0_100))))

    def get_time_ms(self) -> int:
        return int(self.player.get_time() or 0)

    def get_length_ms(self) -> int:
        return int(self.player.get_length() or 0)

    def get_state(self):
        return self.player.get_state()

    def _release_media(self) -> None:
        if self.media is None:
            return
        try:
            self.media.release()
        except Exception:
            self._debug("Failed to release VLC media")
        self.media = None

    def release(self) -> None:
        try:
            self.player.stop()
        except Exception:
            self._debug("Failed to stop VLC player")
        self._release_media()
        for resource in (self.player, self.instance):
            try:
                resource.release()
            except Exception:
                self._debug("Failed to release VLC resource")

    def _debug(self, message: str) -> None:
        if self.logger is not None:
            self.logger.debug(message, exc_info=True)
