import os
from pathlib import Path
from types import SimpleNamespace

import mido
import pytest

from midi_player.integrations.midi_files import (
    SongLengthCache,
    format_song_info,
    is_midi_file,
    read_song_length,
)
from midi_player.integrations.vlc_backend import VlcMidiBackend


class _Logger:
    def __init__(self):
        self.debugs = []

    def debug(self, message, *args, **_kwargs):
        self.debugs.append(message % args if args else message)


def _write_midi(path: Path, ticks: int = 960) -> Path:
    midi = mido.MidiFile(ticks_per_beat=480)
    track = mido.MidiTrack()
    midi.tracks.append(track)
    track.append(mido.MetaMessage("set_tempo", tempo=500000, time=0))
    track.append(mido.Message("note_on", note=60, velocity=64, time=0))
    track.append(mido.Message("note_off", note=60, velocity=64, time=ticks))
    track.append(mido.MetaMessage("end_of_track", time=0))
    midi.save(str(path))
    return path


def test_is_midi_file_checks_suffix_case_insensitively():
    assert is_midi_file("song.mid")
    assert is_midi_file(Path("SONG.MIDI"))
    assert is_midi_file("karaoke.kar")
    assert not is_midi_file("cover.jpg")


def test_format_song_info_with_and_without_length():
    assert format_song_info("/music/a.mid", 75.4) == "a.mid (1:15)"
    assert format_song_info("/music/a.mid", None) == "a.mid"


def test_read_song_length_uses_mido(tmp_path):
    song = _write_midi(tmp_path / "two_beats.mid", ticks=960)

    assert read_song_length(song) == pytest.approx(1.0)


def test_read_song_length_returns_none_for_invalid_files(tmp_path):
    logger = _Logger()
    broken = tmp_path / "broken.mid"
    broken.write_bytes(b"not a midi file")

    assert read_song_length(broken, logger=logger) is None
    assert read_song_length(tmp_path / "missing.mid") is None
    assert logger.debugs == [f"Cannot read MIDI length: {broken}"]


def test_song_length_cache_reuses_results_until_file_changes(tmp_path, monkeypatch):
    import midi_player.integrations.midi_files as midi_files_mod

    song = _write_midi(tmp_path / "a.mid")
    calls = []
    original = midi_files_mod.read_song_length

    def _counting(path, *, logger=None):
        calls.append(path)
        return original(path, logger=logger)

    monkeypatch.setattr(midi_files_mod, "read_song_length", _counting)
    cache = SongLengthCache(_Logger())

    assert cache.song_info(song) == "a.mid (0:01)"
    assert cache.read_song_length(song) == pytest.approx(1.0)
    assert len(calls) == 1

    cache.clear()
    cache.read_song_length(song)
    assert len(calls) == 2
    assert cache.read_song_length(tmp_path / "missing.mid") is None


def test_song_length_cache_replaces_entry_when_file_changes(tmp_path):
    song = _write_midi(tmp_path / "a.mid")
    os.utime(song, (1_000_000, 1_000_000))
    cache = SongLengthCache(_Logger())

    assert cache.read_song_length(song) == pytest.approx(1.0)
    assert len(cache) == 1

    _write_midi(song, ticks=1920)
    os.utime(song, (2_000_000, 2_000_000))

    assert cache.read_song_length(song) == pytest.approx(2.0)
    assert len(cache) == 1


class _FakeMediaPlayer:
    def __init__(self, play_rc=0):
        self.calls = []
        self.play_rc = play_rc
        self.state = "Playing"

    def set_media(self, media):
        self.calls.append(("set_media", media.path))

    def play(self):
        self.calls.append(("play",))
        return self.play_rc

    def set_pause(self, value):
        self.calls.append(("set_pause", value))

    def stop(self):
        self.calls.append(("stop",))

    def is_playing(self):
        return 1

    def audio_set_volume(self, value):
        self.calls.append(("volume", value))

    def get_time(self):
        return 1200

    def get_length(self):
        return None

    def get_state(self):
        return self.state

    def release(self):
        self.calls.append(("release",))


class _FakeMedia:
    def __init__(self, path):
        self.path = path
        self.released = False

    def release(self):
        self.released = True


def _fake_vlc(player):
    created = {}

    class _Instance:
        def __init__(self, args):
            created["args"] = args

        def media_player_new(self):
            return player

        def media_new(self, path):
            media = _FakeMedia(path)
            created.setdefault("media", []).append(media)
            return media

        def release(self):
            created["instance_released"] = True

    module = SimpleNamespace(
        Instance=_Instance,
        State=SimpleNamespace(Ended="Ended", Error="Error"),
    )
    return module, created


def test_vlc_backend_builds_instance_arguments():
    player = _FakeMediaPlayer()
    module, created = _fake_vlc(player)

    VlcMidiBackend(
        soundfont_path="/sf/GeneralUser.sf2",
        volume=130,
        vlc_module=module,
        platform_name="linux",
    )

    assert created["args"] == ["--no-video", "--no-xlib", "--soundfont=/sf/GeneralUser.sf2"]
    assert player.calls == [("volume", 100)]


def test_vlc_backend_load_play_and_state(tmp_path):
    player = _FakeMediaPlayer()
    module, created = _fake_vlc(player)
    backend = VlcMidiBackend(vlc_module=module, platform_name="win32")
    first = _write_midi(tmp_path / "a.mid")
    second = _write_midi(tmp_path / "b.mid")

    assert created["args"] == ["--no-video"]
    backend.load(str(first))
    backend.load(str(second))
    backend.play()
    backend.set_pause(True)

    assert created["media"][0].released is True
    assert player.calls[-2:] == [("play",), ("set_pause", 1)]
    assert backend.is_playing() is True
    assert backend.get_time_ms() == 1200
    assert backend.get_length_ms() == 0
    assert backend.is_finished() is False
    player.state = "Ended"
    assert backend.is_finished() is True
    player.state = "Error"
    assert backend.has_failed() is True

    backend.release()
    assert created["media"][1].released is True
    assert created["instance_released"] is True


def test_vlc_backend_errors(tmp_path):
    player = _FakeMediaPlayer(play_rc=-1)
    module, _created = _fake_vlc(player)
    backend = VlcMidiBackend(vlc_module=module)

    with pytest.raises(FileNotFoundError):
        backend.load(str(tmp_path / "missing.mid"))
    with pytest.raises(RuntimeError):
        backend.play()


def test_vlc_backend_requires_module(monkeypatch):
    import midi_player.integrations.vlc_backend as vlc_backend_mod

    monkeypatch.setattr(vlc_backend_mod, "_vlc", None)

    with pytest.raises(RuntimeError):
        VlcMidiBackend()
