import random
from pathlib import Path

import pytest

from midi_player.domain.player import MidiPlayer, PlaybackState, natural_key, to_track


def _names(player):
    return [track.name for track in player.playlist]


def _player(*names, **kwargs):
    return MidiPlayer([f"/music/{name}" for name in names], **kwargs)


def test_new_player_is_empty_and_stopped():
    player = MidiPlayer()

    assert player.is_empty()
    assert len(player) == 0
    assert player.cursor is None
    assert player.current_track() is None
    assert player.state is PlaybackState.STOPPED
    assert player.is_current_track(None) is True


def test_initial_tracks_place_cursor_on_first_row():
    player = _player("a.mid", "b.mid")

    assert player.cursor == 0
    assert player.current_track() == Path("/music/a.mid")
    assert player.is_current_track("/music/a.mid")


def test_to_track_converts_and_rejects_unknown_types():
    assert to_track(None) is None
    assert to_track("x.mid") == Path("x.mid")
    path = Path("y.mid")
    assert to_track(path) is path
    with pytest.raises(TypeError):
        to_track(42)


def test_add_none_is_ignored_and_first_add_sets_cursor():
    player = MidiPlayer()

    assert player.add(None) is False
    assert player.add("/music/a.mid") is True
    assert player.cursor == 0


def test_insert_before_cursor_keeps_current_track():
    player = _player("a.mid", "b.mid")
    player.move_to_song(1)

    assert player.insert(0, "/music/z.mid") is True

    assert _names(player) == ["z.mid", "a.mid", "b.mid"]
    assert player.cursor == 2
    assert player.current_track().name == "b.mid"


def test_insert_outside_playlist_raises():
    player = _player("a.mid")

    with pytest.raises(IndexError):
        player.insert(5, "/music/b.mid")


def test_insert_all_skips_none_and_reports_empty_input():
    player = _player("a.mid")

    assert player.insert_all(0, None) is False
    assert player.add_all([None]) is False
    assert player.insert_all(1, ["/music/b.mid", None, "/music/c.mid"]) is True
    assert _names(player) == ["a.mid", "b.mid", "c.mid"]


def test_remove_before_cursor_shifts_cursor():
    player = _player("a.mid", "b.mid", "c.mid")
    player.move_to_song(2)

    assert player.remove(0) is True

    assert player.cursor == 1
    assert player.current_track().name == "c.mid"


def test_remove_invalid_index_returns_false():
    player = _player("a.mid")

    assert player.remove(3) is False
    assert player.remove(-1) is False
    assert player.remove_all([7, 9]) is False
    assert player.remove_all(None) is False


def test_remove_current_track_while_playing_stops():
    player = _player("a.mid", "b.mid")
    player.start_playing()

    assert player.remove(0) is True

    assert player.is_stopped()
    assert player.cursor == 0
    assert player.current_track().name == "b.mid"


def test_remove_last_rows_clamps_cursor():
    player = _player("a.mid", "b.mid", "c.mid")
    player.move_to_song(2)

    assert player.remove_all([1, 2]) is True

    assert _names(player) == ["a.mid"]
    assert player.cursor == 0


def test_remove_track_and_tracks_by_path():
    player = _player("a.mid", "b.mid", "c.mid")

    assert player.remove_track("/music/missing.mid") is False
    assert player.remove_track("/music/b.mid") is True
    assert player.remove_tracks(["/music/a.mid", None]) is True
    assert _names(player) == ["c.mid"]
    assert player.remove_tracks(None) is False


def test_clear_empties_playlist_and_stops():
    player = _player("a.mid", "b.mid")
    player.start_playing()

    assert player.clear() is True

    assert player.is_empty()
    assert player.cursor is None
    assert player.is_stopped()
    assert player.clear() is False


def test_move_rows_down_lands_before_target_row():
    player = _player("a.mid", "b.mid", "c.mid", "d.mid")

    assert player.move_rows(0, 0, 2) is True

    assert _names(player) == ["b.mid", "a.mid", "c.mid", "d.mid"]
    assert player.cursor == 1
    assert player.current_track().name == "a.mid"


def test_move_rows_block_up_and_to_end():
    player = _player("a.mid", "b.mid", "c.mid", "d.mid")

    assert player.move_rows(2, 3, 0) is True
    assert _names(player) == ["c.mid", "d.mid", "a.mid", "b.mid"]

    assert player.move_rows(0, 1, 4) is True
    assert _names(player) == ["a.mid", "b.mid", "c.mid", "d.mid"]


def test_move_rows_inside_block_is_a_no_op():
    player = _player("a.mid", "b.mid", "c.mid")

    assert player.move_rows(0, 1, 1) is False
    assert _names(player) == ["a.mid", "b.mid", "c.mid"]


def test_move_rows_rejects_bad_ranges():
    player = _player("a.mid", "b.mid", "c.mid")

    with pytest.raises(IndexError):
        player.move_rows(0, 3, 1)
    with pytest.raises(IndexError):
        player.move_rows(0, 0, 4)
    with pytest.raises(ValueError):
        player.move_rows(2, 1, 0)


def test_single_row_move_round_trip_restores_order():
    original = ["a.mid", "b.mid", "c.mid", "d.mid", "e.mid"]
    for source in range(len(original)):
        for target in range(len(original) + 1):
            player = _player(*original)
            if not player.move_row(source, target):
                continue
            landed = target if target < source else target - 1
            back = source if source < landed else source + 1
            assert player.move_row(landed, back) is True
            assert _names(player) == original


def test_shuffle_keeps_multiset_and_current_track():
    player = _player("a.mid", "b.mid", "c.mid", "d.mid", "e.mid")
    player.move_to_song(3)

    assert player.shuffle_playlist(random.Random(7)) is True

    assert sorted(_names(player)) == ["a.mid", "b.mid", "c.mid", "d.mid", "e.mid"]
    assert player.current_track().name == "d.mid"


def test_shuffle_short_playlist_reports_no_change():
    assert MidiPlayer().shuffle_playlist() is False
    assert _player("a.mid").shuffle_playlist() is False


def test_sort_uses_natural_order_and_is_idempotent():
    player = _player("song10.mid", "song2.mid", "Song1.mid")
    player.move_to_song(1)

    assert player.sort_playlist() is True
    first = _names(player)
    assert player.sort_playlist() is True

    assert _names(player) == first == ["Song1.mid", "song2.mid", "song10.mid"]
    assert player.current_track().name == "song2.mid"


def test_sort_reverse_and_custom_key():
    player = _player("b.mid", "a.mid", "c.mid")

    player.sort_playlist(reverse=True)
    assert _names(player) == ["c.mid", "b.mid", "a.mid"]

    player.sort_playlist(key=lambda track: track.name.replace("b", "0"))
    assert _names(player) == ["b.mid", "a.mid", "c.mid"]


def test_natural_key_orders_digit_runs_numerically():
    tracks = [Path("t10.mid"), Path("t9.mid"), Path("t100.mid")]

    assert sorted(tracks, key=natural_key) == [
        Path("t9.mid"),
        Path("t10.mid"),
        Path("t100.mid"),
    ]


def test_flags_report_only_real_changes():
    player = MidiPlayer()

    assert player.set_looping(False) is False
    assert player.set_looping(True) is True
    assert player.looping is True
    assert player.set_playlist_looping(True) is True
    assert player.set_playlist_looping(True) is False


def test_state_transitions():
    player = _player("a.mid")

    assert player.pause_playing() is False
    assert player.stop_playing() is False
    assert player.start_playing() is True
    assert player.start_playing() is False
    assert player.pause_playing() is True
    assert player.is_paused()
    assert player.start_playing() is True
    assert player.stop_playing() is True
    assert player.is_stopped()


def test_start_playing_on_empty_playlist_fails():
    player = MidiPlayer()

    assert player.start_playing() is False
    assert player.is_stopped()


def test_next_song_scenario_with_and_without_playlist_looping():
    player = _player("A.mid", "B.mid", "C.mid")

    assert player.move_to_next_song(False) is True
    assert player.cursor == 1
    assert player.move_to_next_song(False) is True
    assert player.cursor == 2
    assert player.move_to_next_song(False) is False
    assert player.cursor == 2

    player.set_playlist_looping(True)
    assert player.move_to_next_song(False) is True
    assert player.cursor == 0


def test_forced_next_at_end_wraps_without_playlist_looping():
    player = _player("A.mid", "B.mid")
    player.move_to_song(1)

    assert player.move_to_next_song() is False
    assert player.cursor == 1
    assert player.move_to_next_song(force=True) is True
    assert player.cursor == 0
    assert player.playlist_looping is False


def test_previous_song_wraps_only_with_playlist_looping():
    player = _player("A.mid", "B.mid", "C.mid")

    assert player.move_to_previous_song() is False
    player.set_playlist_looping(True)
    assert player.move_to_previous_song() is True
    assert player.cursor == 2
    assert player.move_to_previous_song() is True
    assert player.cursor == 1


def test_navigation_on_empty_playlist_fails():
    player = MidiPlayer(playlist_looping=True)

    assert player.move_to_next_song() is False
    assert player.move_to_previous_song() is False
    assert player.move_to_song(0) is False


def test_move_to_track_and_start_playing_at():
    player = _player("A.mid", "B.mid")

    assert player.move_to_track("/music/missing.mid") is False
    assert player.move_to_track("/music/B.mid") is True
    assert player.cursor == 1
    assert player.start_playing_at(5) is False
    assert player.start_playing_at(0) is True
    assert player.is_playing()
    assert player.cursor == 0
