"""Configuration loading from environment variables."""
from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from .constants import AVAILABLE_LOCALES, DEFAULT_LOCALE
from .utils import TRUE_VALUES, parse_int_env, resolve_path


@dataclass(frozen=True)
class AppConfig:
    log_level: str
    file_log_level: str
    log_dir: str
    log_file: str
    locale: str = DEFAULT_LOCALE
    notify_on_ui_thread: bool = True
    soundfont_path: str = ""
    song_looping: bool = False
    playlist_looping: bool = False
    tick_interval_ms: int = 120
    dispatch_poll_ms: int = 30
    volume: int = 80


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in TRUE_VALUES


def _resolve_locale(value: str) -> str:
    normalized = value.strip().replace("-", "_")
    for candidate in AVAILABLE_LOCALES:
        if candidate.lower() == normalized.lower():
            return candidate
    return AVAILABLE_LOCALES[0]


def load_config() -> AppConfig:
    base_dir = str(Path(__file__).resolve().parents[1])
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    file_log_level = os.getenv("FILE_LOG_LEVEL", "DEBUG").upper()
    log_dir = resolve_path(os.getenv("LOG_DIR", "logs"), base_dir)
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(
        log_dir, f"midi_player_{datetime.now().strftime('%Y%m%d_%H%M%S_%f')}.log"
    )
    locale = _resolve_locale(os.getenv("MIDI_PLAYER_LOCALE", DEFAULT_LOCALE))
    notify_on_ui_thread = _env_flag("MIDI_PLAYER_NOTIFY_ON_UI_THREAD", "1")
    soundfont_raw = os.getenv("MIDI_PLAYER_SOUNDFONT", "").strip()
    soundfont_path = resolve_path(soundfont_raw, base_dir) if soundfont_raw else ""
    song_looping = _env_flag("MIDI_PLAYER_SONG_LOOPING", "0")
    playlist_looping = _env_flag("MIDI_PLAYER_PLAYLIST_LOOPING", "0")
    tick_interval_ms = parse_int_env(
        "MIDI_PLAYER_TICK_MS", 120, min_value=20, max_value=2000
    )
    dispatch_poll_ms = parse_int_env(
        "MIDI_PLAYER_DISPATCH_POLL_MS", 30, min_value=5, max_value=1000
    )
    volume = parse_int_env("MIDI_PLAYER_VOLUME", 80, min_value=0, max_value=100)
    return AppConfig(
        log_level=log_level,
        file_log_level=file_log_level,
        log_dir=log_dir,
        log_file=log_file,
        locale=locale,
        notify_on_ui_thread=notify_on_ui_thread,
        soundfont_path=soundfont_path,
        song_looping=song_looping,
        playlist_looping=playlist_looping,
        tick_interval_ms=tick_interval_ms,
        dispatch_poll_ms=dispatch_poll_ms,
        volume=volume,
    )
