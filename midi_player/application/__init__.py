"""Application layer orchestration."""

from .bootstrap import AppServices, initialize_app_services, shutdown_app_services
from .commands import CommandShell, PlayerCommand, PlayerController, build_default_commands
from .console import ConsoleSession
from .context import AppContext
from .observable_player import ObservableMidiPlayer
from .playback_engine import PlaybackEngine

__all__ = [
    "AppContext",
    "AppServices",
    "CommandShell",
    "ConsoleSession",
    "ObservableMidiPlayer",
    "PlaybackEngine",
    "PlayerCommand",
    "PlayerController",
    "build_default_commands",
    "initialize_app_services",
    "shutdown_app_services",
]
