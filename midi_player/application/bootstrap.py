"""Application bootstrap assembly for player, playback and UI services."""
from __future__ import annotations

from dataclasses import dataclass

from ..config import AppConfig
from ..constants import AVAILABLE_LOCALES
from ..events import DispatchQueue
from ..i18n import LocaleManager, MessageCatalog
from ..integrations.midi_files import SongLengthCache
from ..integrations.vlc_backend import VlcMidiBackend
from ..ui.desktop_types import DesktopApp
from ..ui.tkinter_app import create_tkinter_app
from .commands import PlayerCommand, PlayerController, build_default_commands
from .observable_player import ObservableMidiPlayer
from .playback_engine import BackendFactory, PlaybackEngine


@dataclass(frozen=True)
class AppServices:
    locale_manager: LocaleManager
    catalog: MessageCatalog
    dispatcher: DispatchQueue | None
    song_lengths: SongLengthCache
    player: ObservableMidiPlayer
    engine: PlaybackEngine
    controller: PlayerController
    commands: tuple[PlayerCommand, ...]
    app: DesktopApp | None


def build_backend_factory(config: AppConfig, logger) -> BackendFactory:
    """Create a factory opening a libVLC backend on first playback."""

    def _backend_factory() -> VlcMidiBackend:
        return VlcMidiBackend(
            soundfont_path=config.soundfont_path,
            volume=config.volume,
            logger=logger,
        )

    return _backend_factory


def initialize_app_services(
    *,
    config: AppConfig,
    logger,
    backend_factory: BackendFactory | None = None,
    dispatcher: DispatchQueue | None = None,
    create_ui: bool = True,
    rng=None,
) -> AppServices:
    """Construct all runtime services and return a typed service bundle."""
    locale_manager = LocaleManager(config.locale, AVAILABLE_LOCALES, logger)
    catalog = MessageCatalog(locale_manager, logger)
    if dispatcher is None and config.notify_on_ui_thread:
        dispatcher = DispatchQueue(logger)
    song_lengths = SongLengthCache(logger)
    player = ObservableMidiPlayer(
        looping=config.song_looping,
        playlist_looping=config.playlist_looping,
        dispatcher=dispatcher,
        catalog=catalog,
        song_info=song_lengths.song_info,
        logger=logger,
    )
    locale_manager.add_listener(player)

    engine = PlaybackEngine(
        player,
        backend_factory or build_backend_factory(config, logger),
        logger,
        volume=config.volume,
    )

    controller = PlayerController(player, catalog, logger)
    commands = tuple(build_default_commands(player, catalog, locale_manager, logger, rng=rng))
    controller.add_commands(commands)
    for command in commands:
        locale_manager.add_listener(command)
    logger.info(
        "Player services ready: locale=%s notify_on_ui_thread=%s commands=%s",
        locale_manager.locale,
        dispatcher is not None,
        len(commands),
    )

    app = None
    if create_ui:
        app = create_tkinter_app(
            config=config,
            logger=logger,
            player=player,
            controller=controller,
            catalog=catalog,
            locale_manager=locale_manager,
            engine=engine,
            dispatcher=dispatcher,
        )

    return AppServices(
        locale_manager=locale_manager,
        catalog=catalog,
        dispatcher=dispatcher,
        song_lengths=song_lengths,
        player=player,
        engine=engine,
        controller=controller,
        commands=commands,
        app=app,
    )


def shutdown_app_services(services: AppServices, logger) -> None:
    """Release playback resources and detach every listener."""
    try:
        services.engine.close()
    except Exception:
        logger.exception("Playback engine shutdown failed")
    services.controller.clear()
    services.catalog.close()
    services.locale_manager.close()
    if services.dispatcher is not None:
        services.dispatcher.stop(timeout=1.0)
    logger.debug("Application services released")
