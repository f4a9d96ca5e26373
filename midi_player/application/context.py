"""Runtime dependency container for the desktop application."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..config import AppConfig
    from .bootstrap import AppServices


@dataclass
class AppContext:
    """Holds runtime dependencies assembled at startup."""

    config: "AppConfig"
    logger: Any
    skip_app_init: bool
    console_mode: bool = False
    locale_manager: Any = None
    catalog: Any = None
    dispatcher: Any = None
    player: Any = None
    engine: Any = None
    controller: Any = None
    app: Any = None
    services: "AppServices | None" = None

    def bind_services(self, services: "AppServices") -> None:
        self.services = services
        self.locale_manager = services.locale_manager
        self.catalog = services.catalog
        self.dispatcher = services.dispatcher
        self.player = services.player
        self.engine = services.engine
        self.controller = services.controller
        self.app = services.app

    @property
    def initialized(self) -> bool:
        return self.services is not None
