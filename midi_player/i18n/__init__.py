"""Localization: active locale and message catalogs."""

from .catalog import CATALOG_DIR, MessageCatalog, mnemonic_index, strip_mnemonic
from .manager import LocaleManager, deliver_locale_change

__all__ = [
    "CATALOG_DIR",
    "LocaleManager",
    "MessageCatalog",
    "deliver_locale_change",
    "mnemonic_index",
    "strip_mnemonic",
]
