"""Per-locale message catalogs backed by JSON files."""

from __future__ import annotations

import json
import threading
from pathlib import Path

from .manager import LocaleManager

CATALOG_DIR = Path(__file__).resolve().parent / "catalogs"
MNEMONIC_MARKER = "&"


def strip_mnemonic(text: str) -> str:
    index = text.find(MNEMONIC_MARKER)
    if index < 0:
        return text
    return text[:index] + text[index + 1 :]


def mnemonic_index(text: str) -> int:
    index = text.find(MNEMONIC_MARKER)
    if index < 0 or index + 1 >= len(text):
        return -1
    return index


class MessageCatalog:
    """Lazy lookup of localized strings for the manager's active locale.

    Messages may mark a mnemonic with ``&`` ("&Play"); it is stripped from the
    returned text and exposed through ``get_mnemonic``. Arguments are applied
    with ``str.format`` (``"{0} songs"``).
    """

    def __init__(
        self,
        locale_manager: LocaleManager,
        logger,
        catalog_dir: str | Path | None = None,
    ) -> None:
        self.locale_manager = locale_manager
        self.logger = logger
        self.catalog_dir = Path(catalog_dir) if catalog_dir else CATALOG_DIR
        self._messages: dict[str, str] | None = None
        self._lock = threading.Lock()
        locale_manager.add_resource_listener(self)

    def close(self) -> None:
        self.locale_manager.remove_resource_listener(self)

    def locale_changed(self, event=None) -> None:
        with self._lock:
            self._messages = None

    def _candidate_files(self, locale: str) -> list[Path]:
        language = locale.split("_", 1)[0]
        names = [f"messages_{locale}.json"]
        if language != locale:
            names.append(f"messages_{language}.json")
        names.append("messages.json")
        return [self.catalog_dir / name for name in names]

    def _load(self) -> dict[str, str]:
        messages: dict[str, str] = {}
        locale = self.locale_manager.locale
        # Least specific first so that locale entries override the fallbacks.
        for path in reversed(self._candidate_files(locale)):
            if not path.is_file():
                continue
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, ValueError):
                self.logger.exception("Failed to read message catalog: %s", path)
                continue
            if not isinstance(data, dict):
                self.logger.warning("Ignoring malformed message catalog: %s", path)
                continue
            messages.update({str(key): str(value) for key, value in data.items()})
        if not messages:
            self.logger.warning("No message catalog found for locale %s", locale)
        return messages

    def _catalog(self) -> dict[str, str]:
        with self._lock:
            if self._messages is None:
                self._messages = self._load()
            return self._messages

    def has_message(self, key: str) -> bool:
        return key in self._catalog()

    def _raw(self, key: str, default: str | None) -> str:
        raw = self._catalog().get(key)
        if raw is None:
            self.logger.warning(
                "Missing message key %s for locale %s", key, self.locale_manager.locale
            )
            return default if default is not None else key
        return raw

    def get_message(self, key: str, *args, default: str | None = None) -> str:
        text = strip_mnemonic(self._raw(key, default))
        if not args:
            return text
        try:
            return text.format(*args)
        except (IndexError, KeyError, ValueError):
            self.logger.warning("Cannot format message %s with %s", key, args)
            return text

    def get_mnemonic(self, key: str, default: str | None = None) -> str | None:
        raw = self._raw(key, default)
        index = mnemonic_index(raw)
        if index < 0:
            return None
        return raw[index + 1]

    def get_displayed_mnemonic_index(self, key: str, default: str | None = None) -> int:
        return mnemonic_index(self._raw(key, default))

    def text_and_underline(self, key: str, default: str | None = None) -> tuple[str, int]:
        raw = self._raw(key, default)
        return strip_mnemonic(raw), mnemonic_index(raw)
