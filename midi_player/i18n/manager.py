"""Active locale holder with an ordered two-tier change bus."""

from __future__ import annotations

import inspect
from typing import Any

from ..constants import AVAILABLE_LOCALES, LOCALE_PROPERTY
from ..events import Notifier, PropertyChangeEvent


def deliver_locale_change(listener: Any, event: PropertyChangeEvent | None) -> None:
    """Call ``listener.locale_changed`` with or without the event, whichever it accepts."""
    handler = getattr(listener, "locale_changed", listener)
    if event is None or not _accepts_event(handler):
        handler()
        return
    handler(event)


def _accepts_event(handler) -> bool:
    try:
        signature = inspect.signature(handler)
    except (TypeError, ValueError):
        return True
    for parameter in signature.parameters.values():
        if parameter.kind in (parameter.VAR_POSITIONAL, parameter.POSITIONAL_ONLY):
            return True
        if parameter.kind is parameter.POSITIONAL_OR_KEYWORD:
            return True
    return False


class LocaleManager:
    """Owns the active locale.

    Resource listeners (message caches) are notified before general listeners,
    so that the latter always read strings for the new locale.
    """

    def __init__(
        self,
        locale: str,
        available_locales: tuple[str, ...] = AVAILABLE_LOCALES,
        logger=None,
    ) -> None:
        self.available_locales = tuple(available_locales)
        if locale not in self.available_locales:
            raise ValueError(f"Unsupported locale: {locale}")
        self.logger = logger
        self._locale = locale
        self._resource_listeners: Notifier = Notifier("locale.resources")
        self._listeners: Notifier = Notifier("locale.beans")

    @property
    def locale(self) -> str:
        return self._locale

    @property
    def language(self) -> str:
        return self._locale.split("_", 1)[0]

    def set_locale(self, locale: str) -> bool:
        if locale not in self.available_locales:
            raise ValueError(f"Unsupported locale: {locale}")
        old_locale = self._locale
        if locale == old_locale:
            return False
        self._locale = locale
        if self.logger is not None:
            self.logger.info("Locale changed: %s -> %s", old_locale, locale)
        event = PropertyChangeEvent(self, LOCALE_PROPERTY, old_locale, locale)
        self._fire(event)
        return True

    def refresh(self) -> None:
        self._fire(None)

    def _fire(self, event: PropertyChangeEvent | None) -> None:
        self._resource_listeners.notify(lambda listener: deliver_locale_change(listener, event))
        self._listeners.notify(lambda listener: deliver_locale_change(listener, event))

    def add_resource_listener(self, listener) -> bool:
        return self._resource_listeners.subscribe(listener)

    def remove_resource_listener(self, listener) -> bool:
        return self._resource_listeners.unsubscribe(listener)

    def contains_resource_listener(self, listener) -> bool:
        return self._resource_listeners.contains(listener)

    def add_listener(self, listener) -> bool:
        return self._listeners.subscribe(listener)

    def remove_listener(self, listener) -> bool:
        return self._listeners.unsubscribe(listener)

    def contains_listener(self, listener) -> bool:
        return self._listeners.contains(listener)

    def close(self) -> None:
        self._resource_listeners.clear()
        self._listeners.clear()
