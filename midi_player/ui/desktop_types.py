"""Desktop UI interfaces."""

from __future__ import annotations

from typing import Protocol


class DesktopApp(Protocol):
    """Desktop application contract."""

    title: str

    def launch(self) -> None:
        """Start the UI main loop."""

    def locale_changed(self, event=None) -> None:
        """Refresh every localized text of the frame."""
