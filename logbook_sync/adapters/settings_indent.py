"""Indent settings adapter — implements IndentSettingsPort from config."""

from __future__ import annotations

from logbook_sync.config import Settings


class SettingsIndentProvider:
    """Reads USE_TAB / TAB_SIZE from the application settings."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    @property
    def use_tab(self) -> bool:
        return self._settings.USE_TAB

    @property
    def tab_size(self) -> int:
        return self._settings.TAB_SIZE
