"""
Light/dark theme preference, persisted in local storage
"""

from typing import Callable, List

from config import UI_CONFIG
from core.exceptions import StorageError
from core.logging_config import get_logger
from events import event_bus, EventTypes
from storage import KeyValueStore

logger = get_logger(__name__)

LIGHT = "light"
DARK = "dark"


class ThemeManager:
    """Holds the current theme; storage failures never reach the caller"""

    def __init__(self, store: KeyValueStore, default_theme: str = UI_CONFIG["default_theme"]):
        self.store = store
        self.storage_key = UI_CONFIG["theme_storage_key"]
        self.theme = default_theme
        self._listeners: List[Callable[[str], None]] = []

    @property
    def is_dark_mode(self) -> bool:
        return self.theme == DARK

    def add_listener(self, listener: Callable[[str], None]):
        self._listeners.append(listener)

    def load(self) -> str:
        """Apply the saved preference when it is a known theme"""
        try:
            saved = self.store.get_item(self.storage_key)
        except StorageError as e:
            logger.error(f"Failed to load theme preference: {e}")
            return self.theme

        if saved in (LIGHT, DARK):
            self.theme = saved
        elif saved is not None:
            logger.warning(f"Ignoring unknown stored theme {saved!r}")
        return self.theme

    def toggle_theme(self) -> str:
        return self.set_theme(LIGHT if self.theme == DARK else DARK)

    def set_theme(self, theme: str) -> str:
        if theme not in (LIGHT, DARK):
            raise ValueError(f"Unknown theme: {theme}")

        self.theme = theme
        try:
            self.store.set_item(self.storage_key, theme)
        except StorageError as e:
            logger.error(f"Failed to save theme preference: {e}")

        event_bus.emit(EventTypes.THEME_CHANGED, {"theme": theme}, source="theme")
        for listener in self._listeners:
            try:
                listener(theme)
            except Exception:
                logger.exception("Error in theme listener")
        return theme
