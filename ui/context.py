"""
Application context: builds the state containers and injects them into flows
"""

from dataclasses import dataclass
from typing import Optional

from api import ApiClient
from config import API_CONFIG, STORAGE_CONFIG, UI_CONFIG
from core.logging_config import get_logger
from storage import KeyValueStore
from .alerts import AlertManager
from .language import LanguageManager
from .theme import ThemeManager

logger = get_logger(__name__)


@dataclass
class AppContext:
    """Process-lifetime containers shared by every flow"""
    store: KeyValueStore
    api: ApiClient
    alerts: AlertManager
    theme: ThemeManager
    language: LanguageManager

    def initialize(self) -> "AppContext":
        """Load persisted preferences"""
        self.theme.load()
        logger.info(f"App context ready (theme={self.theme.theme}, language={self.language.language}, "
                    f"session={self.api.session_state.get_state().value})")
        return self


def create_app_context(base_url: Optional[str] = None,
                       storage_path: Optional[str] = None,
                       store: Optional[KeyValueStore] = None,
                       language: Optional[str] = None) -> AppContext:
    """Wire up a context from configuration; arguments override config values"""
    store = store if store is not None else KeyValueStore(storage_path or STORAGE_CONFIG["path"])
    api = ApiClient(base_url=base_url or API_CONFIG["base_url"], store=store)

    return AppContext(
        store=store,
        api=api,
        alerts=AlertManager(),
        theme=ThemeManager(store),
        language=LanguageManager(language or UI_CONFIG["default_language"]),
    )
