"""
Application-level UI state: alerts, theme, language and their container
"""

from .alerts import AlertManager, AlertOptions, AlertAction, AlertType, ActionStyle
from .theme import ThemeManager
from .language import LanguageManager
from .context import AppContext, create_app_context

__all__ = [
    "AlertManager",
    "AlertOptions",
    "AlertAction",
    "AlertType",
    "ActionStyle",
    "ThemeManager",
    "LanguageManager",
    "AppContext",
    "create_app_context",
]
