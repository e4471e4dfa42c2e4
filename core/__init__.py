"""
Core client components for session state, configuration and logging
"""

from .state_manager import SessionStateManager, SessionState
from .exceptions import ClientException, StorageError, ConfigValidationError

__all__ = [
    "SessionStateManager",
    "SessionState",
    "ClientException",
    "StorageError",
    "ConfigValidationError",
]
