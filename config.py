"""
Centralized configuration for the MediVision client
"""

import os

from dotenv import load_dotenv

load_dotenv()

# API settings
API_CONFIG = {
    "base_url": os.getenv("MEDIVISION_API_URL", "http://192.168.21.101:3000").rstrip("/"),
    "image_base_path": "/uploads/medicines",
    "profile_image_path": "/uploads/profile",
    # None keeps aiohttp from enforcing a timeout
    "request_timeout": float(os.getenv("MEDIVISION_REQUEST_TIMEOUT")) if os.getenv("MEDIVISION_REQUEST_TIMEOUT") else None,
    "network_error_message": "Network error - please check your connection and ensure the server is running",
    "unexpected_error_message": "An unexpected error occurred",
    "not_authenticated_message": "Not authenticated",
}

# Authentication settings
AUTH_CONFIG = {
    "token_storage_key": "access_token",
    "otp_length": 4,
    "session_clear_status_codes": [401],
}

# Search settings
SEARCH_CONFIG = {
    "debounce_ms": 300,
    "max_suggestions": 5,
    "history_limit": 10,
    "guard_keys": {
        "search": "medicines.search",
        "full_search": "medicines.full-search",
        "image_search": "medicines.search-by-image",
        "profile": "users.profile",
        "history": "users.history",
    },
}

# Device-local storage
STORAGE_CONFIG = {
    "path": os.getenv("MEDIVISION_STORAGE_PATH", "./data/medivision.json"),
}

# UI state defaults
UI_CONFIG = {
    "default_language": os.getenv("MEDIVISION_DEFAULT_LANGUAGE", "en"),
    "languages": ["en", "bn"],
    "default_theme": "light",
    "themes": ["light", "dark"],
    "theme_storage_key": "theme",
    "open_single_result": False,  # Jump straight to details when an image search finds one medicine
}

# Display settings
DISPLAY_CONFIG = {
    "colors": {
        "success": "\033[92m",  # Green
        "error": "\033[91m",    # Red
        "warning": "\033[93m",  # Yellow
        "info": "\033[94m",     # Blue
        "reset": "\033[0m"
    },
    "emojis": {
        "success": "✅",
        "error": "❌",
        "warning": "⚠️",
        "info": "ℹ️",
        "search": "🔍",
        "pill": "💊",
        "camera": "📷"
    }
}

# Logging configuration
LOGGING_CONFIG = {
    "log_level": os.getenv("LOG_LEVEL", "INFO"),
    "log_dir": os.getenv("LOG_DIR", "./logs"),
    "enable_file_logging": os.getenv("ENABLE_FILE_LOGGING", "true").lower() == "true",
    "enable_console_logging": os.getenv("ENABLE_CONSOLE_LOGGING", "true").lower() == "true",
    "structured_logging": os.getenv("ENVIRONMENT", "development").lower() == "production",
    "max_log_size_mb": int(os.getenv("MAX_LOG_SIZE_MB", "10")),
    "backup_count": int(os.getenv("LOG_BACKUP_COUNT", "5")),
}
