"""
Configuration validation module.

Validates configuration settings on startup to catch issues early and
provide clear error messages for misconfigurations.
"""

import os
from typing import Dict, List, Any, Optional, Tuple
from pathlib import Path
from urllib.parse import urlparse

from .exceptions import ConfigValidationError
from .logging_config import get_logger

logger = get_logger(__name__)


class ConfigValidator:
    """Validates client configuration"""

    def __init__(self,
                 api_config: Optional[Dict[str, Any]] = None,
                 auth_config: Optional[Dict[str, Any]] = None,
                 search_config: Optional[Dict[str, Any]] = None,
                 storage_config: Optional[Dict[str, Any]] = None,
                 ui_config: Optional[Dict[str, Any]] = None,
                 logging_config: Optional[Dict[str, Any]] = None):
        import config

        self.api_config = api_config if api_config is not None else config.API_CONFIG
        self.auth_config = auth_config if auth_config is not None else config.AUTH_CONFIG
        self.search_config = search_config if search_config is not None else config.SEARCH_CONFIG
        self.storage_config = storage_config if storage_config is not None else config.STORAGE_CONFIG
        self.ui_config = ui_config if ui_config is not None else config.UI_CONFIG
        self.logging_config = logging_config if logging_config is not None else config.LOGGING_CONFIG

        self.errors: List[str] = []
        self.warnings: List[str] = []

    def validate_all(self) -> Tuple[bool, List[str], List[str]]:
        """
        Validate all configuration settings.

        Returns:
            Tuple of (is_valid, errors, warnings)
        """
        self.errors.clear()
        self.warnings.clear()

        self._validate_network_config()
        self._validate_auth_config()
        self._validate_search_config()
        self._validate_storage_config()
        self._validate_ui_config()
        self._validate_logging_config()

        is_valid = len(self.errors) == 0
        return is_valid, self.errors.copy(), self.warnings.copy()

    def _validate_network_config(self):
        """Validate API base URL and timeout"""
        base_url = self.api_config.get("base_url", "")
        parsed = urlparse(base_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            self.errors.append(f"API base URL has invalid format: {base_url!r}")
        elif parsed.scheme == "http" and os.getenv("ENVIRONMENT", "development").lower() == "production":
            self.warnings.append("API base URL uses plain HTTP in production; bearer tokens travel unencrypted")

        timeout = self.api_config.get("request_timeout")
        if timeout is not None and timeout <= 0:
            self.errors.append(f"Request timeout must be positive, got {timeout}")

    def _validate_auth_config(self):
        otp_length = self.auth_config.get("otp_length", 4)
        if not isinstance(otp_length, int) or otp_length < 1:
            self.errors.append(f"OTP length must be a positive integer, got {otp_length!r}")

        if not self.auth_config.get("token_storage_key"):
            self.errors.append("Token storage key must not be empty")

    def _validate_search_config(self):
        debounce_ms = self.search_config.get("debounce_ms", 300)
        if debounce_ms <= 0:
            self.errors.append(f"Search debounce must be positive, got {debounce_ms}ms")
        elif debounce_ms > 2000:
            self.warnings.append(f"Search debounce of {debounce_ms}ms will feel sluggish. Recommended: 200-500ms")

        max_suggestions = self.search_config.get("max_suggestions", 5)
        if max_suggestions < 1:
            self.errors.append(f"Max suggestions must be at least 1, got {max_suggestions}")

        history_limit = self.search_config.get("history_limit", 10)
        if history_limit < 1:
            self.errors.append(f"History limit must be at least 1, got {history_limit}")

    def _validate_storage_config(self):
        """Validate the storage file location"""
        storage_path = Path(self.storage_config.get("path", "./data/medivision.json"))
        parent_dir = storage_path.parent

        # The storage layer creates missing directories; only an existing, read-only one is fatal
        if parent_dir.exists() and not os.access(parent_dir, os.W_OK):
            self.errors.append(f"Storage directory '{parent_dir}' is not writable")
        if storage_path.exists() and storage_path.is_dir():
            self.errors.append(f"Storage path '{storage_path}' is a directory")

    def _validate_ui_config(self):
        languages = self.ui_config.get("languages", [])
        default_language = self.ui_config.get("default_language")
        if default_language not in languages:
            self.errors.append(f"Default language '{default_language}' must be one of: {', '.join(languages)}")

        themes = self.ui_config.get("themes", [])
        default_theme = self.ui_config.get("default_theme")
        if default_theme not in themes:
            self.errors.append(f"Default theme '{default_theme}' must be one of: {', '.join(themes)}")

    def _validate_logging_config(self):
        """Validate logging configuration"""
        log_level = self.logging_config.get("log_level", "INFO")
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if log_level.upper() not in valid_levels:
            self.errors.append(f"Invalid log level '{log_level}'. Must be one of: {', '.join(valid_levels)}")

        max_size = self.logging_config.get("max_log_size_mb", 10)
        if max_size < 1 or max_size > 1000:
            self.warnings.append(f"Log file size {max_size}MB may be {'too small' if max_size < 5 else 'too large'}. Recommended: 5-100MB")

        backup_count = self.logging_config.get("backup_count", 5)
        if backup_count < 1 or backup_count > 50:
            self.warnings.append(f"Log backup count {backup_count} may be {'too low' if backup_count < 3 else 'too high'}. Recommended: 3-20")


def validate_startup_config(validator: Optional[ConfigValidator] = None) -> List[str]:
    """
    Validate configuration on startup.

    Returns:
        List of warnings

    Raises:
        ConfigValidationError: If configuration errors are found
    """
    validator = validator or ConfigValidator()
    is_valid, errors, warnings = validator.validate_all()

    for warning in warnings:
        logger.warning(f"Configuration warning: {warning}")

    if not is_valid:
        for error in errors:
            logger.error(f"Configuration error: {error}")

        error_msg = f"Found {len(errors)} configuration error(s) that must be fixed before starting the client."
        if warnings:
            error_msg += f" Also found {len(warnings)} warning(s) that should be addressed."

        raise ConfigValidationError(error_msg, details={"errors": errors, "warnings": warnings})

    logger.info(f"Configuration validated successfully with {len(warnings)} warning(s)")
    return warnings
