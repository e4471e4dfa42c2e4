"""
Logging setup for the MediVision client.

Development runs get a colored one-line console format; production
(``ENVIRONMENT=production``) switches every handler to JSON lines. File
logging writes ``medivision.log`` plus an errors-only ``errors.log``, both
rotating.
"""

import json
import logging
import logging.handlers
import re
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

# Bearer tokens must never reach a log sink
_BEARER_PATTERN = re.compile(r"(Bearer\s+)[A-Za-z0-9\-._~+/]+=*")

LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[92m",
    "WARNING": "\033[93m",
    "ERROR": "\033[91m",
    "CRITICAL": "\033[95m",
}
RESET = "\033[0m"

QUIET_LIBRARIES = ("aiohttp", "aiohttp.access", "aiohttp.client", "asyncio", "urllib3")


class RedactTokensFilter(logging.Filter):
    """Masks bearer tokens in the rendered message"""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        if "Bearer" in message:
            record.msg = _BEARER_PATTERN.sub(r"\1***", message)
            record.args = ()
        return True


class StructuredFormatter(logging.Formatter):
    """One JSON object per line, for production log shipping"""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            entry.update(extra_data)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ColoredConsoleFormatter(logging.Formatter):
    """``[HH:MM:SS] [LEVEL] [module] message`` with a colored level"""

    def format(self, record: logging.LogRecord) -> str:
        level = f"{LEVEL_COLORS.get(record.levelname, '')}{record.levelname}{RESET}"
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"[{stamp}] [{level}] [{record.module}] {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class LoggingConfig:
    """Builds the root logger's handlers from a ``LOGGING_CONFIG``-shaped dict"""

    def __init__(self, settings: Dict[str, Any]):
        self.level = getattr(logging, str(settings.get("log_level", "INFO")).upper(), logging.INFO)
        self.log_dir = Path(settings.get("log_dir") or "./logs")
        self.file_logging = bool(settings.get("enable_file_logging", True))
        self.console_logging = bool(settings.get("enable_console_logging", True))
        self.structured = bool(settings.get("structured_logging", False))
        self.max_bytes = int(settings.get("max_log_size_mb", 10)) * 1024 * 1024
        self.backup_count = int(settings.get("backup_count", 5))

    def _formatter(self, for_console: bool) -> logging.Formatter:
        if self.structured:
            return StructuredFormatter()
        if for_console:
            return ColoredConsoleFormatter()
        return logging.Formatter("[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
                                 datefmt="%Y-%m-%d %H:%M:%S")

    def _rotating_handler(self, filename: str, level: int) -> logging.Handler:
        handler = logging.handlers.RotatingFileHandler(
            self.log_dir / filename,
            maxBytes=self.max_bytes,
            backupCount=self.backup_count,
            encoding="utf-8",
        )
        handler.setLevel(level)
        handler.setFormatter(self._formatter(for_console=False))
        return handler

    def apply(self) -> None:
        root = logging.getLogger()
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
        root.setLevel(self.level)

        handlers = []
        if self.console_logging:
            # stderr keeps log lines apart from what the console front-end prints
            console = logging.StreamHandler(sys.stderr)
            console.setLevel(self.level)
            console.setFormatter(self._formatter(for_console=True))
            handlers.append(console)

        if self.file_logging:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            handlers.append(self._rotating_handler("medivision.log", self.level))
            handlers.append(self._rotating_handler("errors.log", logging.ERROR))

        redact = RedactTokensFilter()
        for handler in handlers:
            handler.addFilter(redact)
            root.addHandler(handler)

        for name in QUIET_LIBRARIES:
            logging.getLogger(name).setLevel(logging.WARNING)

        log_with_context(logging.getLogger(__name__), logging.DEBUG, "Logging configured",
                         log_level=logging.getLevelName(self.level),
                         file_logging=self.file_logging,
                         structured=self.structured,
                         log_dir=str(self.log_dir) if self.file_logging else None)


_logging_config: Optional[LoggingConfig] = None


def setup_logging(config_dict: Optional[Dict[str, Any]] = None) -> None:
    """
    Configure logging. Values missing from ``config_dict`` come from
    ``config.LOGGING_CONFIG``.
    """
    global _logging_config
    from config import LOGGING_CONFIG

    _logging_config = LoggingConfig({**LOGGING_CONFIG, **(config_dict or {})})
    _logging_config.apply()


def get_logger(name: str) -> logging.Logger:
    """Logger for a module; configures logging with defaults on first use"""
    if _logging_config is None:
        setup_logging()
    return logging.getLogger(name)


def log_with_context(logger: logging.Logger, level: int, message: str, **context) -> None:
    """Log with key/value context carried as ``extra_data``"""
    logger.log(level, message, extra={"extra_data": context})


def log_api_call(logger: logging.Logger, method: str, endpoint: str,
                 status_code: Optional[int], duration_ms: float, **context) -> None:
    log_with_context(logger, logging.INFO, f"API call: {method} {endpoint} -> {status_code}",
                     method=method, endpoint=endpoint, status_code=status_code,
                     duration_ms=round(duration_ms, 1), **context)


def log_error_with_context(logger: logging.Logger, error: Exception, operation: str, **context) -> None:
    log_with_context(logger, logging.ERROR, f"Error in {operation}: {error}",
                     operation=operation, error_type=type(error).__name__,
                     error_message=str(error), **context)
