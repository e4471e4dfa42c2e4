"""
Custom exceptions for the MediVision client
"""

from typing import Optional, Dict, Any


class ClientException(Exception):
    """Base exception for all client-side errors"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class StorageError(ClientException):
    """Raised when the local storage file cannot be read or written"""
    def __init__(self, path: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.path = path
        super().__init__(f"Storage error for {path}: {message}", details)


class ConfigValidationError(ClientException):
    """Raised when configuration validation fails"""
    pass
