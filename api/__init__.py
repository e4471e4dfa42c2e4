"""
REST API client and boundary models for the medicine identification service
"""

from .client import ApiClient, AuthMode
from .models import (
    ApiResponse, ErrorKind, User, LoginResponse, RegisterData, ProfileUpdate,
    MedicineResult, HistoryEntry, HistoryActionType, ImageFile
)
from .request_guard import LatestRequestGuard, RequestTicket

__all__ = [
    "ApiClient",
    "AuthMode",
    "ApiResponse",
    "ErrorKind",
    "User",
    "LoginResponse",
    "RegisterData",
    "ProfileUpdate",
    "MedicineResult",
    "HistoryEntry",
    "HistoryActionType",
    "ImageFile",
    "LatestRequestGuard",
    "RequestTicket",
]
