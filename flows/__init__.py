"""
Screen controllers for the MediVision client
"""

from .auth import AuthFlow, SignupFlow
from .search import MedicineSearchController
from .scan import ImageSource, FileImageSource, ImageSearchFlow
from .profile import ProfileController, HistoryController

__all__ = [
    "AuthFlow",
    "SignupFlow",
    "MedicineSearchController",
    "ImageSource",
    "FileImageSource",
    "ImageSearchFlow",
    "ProfileController",
    "HistoryController",
]
