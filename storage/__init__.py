"""
Local persistence for the MediVision client
"""

from .persistence import KeyValueStore

__all__ = ["KeyValueStore"]
