"""
Device-local key-value storage for the session token and UI preferences
"""

import json
import os
import tempfile
import threading
from typing import Dict, Optional, List
from pathlib import Path

from core.exceptions import StorageError
from core.logging_config import get_logger

logger = get_logger(__name__)


class KeyValueStore:
    """String key-value store persisted as a single JSON file"""

    def __init__(self, path: Optional[str] = None):
        """
        Initialize the store

        Args:
            path: JSON file holding the values. None keeps everything in memory.
        """
        self.path = Path(path) if path else None
        self._lock = threading.RLock()
        self._values: Dict[str, str] = {}
        self._loaded = False

        # Persistence stats
        self.save_count = 0

    def _ensure_loaded(self):
        if self._loaded:
            return

        if self.path is None or not self.path.exists():
            self._loaded = True
            return

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(str(self.path), f"could not be read: {e}")

        if not isinstance(data, dict):
            raise StorageError(str(self.path), "does not hold a JSON object")

        self._values = {str(k): str(v) for k, v in data.items() if v is not None}
        # Only a successful parse counts; an unreadable file keeps raising and is never overwritten
        self._loaded = True
        logger.debug(f"Loaded {len(self._values)} stored value(s) from {self.path}")

    def _save(self):
        if self.path is None:
            return

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # Write to a sibling temp file and swap it in
            fd, tmp_name = tempfile.mkstemp(dir=str(self.path.parent), prefix=".kv_", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(self._values, f, indent=2, ensure_ascii=False)
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StorageError(str(self.path), f"could not be written: {e}")

        self.save_count += 1

    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value or None"""
        with self._lock:
            self._ensure_loaded()
            return self._values.get(key)

    def set_item(self, key: str, value: str) -> None:
        """Store a value and persist it"""
        with self._lock:
            self._ensure_loaded()
            self._values[key] = str(value)
            self._save()

    def remove_item(self, key: str) -> None:
        """Remove a value; missing keys are ignored"""
        with self._lock:
            self._ensure_loaded()
            if self._values.pop(key, None) is not None:
                self._save()

    def keys(self) -> List[str]:
        with self._lock:
            self._ensure_loaded()
            return list(self._values.keys())

    def clear(self) -> None:
        """Remove every stored value"""
        with self._lock:
            self._ensure_loaded()
            self._values.clear()
            self._save()
