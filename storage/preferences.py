"""Persisted key-value stores for visitor preferences."""
import json
import logging
import os
from abc import ABC, abstractmethod
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """String key-value storage that survives between page loads."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key was never set."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store *value* under *key*, replacing any previous value."""


class InMemoryKeyValueStore(KeyValueStore):
    """Dictionary-backed store, mostly for tests and single sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileKeyValueStore(KeyValueStore):
    """Store persisted as a flat JSON object on disk."""

    def __init__(self, path: str):
        """
        Initialize the store.

        Args:
            path: JSON file holding the values; created on first write
        """
        self.path = path

    def get(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, sort_keys=True)

    def _read(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable preference file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}
