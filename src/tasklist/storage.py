from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from threading import RLock
from typing import Dict, Optional

from .settings import get_settings

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class KeyValueStorage(ABC):
    """Abstract contract for string key-value backends holding serialized slots."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the value stored under key, or None if the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove key. Removing an absent key is a no-op."""


class InMemoryStorage(KeyValueStorage):
    """
    Thread-safe in-memory storage suitable for testing and default runtime.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._lock = RLock()
        self._items: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._items[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._items


# PUBLIC_INTERFACE
def get_storage() -> KeyValueStorage:
    """
    Factory to return the configured storage backend based on settings.
    - memory: InMemoryStorage
    - sqlite: SQLiteStorage
    """
    settings = get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteStorage

        logger.info("Using sqlite storage at %s", settings.sqlite_db_path)
        return SQLiteStorage(settings.sqlite_db_path)
    logger.info("Using in-memory storage")
    return InMemoryStorage()
