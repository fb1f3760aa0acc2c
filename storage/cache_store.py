"""Cache store interface and in-memory implementation."""
import json
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Persisted value with its write time in epoch milliseconds."""
    value: Any
    timestamp: int


class CacheStore(ABC):
    """Key -> (timestamp, value) store shared by cache and throttle state."""

    @abstractmethod
    def get(self, key: str) -> Optional[CacheEntry]:
        """
        Read an entry.

        Returns:
            CacheEntry, or None when missing or unreadable
        """

    @abstractmethod
    def set(self, key: str, value: Any, timestamp: int) -> None:
        """Write an entry; value must be JSON-serializable."""

    @abstractmethod
    def claim(self, key: str, timestamp: int, older_than: int) -> bool:
        """
        Atomically stamp ``key`` with ``timestamp`` if it is missing or its
        stored timestamp is below ``older_than``.

        Returns:
            True if the stamp was written
        """


class InMemoryCacheStore(CacheStore):
    """Process-local store; values are kept serialized like the persistent store."""

    def __init__(self):
        self._items: Dict[str, Tuple[int, str]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            item = self._items.get(key)
        if item is None:
            return None
        timestamp, payload = item
        try:
            return CacheEntry(value=json.loads(payload), timestamp=timestamp)
        except ValueError as e:
            logger.warning(f"Ignoring corrupt cache entry '{key}': {e}")
            return None

    def set(self, key: str, value: Any, timestamp: int) -> None:
        payload = json.dumps(value)
        with self._lock:
            self._items[key] = (int(timestamp), payload)

    def set_raw(self, key: str, payload: str, timestamp: int) -> None:
        """Store an already-serialized payload as-is."""
        with self._lock:
            self._items[key] = (int(timestamp), payload)

    def claim(self, key: str, timestamp: int, older_than: int) -> bool:
        with self._lock:
            item = self._items.get(key)
            if item is not None and item[0] >= older_than:
                return False
            self._items[key] = (int(timestamp), json.dumps(None))
            return True
