import threading
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional
from loguru import logger

from hotlist.models import CacheEntry, RawItem, now_ms


class CacheStore(ABC):
    """Key/value store of the latest item snapshot per source"""

    @abstractmethod
    def get(self, source_id: str) -> Optional[CacheEntry]:
        """
        Get the cached snapshot for a source

        Implementations must not raise: read errors are reported as a miss.

        Returns:
            Optional[CacheEntry]: The cached entry, or None if absent or unreadable
        """
        pass

    @abstractmethod
    def set(self, source_id: str, items: List[RawItem]) -> None:
        """Store a fresh snapshot for a source, stamped with the current time"""
        pass

    @abstractmethod
    def delete(self, source_id: str) -> None:
        pass


class MemoryCacheStore(CacheStore):
    """In-process cache store, safe to share between worker threads"""

    def __init__(self, clock: Callable[[], int] = now_ms):
        self.clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, source_id: str) -> Optional[CacheEntry]:
        with self._lock:
            return self._entries.get(source_id)

    def set(self, source_id: str, items: List[RawItem]) -> None:
        entry = CacheEntry(source_id=source_id, items=list(items), updated_at=self.clock())
        with self._lock:
            self._entries[source_id] = entry
        logger.debug(f"Cached {len(entry.items)} items for {source_id}")

    def put(self, entry: CacheEntry) -> None:
        """Store an entry as-is, keeping its own timestamp"""
        with self._lock:
            self._entries[entry.source_id] = entry

    def delete(self, source_id: str) -> None:
        with self._lock:
            self._entries.pop(source_id, None)
