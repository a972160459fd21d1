"""
Bounded embedding cache with insertion-order (FIFO) eviction.

Shared by every query in the process; the pipeline runs in worker threads so
get/put take a lock.
"""

import threading
from collections import OrderedDict

from app.core.config import EMBED_CACHE_SIZE


class EmbeddingCache:
    """Key -> vector store. The oldest inserted key is evicted first, regardless of reads."""

    def __init__(self, max_entries: int = EMBED_CACHE_SIZE) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.max_entries = max_entries
        self._entries: OrderedDict[str, list[float]] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> list[float] | None:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, vector: list[float]) -> None:
        """Insert or replace. A new key at capacity evicts exactly one (the oldest) entry first."""
        with self._lock:
            if key in self._entries:
                # Replacing keeps the original insertion position
                self._entries[key] = vector
                return
            if len(self._entries) >= self.max_entries:
                self._entries.popitem(last=False)
            self._entries[key] = vector

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def keys(self) -> list[str]:
        """Keys in insertion order (oldest first)."""
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries
