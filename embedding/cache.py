"""
Content-hash embedding cache.

Vectors are keyed by the SHA-256 of the text, so unchanged content is never
re-embedded within the lifetime of the cache. The cache is unbounded unless
``max_entries`` is given, in which case least-recently-used entries are
evicted.
"""

import hashlib
import threading
from collections import OrderedDict
from typing import Optional


def content_hash(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class EmbeddingCache:
    """Process-local map from content hash to embedding vector."""

    def __init__(self, max_entries: Optional[int] = None):
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be positive or None")
        self.max_entries = max_entries
        self._entries: OrderedDict[str, list[float]] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, text: str) -> Optional[list[float]]:
        key = content_hash(text)
        with self._lock:
            vector = self._entries.get(key)
            if vector is None:
                self.misses += 1
                return None
            self.hits += 1
            if self.max_entries is not None:
                self._entries.move_to_end(key)
            return vector

    def put(self, text: str, vector: list[float]) -> None:
        key = content_hash(text)
        with self._lock:
            self._entries[key] = vector
            self._entries.move_to_end(key)
            if self.max_entries is not None:
                while len(self._entries) > self.max_entries:
                    self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def stats(self) -> dict[str, Optional[int]]:
        with self._lock:
            return {
                "entries": len(self._entries),
                "max_entries": self.max_entries,
                "hits": self.hits,
                "misses": self.misses,
            }

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, text: str) -> bool:
        return content_hash(text) in self._entries
