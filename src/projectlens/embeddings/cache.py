"""In-memory embedding cache keyed by content hash."""

import hashlib
import threading
from collections import OrderedDict
from typing import Optional


class EmbeddingCache:
    """Map (model, text) -> vector so unchanged chunks are embedded once.

    Lives only as long as the process. Safe to share between the worker
    threads of one embedder.
    """

    def __init__(self, max_entries: Optional[int] = None):
        """
        Args:
            max_entries: Evict the least recently used entry beyond this size (None = unbounded)
        """
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be positive")
        self._max_entries = max_entries
        self._entries: OrderedDict[str, list[float]] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @property
    def max_entries(self) -> Optional[int]:
        return self._max_entries

    @staticmethod
    def key(model: str, text: str) -> str:
        return hashlib.sha256(f"{model}\0{text}".encode("utf-8")).hexdigest()

    def get(self, model: str, text: str) -> Optional[list[float]]:
        k = self.key(model, text)
        with self._lock:
            vector = self._entries.get(k)
            if vector is None:
                self.misses += 1
                return None
            self._entries.move_to_end(k)
            self.hits += 1
            return list(vector)

    def put(self, model: str, text: str, vector: list[float]) -> None:
        k = self.key(model, text)
        with self._lock:
            self._entries[k] = list(vector)
            self._entries.move_to_end(k)
            if self._max_entries is not None:
                while len(self._entries) > self._max_entries:
                    self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
