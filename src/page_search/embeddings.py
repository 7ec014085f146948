"""
Mean-of-word-vectors text embeddings with a bounded in-memory cache.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from typing import Literal

import numpy as np

from .tokenizer import tokenize
from .vocabulary import EmbeddingTable


logger = logging.getLogger(__name__)

EvictionPolicy = Literal["clear", "lru"]

_DEFAULT_CACHE_SIZE = 1000


class EmbeddingCache:
    """
    Text -> vector memo guarded by a lock.

    With the default ``clear`` policy, an insert that would push the cache past
    ``max_entries`` empties it first. The ``lru`` policy drops only the least
    recently used entry instead.
    """

    def __init__(
        self,
        max_entries: int = _DEFAULT_CACHE_SIZE,
        *,
        policy: EvictionPolicy = "clear",
    ) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be > 0")
        if policy not in ("clear", "lru"):
            raise ValueError(f"Unknown eviction policy: {policy!r}")
        self.max_entries = max_entries
        self.policy = policy
        self.hits = 0
        self.misses = 0
        self.clears = 0
        self._entries: OrderedDict[str, np.ndarray] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, text: object) -> bool:
        with self._lock:
            return text in self._entries

    def get(self, text: str) -> np.ndarray | None:
        with self._lock:
            vector = self._entries.get(text)
            if vector is None:
                self.misses += 1
                return None
            self.hits += 1
            if self.policy == "lru":
                self._entries.move_to_end(text)
            return vector

    def put(self, text: str, vector: np.ndarray) -> None:
        with self._lock:
            if text in self._entries:
                self._entries[text] = vector
                self._entries.move_to_end(text)
                return
            if len(self._entries) >= self.max_entries:
                if self.policy == "lru":
                    self._entries.popitem(last=False)
                else:
                    logger.debug("Embedding cache full (%d entries), clearing", len(self._entries))
                    self._entries.clear()
                    self.clears += 1
            self._entries[text] = vector

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0


class EmbeddingProvider:
    """Embed texts as the mean of their known word vectors."""

    def __init__(
        self,
        table: EmbeddingTable,
        *,
        cache: EmbeddingCache | None = None,
    ) -> None:
        self.table = table
        self.cache = cache if cache is not None else EmbeddingCache()

    @property
    def dim(self) -> int:
        return self.table.dim

    def embed(self, text: str) -> np.ndarray | None:
        """
        Return the cached or freshly computed embedding for *text*.

        ``None`` means no token of *text* is in the vocabulary; such a text
        can never match semantically.
        """
        cached = self.cache.get(text)
        if cached is not None:
            return cached

        indices = self.table.indices(tokenize(text))
        if not indices:
            return None

        vector = self.table.matrix[indices].mean(axis=0)
        vector.setflags(write=False)
        self.cache.put(text, vector)
        return vector

    def embed_texts(self, texts: list[str]) -> list[np.ndarray | None]:
        """Embed a list of texts, preserving order."""
        return [self.embed(text) for text in texts]

    def embed_query(self, query: str) -> np.ndarray | None:
        """Embed a single query text."""
        return self.embed(query)
