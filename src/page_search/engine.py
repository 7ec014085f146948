"""
Search engine contract and its in-process implementation.

The session layer talks to a ``SearchEngine`` only, so the same session code
runs against the local engine or the worker-thread proxy in ``worker.py``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol, Sequence

from .config import SearchSettings, resolve_embeddings_path
from .embeddings import EmbeddingCache, EmbeddingProvider, EvictionPolicy
from .errors import ResourceUnavailableError
from .indexing.chunker import Chunk
from .models import SearchMode
from .search import ExactSearchEngine, FuzzySearchEngine, Match, SemanticSearchEngine
from .vocabulary import EmbeddingTable, load_embedding_table


logger = logging.getLogger(__name__)


class SearchEngine(Protocol):
    """Protocol for matching a batch of chunks against a query."""

    @property
    def ready(self) -> bool:
        """True once the embedding table is loaded."""

    async def initialize(self) -> None:
        """Load resources; raise ``ResourceUnavailableError`` on failure."""

    async def search(
        self, query: str, chunks: Sequence[Chunk], mode: SearchMode
    ) -> list[Match]:
        """Return the matches among *chunks*, in the order given."""

    async def close(self) -> None:
        """Release resources."""


class Matcher(Protocol):
    def match(self, chunks: Sequence[Chunk], query: str) -> list[Match]: ...


class LocalSearchEngine:
    """Engine that loads the embedding table and runs matchers in-process."""

    def __init__(
        self,
        settings: SearchSettings | None = None,
        *,
        embeddings_path: str | None = None,
        table: EmbeddingTable | None = None,
        cache_policy: EvictionPolicy = "clear",
    ) -> None:
        self.settings = settings or SearchSettings()
        self.embeddings_path = embeddings_path
        self.cache_policy = cache_policy
        self._table = table
        self._provider: EmbeddingProvider | None = None
        self._semantic: SemanticSearchEngine | None = None
        self._exact = ExactSearchEngine()
        self._fuzzy = FuzzySearchEngine(threshold=self.settings.fuzzy_threshold)
        if table is not None:
            self._build(table)

    @property
    def ready(self) -> bool:
        return self._provider is not None

    @property
    def embedding_provider(self) -> EmbeddingProvider:
        if self._provider is None:
            raise ResourceUnavailableError("Search engine is not initialized")
        return self._provider

    async def initialize(self) -> None:
        if self.ready:
            return
        await asyncio.to_thread(self.load)

    def load(self) -> None:
        """Load the embedding table from ``embeddings_path`` (blocking)."""
        if self.ready:
            return
        path = resolve_embeddings_path(self.embeddings_path)
        try:
            table = load_embedding_table(
                path,
                vocab_size=self.settings.vocab_size,
                dim=self.settings.embedding_dim,
            )
        except ResourceUnavailableError:
            logger.error("Failed to load embeddings from %s", path)
            raise
        self._build(table)

    def _build(self, table: EmbeddingTable) -> None:
        cache = EmbeddingCache(self.settings.cache_size, policy=self.cache_policy)
        self._table = table
        self._provider = EmbeddingProvider(table, cache=cache)
        self._semantic = SemanticSearchEngine(
            self._provider,
            threshold=self.settings.similarity_threshold,
            prefilter_terms=self.settings.prefilter_terms,
        )

    def matcher_for(self, mode: SearchMode) -> Matcher:
        """Exact and fuzzy matching work without embeddings; semantic does not."""
        if mode == "exact":
            return self._exact
        if mode == "fuzzy":
            return self._fuzzy
        if mode == "semantic":
            if self._semantic is None:
                raise ResourceUnavailableError("Search engine is not initialized")
            return self._semantic
        raise ValueError(f"Unknown search mode: {mode!r}")

    def search_sync(
        self, query: str, chunks: Sequence[Chunk], mode: SearchMode
    ) -> list[Match]:
        return self.matcher_for(mode).match(chunks, query)

    async def search(
        self, query: str, chunks: Sequence[Chunk], mode: SearchMode
    ) -> list[Match]:
        return self.search_sync(query, chunks, mode)

    async def close(self) -> None:
        if self._provider is not None:
            self._provider.cache.clear()
