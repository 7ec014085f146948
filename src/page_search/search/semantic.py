"""
Embedding-based semantic matcher.

Embeds the query once, embeds each chunk through the shared cache, and
accepts a chunk only when both the raw cosine similarity and the composite
relevance score clear the threshold.
"""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from ..embeddings import EmbeddingProvider
from ..indexing.chunker import Chunk
from ..similarity import batch_cosine_similarity
from .ranker import Match, relevance_score


logger = logging.getLogger(__name__)


class SemanticSearchEngine:
    """Match chunks whose mean word embedding is close to the query's."""

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        *,
        threshold: float = 0.8,
        prefilter_terms: bool = False,
    ) -> None:
        self.embedding_provider = embedding_provider
        self.threshold = threshold
        self.prefilter_terms = prefilter_terms

    def match(self, chunks: Sequence[Chunk], query: str) -> list[Match]:
        """Return accepted chunks in the order given."""
        query_embedding = self.embedding_provider.embed_query(query)
        if query_embedding is None:
            logger.debug("No embedding for query %r", query)
            return []

        candidates: list[Chunk] = []
        vectors: list[np.ndarray] = []
        for chunk in self._candidates(chunks, query):
            vector = self.embedding_provider.embed(chunk.text)
            if vector is None:
                continue
            candidates.append(chunk)
            vectors.append(vector)

        if not candidates:
            return []

        similarities = batch_cosine_similarity(query_embedding, np.stack(vectors))
        matches: list[Match] = []
        for chunk, similarity in zip(candidates, similarities):
            similarity = float(similarity)
            if similarity <= self.threshold:
                continue
            score = relevance_score(chunk.text, query, similarity)
            if score > self.threshold:
                matches.append(Match.whole_chunk(chunk, score))
        return matches

    def _candidates(self, chunks: Sequence[Chunk], query: str) -> list[Chunk]:
        terms = query.lower().split()
        if not self.prefilter_terms or len(terms) < 2:
            return list(chunks)
        return [
            chunk
            for chunk in chunks
            if any(term in chunk.text.lower() for term in terms)
        ]
