"""
PageSearch - local semantic, exact and fuzzy search inside a document.

This package chunks a document's text units, embeds chunks as the mean of
their word vectors, and matches queries semantically, verbatim or
approximately without any server round-trip.

Example usage:
    >>> from page_search import LocalSearchEngine, SearchManager, units_from_text
    >>> engine = LocalSearchEngine(embeddings_path="embeddings.json")
    >>> manager = SearchManager(engine)
    >>> manager.set_document(units_from_text(text))
    >>> session = await manager.start("purchase price", "semantic")
"""

from .config import SearchSettings, resolve_embeddings_path
from .document import LineAnchor, PageAnchor, TextUnit, units_from_pages, units_from_text
from .embeddings import EmbeddingCache, EmbeddingProvider
from .engine import LocalSearchEngine, SearchEngine
from .errors import (
    InvalidQueryError,
    PageSearchError,
    RateLimitExceededError,
    ResourceUnavailableError,
    SearchFailedError,
)
from .indexing import Chunk, UnitChunker
from .rate_limiter import TokenBucket
from .search import Match
from .session import CancellationToken, Highlighter, SearchManager, SearchSession
from .similarity import batch_cosine_similarity, cosine_similarity
from .tokenizer import tokenize
from .vocabulary import EmbeddingTable, load_embedding_table
from .worker import SearchWorker, WorkerSearchEngine

__all__ = [
    # Configuration
    "SearchSettings",
    "resolve_embeddings_path",
    # Documents
    "LineAnchor",
    "PageAnchor",
    "TextUnit",
    "units_from_pages",
    "units_from_text",
    "Chunk",
    "UnitChunker",
    # Embeddings
    "EmbeddingCache",
    "EmbeddingProvider",
    "EmbeddingTable",
    "load_embedding_table",
    "tokenize",
    "cosine_similarity",
    "batch_cosine_similarity",
    # Engines
    "SearchEngine",
    "LocalSearchEngine",
    "SearchWorker",
    "WorkerSearchEngine",
    # Sessions
    "CancellationToken",
    "Highlighter",
    "Match",
    "SearchManager",
    "SearchSession",
    "TokenBucket",
    # Errors
    "PageSearchError",
    "InvalidQueryError",
    "RateLimitExceededError",
    "ResourceUnavailableError",
    "SearchFailedError",
]
