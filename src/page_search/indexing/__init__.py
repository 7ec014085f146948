"""Chunking components for page_search."""

from .chunker import Chunk, UnitChunker

__all__ = [
    "Chunk",
    "UnitChunker",
]
