"""
Error types raised by the search engine.
"""

from __future__ import annotations


class PageSearchError(Exception):
    """Base class for search engine errors."""


class InvalidQueryError(PageSearchError, ValueError):
    """Raised when a query is empty, too short or too long after sanitizing."""


class RateLimitExceededError(PageSearchError):
    """Raised when admission control denies a new search."""

    def __init__(self, message: str = "Rate limit exceeded. Please wait.") -> None:
        super().__init__(message)


class ResourceUnavailableError(PageSearchError):
    """Raised when the vocabulary or embedding table cannot be loaded."""


class SearchFailedError(PageSearchError):
    """Raised when a search batch fails unexpectedly."""
