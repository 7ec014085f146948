"""Match strategies and scoring for chunked documents."""

from .exact import ExactSearchEngine
from .fuzzy import FuzzySearchEngine
from .ranker import (
    ORDERING_POLICY,
    Match,
    OrderingPolicy,
    SearchMode,
    context_snippet,
    order_matches,
    relevance_score,
)
from .semantic import SemanticSearchEngine

__all__ = [
    "ExactSearchEngine",
    "FuzzySearchEngine",
    "SemanticSearchEngine",
    "ORDERING_POLICY",
    "Match",
    "OrderingPolicy",
    "SearchMode",
    "context_snippet",
    "order_matches",
    "relevance_score",
]
