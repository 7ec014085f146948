"""
Cosine similarity between a query vector and one or many chunk vectors.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np


def cosine_similarity(a: np.ndarray | None, b: np.ndarray | None) -> float:
    """
    Cosine similarity in [-1, 1].

    Returns 0.0 when either side has no embedding or a zero norm.
    """
    if a is None or b is None:
        return 0.0
    denom = float(np.linalg.norm(a)) * float(np.linalg.norm(b))
    if denom == 0.0:
        return 0.0
    value = float(np.dot(a, b)) / denom
    if np.isnan(value):
        return 0.0
    return max(-1.0, min(1.0, value))


def batch_cosine_similarity(
    query: np.ndarray | None,
    vectors: np.ndarray | Sequence[np.ndarray],
) -> np.ndarray:
    """
    Similarity of *query* against every row of *vectors* in one matrix product.

    Matches the pairwise ``cosine_similarity`` loop within float tolerance,
    including 0.0 for zero-norm rows.
    """
    matrix = np.asarray(vectors, dtype=np.float64)
    if matrix.size == 0:
        return np.zeros(0, dtype=np.float64)
    if matrix.ndim == 1:
        matrix = matrix.reshape(1, -1)
    if query is None:
        return np.zeros(matrix.shape[0], dtype=np.float64)

    q = np.asarray(query, dtype=np.float64)
    dots = matrix @ q
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(q)
    with np.errstate(divide="ignore", invalid="ignore"):
        sims = np.where(norms > 0, dots / norms, 0.0)
    return np.clip(np.nan_to_num(sims, nan=0.0), -1.0, 1.0)
