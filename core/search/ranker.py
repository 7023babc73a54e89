# Path: core/search/ranker.py
# Purpose: Score a query embedding against an embedding index by cosine similarity.
# Layer: core/search.
# Details: Mismatched dimensionalities are rejected per entry and logged, never compared.

from __future__ import annotations

import logging
from typing import Iterable, List, Sequence, Union

import numpy as np

from core.errors import DimensionMismatchError
from core.models.domain import Embedding, IndexedEntry, SearchHit

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 6

VectorLike = Union[np.ndarray, Sequence[float]]


def cosine_similarity(a: VectorLike, b: VectorLike) -> float:
    """Cosine of the angle between two equal-length vectors; 0.0 if either is all zeros."""

    left = np.asarray(a, dtype=np.float64).reshape(-1)
    right = np.asarray(b, dtype=np.float64).reshape(-1)
    if left.shape != right.shape:
        raise DimensionMismatchError(f"Cannot compare embeddings of length {left.shape[0]} and {right.shape[0]}.")
    denominator = np.linalg.norm(left) * np.linalg.norm(right)
    if denominator == 0:
        return 0.0
    return float(np.dot(left, right) / denominator)


def rank(query: Union[Embedding, VectorLike], index: Iterable[IndexedEntry], k: int = DEFAULT_TOP_K) -> List[SearchHit]:
    """
    Return at most ``k`` hits sorted by descending score.

    Ties keep index insertion order. Entries whose dimensionality differs
    from the query are skipped with a warning.
    """

    if k <= 0:
        return []
    vector = query.vector if isinstance(query, Embedding) else np.asarray(query, dtype=np.float32)

    hits: List[SearchHit] = []
    skipped = 0
    for entry in index:
        try:
            score = cosine_similarity(vector, entry.embedding)
        except DimensionMismatchError as exc:
            skipped += 1
            logger.warning("Skipping item %s image %s: %s", entry.item.id, entry.image, exc)
            continue
        hits.append(SearchHit(entry=entry, score=score))

    if skipped:
        logger.warning("%d indexed embeddings did not match the query dimensionality.", skipped)

    # sorted() is stable, so equal scores stay in insertion order.
    hits = sorted(hits, key=lambda hit: -hit.score)
    return hits[:k]
