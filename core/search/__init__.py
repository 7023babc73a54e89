# Path: core/search/__init__.py
# Purpose: Package initializer for ranking and pipeline orchestration.
# Layer: core/search.
# Details: Exposes the cosine ranker and the main search-by-image entrypoint.

from .pipeline import SearchPipeline
from .ranker import DEFAULT_TOP_K, cosine_similarity, rank

__all__ = ["SearchPipeline", "DEFAULT_TOP_K", "cosine_similarity", "rank"]
