# Path: core/models/__init__.py
# Purpose: Package initializer for domain model definitions.
# Layer: core/models.
# Details: Exposes records and value types used across catalog, embedding, indexing, and search layers.

from .domain import (
    AssetResolution,
    AssetStatus,
    CatalogItem,
    EmbedderState,
    Embedding,
    EmbeddingIndex,
    IndexedEntry,
    ProviderMode,
    SearchHit,
    SearchResponse,
)

__all__ = [
    "AssetResolution",
    "AssetStatus",
    "CatalogItem",
    "EmbedderState",
    "Embedding",
    "EmbeddingIndex",
    "IndexedEntry",
    "ProviderMode",
    "SearchHit",
    "SearchResponse",
]
