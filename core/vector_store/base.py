# Path: core/vector_store/base.py
# Purpose: Define the IndexStore interface for persisting embedding indexes.
# Layer: core/vector_store.
# Details: Persistence is advisory; callers decide whether a loaded index may be trusted.

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from core.models.domain import EmbeddingIndex


class IndexStore(ABC):
    """Abstract base class for pluggable embedding index persistence backends."""

    name: str

    @abstractmethod
    def save(self, index: EmbeddingIndex) -> None:
        """Persist the index, raising :class:`core.errors.IndexPersistenceError` on failure."""

    @abstractmethod
    def load(self) -> Optional[EmbeddingIndex]:
        """Return the persisted index, or None when nothing has been persisted yet."""
