# Path: core/vector_store/__init__.py
# Purpose: Package initializer for embedding index persistence.
# Layer: core/vector_store.
# Details: Exposes the base store contract and the JSON file implementation.

from .base import IndexStore
from .json_store import JsonIndexStore

__all__ = ["IndexStore", "JsonIndexStore"]
