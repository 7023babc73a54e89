# Path: core/embedders/__init__.py
# Purpose: Package initializer for embedder implementations and interfaces.
# Layer: core/embedders.
# Details: Exposes the base interface, both embedders, and the degrading provider.

from .base import Embedder
from .fallback_embedder import GrayscaleBlockEmbedder
from .provider import EmbeddingProvider, create_provider

__all__ = ["Embedder", "GrayscaleBlockEmbedder", "EmbeddingProvider", "create_provider"]
