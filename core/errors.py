# Path: core/errors.py
# Purpose: Define the exception hierarchy shared by catalog, embedding, asset, and index layers.
# Layer: core.
# Details: Only catalog load failures are fatal; every other error is isolated by its caller.

from __future__ import annotations


class PartSearchError(Exception):
    """Base class for all errors raised by the part search core."""


class CatalogLoadError(PartSearchError):
    """The catalog could not be read or is malformed; the process must not start."""


class EmbeddingInitError(PartSearchError):
    """The primary encoder could not be initialized; the provider degrades to fallback."""


class EmbeddingError(PartSearchError):
    """A specific image could not be embedded by the active mode."""


class AssetResolutionError(PartSearchError):
    """An image reference could not be resolved to a local file."""


class IndexPersistenceError(PartSearchError):
    """The embedding index could not be written to or read from durable storage."""


class DimensionMismatchError(PartSearchError):
    """Two embeddings of unequal length or different provider modes were compared."""


__all__ = [
    "PartSearchError",
    "CatalogLoadError",
    "EmbeddingInitError",
    "EmbeddingError",
    "AssetResolutionError",
    "IndexPersistenceError",
    "DimensionMismatchError",
]
