# Path: core/indexing/__init__.py
# Purpose: Package initializer for indexing utilities.
# Layer: core/indexing.
# Details: Exposes the catalog index builder.

from .index_builder import IndexBuilder

__all__ = ["IndexBuilder"]
