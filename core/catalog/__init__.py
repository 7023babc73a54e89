# Path: core/catalog/__init__.py
# Purpose: Package initializer for the catalog store.
# Layer: core/catalog.
# Details: Exposes the read-only catalog loaded at startup.

from .store import CatalogStore

__all__ = ["CatalogStore"]
