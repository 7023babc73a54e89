# Path: core/__init__.py
# Purpose: Package initializer for core application layer.
# Layer: core.
# Details: Aggregates subpackages for catalog, assets, embedders, index persistence, indexing, search, and models.
