# Path: config/__init__.py
# Purpose: Package initializer for configuration module.
# Layer: config.
# Details: Exposes settings models and logging setup for application-wide configuration.

from .settings import AppSettings, AssetSettings, EmbedderSettings, IndexSettings, configure_logging

__all__ = ["AppSettings", "AssetSettings", "EmbedderSettings", "IndexSettings", "configure_logging"]
