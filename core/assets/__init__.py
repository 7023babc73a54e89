# Path: core/assets/__init__.py
# Purpose: Package initializer for catalog asset resolution.
# Layer: core/assets.
# Details: Exposes the remote asset fetcher and its file naming helpers.

from .fetcher import RemoteAssetFetcher, is_remote, remote_filename

__all__ = ["RemoteAssetFetcher", "is_remote", "remote_filename"]
