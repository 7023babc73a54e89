# Path: core/services.py
# Purpose: Wire catalog, asset fetcher, embedding provider, index store, builder, and pipeline together.
# Layer: core.
# Details: Shared by the HTTP API and the CLI scripts so both run the same object graph.

from __future__ import annotations

from dataclasses import dataclass

from config import AppSettings
from core.assets.fetcher import RemoteAssetFetcher
from core.catalog.store import CatalogStore
from core.embedders.provider import EmbeddingProvider, create_provider
from core.indexing.index_builder import IndexBuilder
from core.search.pipeline import SearchPipeline
from core.vector_store.json_store import JsonIndexStore


@dataclass
class Services:
    """Container for the long-lived objects of one process."""

    settings: AppSettings
    catalog: CatalogStore
    fetcher: RemoteAssetFetcher
    provider: EmbeddingProvider
    builder: IndexBuilder
    pipeline: SearchPipeline


def build_services(settings: AppSettings) -> Services:
    """Load the catalog and construct every service; raises CatalogLoadError if the catalog is unusable."""

    catalog = CatalogStore.load(settings.catalog_path)
    fetcher = RemoteAssetFetcher(
        public_root=settings.assets.public_root,
        remote_dir=settings.assets.remote_dir,
        timeout=settings.assets.fetch_timeout,
        user_agent=settings.assets.user_agent,
    )
    provider = create_provider(settings.embedder)
    builder = IndexBuilder(
        catalog=catalog,
        fetcher=fetcher,
        provider=provider,
        store=JsonIndexStore(settings.index.index_path),
        show_progress=settings.index.show_progress,
    )
    pipeline = SearchPipeline(
        catalog=catalog,
        builder=builder,
        provider=provider,
        uploads_dir=settings.uploads_dir,
        k=settings.index.top_k,
        sample_size=settings.index.sample_size,
    )
    return Services(
        settings=settings,
        catalog=catalog,
        fetcher=fetcher,
        provider=provider,
        builder=builder,
        pipeline=pipeline,
    )
