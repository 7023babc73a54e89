# Path: core/indexing/index_builder.py
# Purpose: Build the embedding index for the catalog and keep it for the process lifetime.
# Layer: core/indexing.
# Details: Coordinates asset resolution, embedding, and persistence with per-image failure isolation.

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from tqdm import tqdm

from core.assets.fetcher import RemoteAssetFetcher
from core.catalog.store import CatalogStore
from core.embedders.provider import EmbeddingProvider
from core.errors import DimensionMismatchError, EmbeddingError, IndexPersistenceError
from core.models.domain import Embedding, EmbeddingIndex, IndexedEntry, ProviderMode
from core.vector_store.base import IndexStore

logger = logging.getLogger(__name__)


class IndexBuilder:
    """Embed every catalog image once and publish a single-mode index."""

    def __init__(
        self,
        catalog: CatalogStore,
        fetcher: RemoteAssetFetcher,
        provider: EmbeddingProvider,
        store: Optional[IndexStore] = None,
        show_progress: bool = True,
    ) -> None:
        self.catalog = catalog
        self.fetcher = fetcher
        self.provider = provider
        self.store = store
        self.show_progress = show_progress
        self._index: Optional[EmbeddingIndex] = None
        self._lock = asyncio.Lock()

    @property
    def index(self) -> Optional[EmbeddingIndex]:
        """The in-memory index, or None until a build or warm start has completed."""

        return self._index

    def invalidate(self) -> None:
        """Drop the in-memory index so the next :meth:`build` starts over."""

        self._index = None

    async def build(self) -> EmbeddingIndex:
        """
        Return the index, building it on first use.

        Concurrent callers share one build: the first one runs it, the rest
        wait on the lock and receive the published index.

        External calls:
        - core/assets/fetcher.py::RemoteAssetFetcher.resolve - turns image references into local files.
        - core/embedders/provider.py::EmbeddingProvider.embed - computes one embedding per image.
        - core/vector_store/json_store.py::JsonIndexStore.save - best-effort persistence.
        """

        if self._index is not None:
            return self._index
        async with self._lock:
            if self._index is None:
                self._index = await self._build()
                await self._persist(self._index)
            return self._index

    async def rebuild(self, unless_mode: Optional[ProviderMode] = None) -> EmbeddingIndex:
        """
        Discard the current index and build a fresh one.

        With ``unless_mode`` set, an index already stamped with that mode is
        kept, so callers racing to replace a stale index trigger one build.
        """

        async with self._lock:
            current = self._index
            if unless_mode is not None and current is not None and current.mode is unless_mode:
                return current
            self._index = None
            self._index = await self._build()
            await self._persist(self._index)
            return self._index

    async def warm_start(self) -> bool:
        """Adopt the persisted index if its stamp matches the provider's current mode."""

        if self.store is None or self._index is not None:
            return self._index is not None
        try:
            persisted = await asyncio.to_thread(self.store.load)
        except IndexPersistenceError as exc:
            logger.warning("Ignoring persisted embedding index: %s", exc)
            return False
        if persisted is None or persisted.is_empty:
            return False

        await self.provider.initialize()
        if persisted.mode is not self.provider.mode:
            logger.warning(
                "Persisted embedding index was built in %s mode but provider runs in %s mode; rebuilding.",
                persisted.mode.value if persisted.mode else "unknown",
                self.provider.mode.value if self.provider.mode else "unknown",
            )
            return False

        async with self._lock:
            if self._index is None:
                self._index = persisted
                logger.info("Loaded %d persisted embeddings (%s, dim=%s).", len(persisted), persisted.mode.value, persisted.dim)
        return True

    async def _build(self) -> EmbeddingIndex:
        logger.info("Generating embeddings for %d catalog items...", len(self.catalog))
        await self.provider.initialize()

        entries = await self._embed_catalog()
        if self._mode_drifted(entries):
            # Provider degraded mid-pass; fallback is terminal so one more pass is single-mode.
            logger.warning(
                "Provider mode changed during indexing; re-embedding the catalog in %s mode.",
                self.provider.mode.value if self.provider.mode else "unknown",
            )
            entries = await self._embed_catalog()
            if self._mode_drifted(entries):
                raise DimensionMismatchError("Embedding provider changed mode twice during indexing.")

        if not entries:
            logger.warning("No catalog image could be embedded; the index is empty.")
            return EmbeddingIndex.empty()

        mode = entries[0][0]
        dim = int(entries[0][1].embedding.shape[0])
        index = EmbeddingIndex(entries=tuple(entry for _, entry in entries), mode=mode, dim=dim)
        logger.info("Index ready: %d embeddings, mode=%s, dim=%d.", len(index), mode.value, dim)
        return index

    def _mode_drifted(self, entries: List[tuple[ProviderMode, IndexedEntry]]) -> bool:
        modes = {mode for mode, _ in entries}
        return len(modes) > 1 or (len(modes) == 1 and self.provider.mode not in modes)

    async def _embed_catalog(self) -> List[tuple[ProviderMode, IndexedEntry]]:
        results: List[tuple[ProviderMode, IndexedEntry]] = []
        for item in tqdm(self.catalog.items, desc="Indexing catalog", unit="item", disable=not self.show_progress):
            for reference in item.image_refs():
                entry = await self._embed_reference(item, reference)
                if entry is not None:
                    results.append(entry)
        return results

    async def _embed_reference(self, item, reference: str) -> Optional[tuple[ProviderMode, IndexedEntry]]:
        """Embed one image of one item; every failure is logged and skipped."""

        try:
            return await self._embed_resolved(item, reference)
        except EmbeddingError as exc:
            logger.warning("Skipping image %s of item %s: %s", reference, item.id, exc)
        except Exception:  # noqa: BLE001 - one bad image never stops the build
            logger.exception("Unexpected failure on image %s of item %s; skipping.", reference, item.id)
        return None

    async def _embed_resolved(self, item, reference: str) -> Optional[tuple[ProviderMode, IndexedEntry]]:
        resolution = await self.fetcher.resolve(reference)
        if not resolution.ok or resolution.path is None or not resolution.path.exists():
            logger.info("Skipping image %s of item %s: %s %s", reference, item.id, resolution.status.value, resolution.detail)
            return None

        embedding: Embedding = await self.provider.embed(resolution.path)

        if embedding.dim == 0:
            logger.warning("Empty embedding for item %s image %s; skipping.", item.id, reference)
            return None

        record = item.model_copy(update={"image": reference})
        logger.debug("Embedded item %s image %s (dim=%d).", item.id, reference, embedding.dim)
        return embedding.mode, IndexedEntry(item=record, image=reference, embedding=embedding.vector)

    async def _persist(self, index: EmbeddingIndex) -> None:
        if self.store is None:
            return
        try:
            await asyncio.to_thread(self.store.save, index)
        except IndexPersistenceError as exc:
            logger.warning("Could not persist embedding index: %s", exc)
