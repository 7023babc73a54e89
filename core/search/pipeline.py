# Path: core/search/pipeline.py
# Purpose: Orchestrate search-by-image by combining the index builder, embedding provider, and ranker.
# Layer: core/search.
# Details: Never fails a request: missing embeddings or an empty index yield a flagged, unranked catalog sample.

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from core.catalog.store import CatalogStore
from core.embedders.provider import EmbeddingProvider
from core.errors import EmbeddingError
from core.indexing.index_builder import IndexBuilder
from core.models.domain import Embedding, EmbeddingIndex, ProviderMode, SearchResponse

from .ranker import DEFAULT_TOP_K, rank

logger = logging.getLogger(__name__)

DEGRADED_WARNING = "Embeddings are not available; returning an unranked catalog sample."


class SearchPipeline:
    """High-level service bridging the HTTP layer with the embedding index."""

    def __init__(
        self,
        catalog: CatalogStore,
        builder: IndexBuilder,
        provider: EmbeddingProvider,
        uploads_dir: Path,
        k: int = DEFAULT_TOP_K,
        sample_size: int = DEFAULT_TOP_K,
    ) -> None:
        self.catalog = catalog
        self.builder = builder
        self.provider = provider
        self.uploads_dir = Path(uploads_dir)
        self.k = k
        self.sample_size = sample_size

    async def search_by_image(self, image_bytes: bytes, suffix: str = ".jpg", k: Optional[int] = None) -> SearchResponse:
        """
        Rank catalog images against an uploaded photo.

        External calls:
        - core/indexing/index_builder.py::IndexBuilder.build - lazily builds or reuses the index.
        - core/search/pipeline.py::SearchPipeline.embed_upload - embeds the transient upload.
        - core/search/ranker.py::rank - cosine ranking against the index.
        """

        index = await self._ensure_index()
        query = await self.embed_upload(image_bytes, suffix=suffix)

        if query is None or index.is_empty:
            logger.info("Returning degraded results (query embedded: %s, index size: %d).", query is not None, len(index))
            return self._degraded()

        if query.mode is not index.mode:
            logger.warning(
                "Query embedded in %s mode but index is %s; rebuilding index before ranking.",
                query.mode.value,
                index.mode.value if index.mode else "unknown",
            )
            index = await self._rebuild_index(query.mode)
            if index.is_empty or index.mode is not query.mode:
                return self._degraded()

        hits = rank(query, index, k=k or self.k)
        return SearchResponse(results=[hit.to_dict() for hit in hits], degraded=False)

    async def embed_upload(self, image_bytes: bytes, suffix: str = ".jpg") -> Optional[Embedding]:
        """Embed uploaded bytes through a temporary file that is always removed."""

        if not image_bytes:
            return None
        self.uploads_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.uploads_dir, prefix="upload-", suffix=suffix or ".jpg")
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(image_bytes)
            return await self.provider.embed(tmp_path)
        except EmbeddingError as exc:
            logger.warning("Could not embed uploaded image: %s", exc)
            return None
        finally:
            tmp_path.unlink(missing_ok=True)

    async def _ensure_index(self) -> EmbeddingIndex:
        try:
            return await self.builder.build()
        except Exception:  # noqa: BLE001 - a failed build degrades the response
            logger.exception("Embedding index build failed.")
            return EmbeddingIndex.empty()

    async def _rebuild_index(self, mode: ProviderMode) -> EmbeddingIndex:
        try:
            return await self.builder.rebuild(unless_mode=mode)
        except Exception:  # noqa: BLE001 - a failed build degrades the response
            logger.exception("Embedding index rebuild failed.")
            return EmbeddingIndex.empty()

    def _degraded(self) -> SearchResponse:
        sample = [item.to_dict() for item in self.catalog.sample(self.sample_size)]
        return SearchResponse(results=sample, degraded=True, warning=DEGRADED_WARNING)
