# Path: core/embedders/provider.py
# Purpose: Coordinate the primary encoder and the fallback descriptor behind one embedding entrypoint.
# Layer: core/embedders.
# Details: Owns the per-instance EmbedderState; the first primary failure degrades the provider for good.

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional

from core.errors import EmbeddingError, EmbeddingInitError
from core.models.domain import EmbedderState, Embedding, ProviderMode

from .base import Embedder
from .fallback_embedder import GrayscaleBlockEmbedder

logger = logging.getLogger(__name__)

PrimaryFactory = Callable[[], Embedder]


class EmbeddingProvider:
    """Produce stamped embeddings, degrading from the primary encoder to the fallback.

    State transitions:
    - ``UNINITIALIZED -> PRIMARY`` when the primary factory succeeds.
    - ``UNINITIALIZED -> FALLBACK`` when there is no factory or it fails.
    - ``PRIMARY -> FALLBACK`` on the first per-image primary failure.

    ``FALLBACK`` is terminal: the primary encoder is never retried.
    """

    def __init__(
        self,
        primary_factory: Optional[PrimaryFactory] = None,
        fallback: Optional[Embedder] = None,
        timeout: Optional[float] = 60.0,
    ) -> None:
        self._primary_factory = primary_factory
        self._fallback = fallback or GrayscaleBlockEmbedder()
        self._timeout = timeout
        self._primary: Optional[Embedder] = None
        self._state = EmbedderState.UNINITIALIZED
        self._init_lock = asyncio.Lock()

    @property
    def state(self) -> EmbedderState:
        return self._state

    @property
    def mode(self) -> Optional[ProviderMode]:
        """Mode the next embedding will be produced in, or None before initialization."""

        if self._state is EmbedderState.PRIMARY:
            return ProviderMode.PRIMARY
        if self._state is EmbedderState.FALLBACK:
            return ProviderMode.FALLBACK
        return None

    async def initialize(self) -> EmbedderState:
        """Load the primary encoder once; failures switch the provider to fallback."""

        if self._state is not EmbedderState.UNINITIALIZED:
            return self._state

        async with self._init_lock:
            if self._state is not EmbedderState.UNINITIALIZED:
                return self._state

            if self._primary_factory is None:
                logger.info("No primary encoder configured; using fallback descriptor.")
                self._state = EmbedderState.FALLBACK
                return self._state

            try:
                self._primary = await self._run(self._primary_factory)
            except Exception as exc:  # noqa: BLE001 - init failure is a state change, not an error
                error = exc if isinstance(exc, EmbeddingInitError) else EmbeddingInitError(str(exc) or type(exc).__name__)
                logger.warning("Primary encoder unavailable (%s); switching to fallback descriptor.", error)
                self._primary = None
                self._state = EmbedderState.FALLBACK
            else:
                logger.info("Primary encoder %s initialized.", getattr(self._primary, "name", "primary"))
                self._state = EmbedderState.PRIMARY
        return self._state

    async def embed(self, path: Path) -> Embedding:
        """Embed one image file, raising :class:`EmbeddingError` if it cannot be embedded at all."""

        path = Path(path)
        if not path.exists():
            raise EmbeddingError(f"File not found: {path}")

        await self.initialize()

        if self._state is EmbedderState.PRIMARY and self._primary is not None:
            try:
                vector = await self._run(self._primary.embed_image, path)
                return Embedding(vector=vector, mode=ProviderMode.PRIMARY)
            except Exception as exc:  # noqa: BLE001 - any primary failure degrades the provider
                logger.warning("Primary encoder failed for %s (%s); degrading to fallback for this process.", path, exc)
                self._degrade()

        vector = await self._run(self._fallback.embed_image, path)
        return Embedding(vector=vector, mode=ProviderMode.FALLBACK)

    def _degrade(self) -> None:
        self._state = EmbedderState.FALLBACK
        self._primary = None

    async def _run(self, func, *args):
        """Run blocking work in a worker thread, bounded by the configured timeout."""

        call = asyncio.to_thread(func, *args)
        if self._timeout is None:
            return await call
        try:
            return await asyncio.wait_for(call, timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            raise EmbeddingError(f"{getattr(func, '__name__', 'call')} timed out after {self._timeout}s") from exc


def create_provider(settings) -> EmbeddingProvider:
    """Build a provider from :class:`config.EmbedderSettings`."""

    fallback = GrayscaleBlockEmbedder(size=settings.fallback_size, dims=settings.fallback_dims)
    factory: Optional[PrimaryFactory] = None
    if settings.primary_enabled:
        from .vit_embedder import ViTEmbedder

        def load_vit() -> Embedder:
            return ViTEmbedder(model_name=settings.model_name)

        factory = load_vit

    return EmbeddingProvider(primary_factory=factory, fallback=fallback, timeout=settings.inference_timeout)
