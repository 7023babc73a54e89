# Path: core/embedders/base.py
# Purpose: Define the Embedder interface for image embeddings.
# Layer: core/embedders.
# Details: Provides the abstract contract shared by the primary encoder and the offline fallback descriptor.

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

import numpy as np

from core.models.domain import ProviderMode


class Embedder(ABC):
    """Abstract base class for all image embedders used by the embedding provider."""

    name: str
    mode: ProviderMode

    @abstractmethod
    def embed_image(self, path: Path) -> np.ndarray:
        """Return a flat float32 embedding for the image stored at ``path``.

        Implementations raise :class:`core.errors.EmbeddingError` when the
        image cannot be read or decoded.
        """

    @staticmethod
    def _flatten(output) -> np.ndarray:
        """Reduce nested model output (e.g. a single-row matrix) to its first flat row."""

        vector = np.asarray(output, dtype=np.float32)
        while vector.ndim > 1:
            vector = vector[0]
        return vector.reshape(-1).astype(np.float32)
