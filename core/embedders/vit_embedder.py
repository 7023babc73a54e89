# Path: core/embedders/vit_embedder.py
# Purpose: Provide the primary neural encoder backed by a pretrained vision transformer.
# Layer: core/embedders.
# Details: Loads a transformers image-feature-extraction pipeline; heavy imports happen at construction time only.

from __future__ import annotations

from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from core.errors import EmbeddingError, EmbeddingInitError
from core.models.domain import ProviderMode

from .base import Embedder


class ViTEmbedder(Embedder):
    """Primary encoder returning the CLS-token features of a ViT model."""

    def __init__(self, model_name: str = "google/vit-base-patch16-224", device: str = "cpu") -> None:
        self.model_name = model_name
        self.device = device
        self.name = "vit"
        self.mode = ProviderMode.PRIMARY

        try:
            from transformers import pipeline  # type: ignore[import]
        except ImportError as exc:  # pragma: no cover - optional runtime dependency
            raise EmbeddingInitError("transformers package is required for the ViT encoder.") from exc

        try:
            self._extractor = pipeline("image-feature-extraction", model=model_name, device=device)
        except Exception as exc:  # noqa: BLE001 - any load failure degrades the provider
            raise EmbeddingInitError(f"Cannot load {model_name}: {exc}") from exc

    def embed_image(self, path: Path) -> np.ndarray:
        try:
            with Image.open(path) as img:
                rgb = img.convert("RGB")
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
            raise EmbeddingError(f"Cannot decode image {path}: {exc}") from exc

        output = self._extractor(rgb)
        vector = self._flatten(output)
        if vector.size == 0:
            raise EmbeddingError(f"Encoder returned an empty embedding for {path}.")
        return vector
