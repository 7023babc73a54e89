# Path: core/embedders/fallback_embedder.py
# Purpose: Provide the offline grayscale block-average descriptor.
# Layer: core/embedders.
# Details: Deterministic, model-free embedding used when the primary encoder is unavailable.

from __future__ import annotations

from pathlib import Path

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from core.errors import EmbeddingError
from core.models.domain import ProviderMode

from .base import Embedder


class GrayscaleBlockEmbedder(Embedder):
    """Downsample to a grayscale square and average contiguous pixel blocks.

    The image is cover-fitted (centered crop, Lanczos) to ``size`` x ``size``,
    alpha is dropped, and intensities are scaled to [0, 1]. The flat pixel
    sequence of length ``N`` is reduced to ``dims`` buckets with
    ``block = N // dims``: pixel ``i`` lands in bucket ``i // block`` (pixels
    whose bucket would be ``>= dims`` are dropped) and every bucket sum is
    divided by ``block`` regardless of how many pixels it received.
    """

    def __init__(self, size: int = 64, dims: int = 256) -> None:
        if size <= 0 or dims <= 0:
            raise ValueError("Fallback size and dims must be positive.")
        self.size = size
        self.dims = dims
        self.name = "grayscale-block"
        self.mode = ProviderMode.FALLBACK

    def embed_image(self, path: Path) -> np.ndarray:
        try:
            with Image.open(path) as img:
                img.load()
                pixels = self._grayscale_pixels(img)
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
            raise EmbeddingError(f"Cannot decode image {path}: {exc}") from exc
        return self.reduce(pixels, self.dims)

    def _grayscale_pixels(self, img: Image.Image) -> np.ndarray:
        rgb = img.convert("RGB")
        fitted = ImageOps.fit(rgb, (self.size, self.size), method=Image.Resampling.LANCZOS, centering=(0.5, 0.5))
        gray = fitted.convert("L")
        return np.asarray(gray, dtype=np.uint8).reshape(-1)

    @staticmethod
    def reduce(pixels: np.ndarray, dims: int) -> np.ndarray:
        """Reduce raw byte intensities to ``dims`` block averages."""

        values = pixels.astype(np.float64) / 255.0
        block = len(values) // dims or 1
        buckets = np.arange(len(values)) // block
        keep = buckets < dims
        sums = np.bincount(buckets[keep], weights=values[keep], minlength=dims)
        return (sums[:dims] / block).astype(np.float32)
