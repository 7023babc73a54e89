# Path: core/models/domain.py
# Purpose: Define domain models shared across catalog, embedding, indexing, and search workflows.
# Layer: core/models.
# Details: Catalog records are validated pydantic models; everything derived from them is a lightweight dataclass.

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

import numpy as np
from pydantic import BaseModel, ConfigDict

from core.errors import AssetResolutionError, DimensionMismatchError


class CatalogItem(BaseModel):
    """Immutable catalog record describing a sellable part and its image references."""

    model_config = ConfigDict(frozen=True, extra="allow")

    id: Union[int, str]
    name: str
    brand: Optional[str] = None
    oem: Optional[str] = None
    price: Optional[Union[int, float, str]] = None
    currency: Optional[str] = None
    storage: Optional[str] = None
    supplierUrl: Optional[str] = None
    image: Optional[str] = None
    images: Optional[List[str]] = None

    def image_refs(self) -> List[str]:
        """Return the image references to index, preferring ``images`` over ``image``."""

        if self.images:
            return list(self.images)
        if self.image:
            return [self.image]
        return []

    def to_dict(self) -> Dict[str, Any]:
        """Return every field of the record, including unknown keys kept from the source."""

        return self.model_dump(exclude_none=True)


class ProviderMode(str, Enum):
    """Numeric family an embedding belongs to; vectors of different modes are never compared."""

    PRIMARY = "primary"
    FALLBACK = "fallback"


class EmbedderState(str, Enum):
    """Lifecycle of an embedding provider; ``FALLBACK`` is terminal."""

    UNINITIALIZED = "uninitialized"
    PRIMARY = "primary"
    FALLBACK = "fallback"


@dataclass(frozen=True, eq=False)
class Embedding:
    """Embedding vector stamped with the provider mode that produced it."""

    vector: np.ndarray
    mode: ProviderMode

    @property
    def dim(self) -> int:
        return int(self.vector.shape[0])

    def to_list(self) -> List[float]:
        return [float(x) for x in self.vector]


class AssetStatus(str, Enum):
    """Outcome of resolving an image reference to a local file."""

    LOCAL = "local"
    CACHED = "cached"
    DOWNLOADED = "downloaded"
    NOT_FOUND = "not_found"
    BAD_URL = "bad_url"
    HTTP_ERROR = "http_error"
    NETWORK_ERROR = "network_error"


@dataclass(frozen=True)
class AssetResolution:
    """Typed result of resolving a catalog image reference."""

    reference: str
    status: AssetStatus
    path: Optional[Path] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.path is not None and self.status in {AssetStatus.LOCAL, AssetStatus.CACHED, AssetStatus.DOWNLOADED}

    def unwrap(self) -> Path:
        """Return the local path or raise :class:`AssetResolutionError`."""

        if not self.ok or self.path is None:
            raise AssetResolutionError(f"{self.reference}: {self.status.value} {self.detail}".strip())
        return self.path


@dataclass(frozen=True, eq=False)
class IndexedEntry:
    """One embedded catalog image; an item with several images yields several entries."""

    item: CatalogItem
    image: str
    embedding: np.ndarray

    def to_dict(self) -> Dict[str, Any]:
        payload = self.item.to_dict()
        payload["image"] = self.image
        payload["embedding"] = [float(x) for x in self.embedding]
        return payload


@dataclass(frozen=True)
class EmbeddingIndex:
    """Ordered, single-mode collection of indexed entries.

    Every entry must share the stamped dimensionality; construction fails
    with :class:`DimensionMismatchError` otherwise. An empty index carries
    no stamp.
    """

    entries: Tuple[IndexedEntry, ...] = ()
    mode: Optional[ProviderMode] = None
    dim: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.entries:
            return
        if self.mode is None or self.dim is None:
            raise DimensionMismatchError("Non-empty embedding index requires a provider mode and dimensionality stamp.")
        for entry in self.entries:
            if entry.embedding.shape[0] != self.dim:
                raise DimensionMismatchError(
                    f"Entry {entry.item.id} ({entry.image}) has dimensionality {entry.embedding.shape[0]}, "
                    f"index is stamped {self.dim}."
                )

    @classmethod
    def empty(cls) -> "EmbeddingIndex":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[IndexedEntry]:
        return iter(self.entries)


@dataclass
class SearchHit:
    """Ranked match combining an indexed entry with its similarity score."""

    entry: IndexedEntry
    score: float

    def to_dict(self) -> Dict[str, Any]:
        payload = self.entry.item.to_dict()
        payload["image"] = self.entry.image
        payload["score"] = self.score
        return payload


@dataclass
class SearchResponse:
    """Search outcome; ``degraded`` marks an unranked catalog sample."""

    results: List[Dict[str, Any]] = field(default_factory=list)
    degraded: bool = False
    warning: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"results": self.results, "degraded": self.degraded}
        if self.warning:
            payload["warning"] = self.warning
        return payload
