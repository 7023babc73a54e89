# Path: core/vector_store/json_store.py
# Purpose: Persist embedding indexes as a single JSON document.
# Layer: core/vector_store.
# Details: Writes go to a temporary sibling file and are renamed into place.

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
from pydantic import ValidationError

from core.errors import DimensionMismatchError, IndexPersistenceError
from core.models.domain import CatalogItem, EmbeddingIndex, IndexedEntry, ProviderMode

from .base import IndexStore

logger = logging.getLogger(__name__)


class JsonIndexStore(IndexStore):
    """Store an :class:`EmbeddingIndex` as ``{"provider_mode", "dim", "entries"}``.

    Each entry is the flattened catalog record plus ``image`` and
    ``embedding``. A bare JSON array of entries carries no stamp and is
    ignored, which forces a rebuild.
    """

    def __init__(self, path: Path, name: str = "json") -> None:
        self.path = Path(path)
        self.name = name

    def save(self, index: EmbeddingIndex) -> None:
        document = {
            "provider_mode": index.mode.value if index.mode else None,
            "dim": index.dim,
            "entries": [entry.to_dict() for entry in index],
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(document, handle, ensure_ascii=False, indent=2)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as exc:
            raise IndexPersistenceError(f"Cannot write embedding index {self.path}: {exc}") from exc
        logger.info("Saved %d embeddings to %s", len(index), self.path)

    def load(self) -> Optional[EmbeddingIndex]:
        if not self.path.exists():
            return None
        try:
            document = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise IndexPersistenceError(f"Cannot read embedding index {self.path}: {exc}") from exc

        if isinstance(document, list):
            logger.warning("Embedding index %s has no provider stamp; ignoring it.", self.path)
            return None
        if isinstance(document, dict):
            raw_mode = document.get("provider_mode")
            try:
                mode = ProviderMode(raw_mode) if raw_mode else None
            except ValueError as exc:
                raise IndexPersistenceError(f"Unknown provider mode {raw_mode!r} in {self.path}") from exc
            dim = document.get("dim")
            raw_entries = document.get("entries", [])
        else:
            raise IndexPersistenceError(f"Embedding index {self.path} has an unexpected layout.")

        entries = self._parse_entries(raw_entries)
        if entries and dim is None:
            dim = int(entries[0].embedding.shape[0])
        try:
            return EmbeddingIndex(entries=tuple(entries), mode=mode, dim=dim if entries else None)
        except DimensionMismatchError as exc:
            raise IndexPersistenceError(f"Embedding index {self.path} is inconsistent: {exc}") from exc

    def _parse_entries(self, raw_entries: Any) -> List[IndexedEntry]:
        if not isinstance(raw_entries, list):
            raise IndexPersistenceError(f"Embedding index {self.path} entries are not a list.")
        entries: List[IndexedEntry] = []
        for position, raw in enumerate(raw_entries):
            if not isinstance(raw, dict):
                raise IndexPersistenceError(f"Entry #{position} in {self.path} is not an object.")
            record: Dict[str, Any] = dict(raw)
            embedding = record.pop("embedding", None)
            image = record.get("image")
            if not embedding or not image:
                raise IndexPersistenceError(f"Entry #{position} in {self.path} lacks image or embedding.")
            try:
                item = CatalogItem.model_validate(record)
            except ValidationError as exc:
                raise IndexPersistenceError(f"Entry #{position} in {self.path} is invalid: {exc}") from exc
            entries.append(IndexedEntry(item=item, image=image, embedding=np.asarray(embedding, dtype=np.float32)))
        return entries

