# Path: core/catalog/store.py
# Purpose: Load the parts catalog once and serve read-only lookups over it.
# Layer: core/catalog.
# Details: Catalog load failures are fatal; lookups never mutate the loaded records.

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence, Union

from pydantic import ValidationError

from core.errors import CatalogLoadError
from core.models.domain import CatalogItem

logger = logging.getLogger(__name__)

VIN_LENGTH = 17
VIN_RESULT_LIMIT = 12


class CatalogStore:
    """In-memory, immutable list of catalog records."""

    def __init__(self, items: Iterable[CatalogItem]) -> None:
        self._items: tuple[CatalogItem, ...] = tuple(items)
        self._by_id = {}
        for item in self._items:
            key = self._key(item.id)
            if key in self._by_id:
                raise CatalogLoadError(f"Duplicate catalog id: {item.id!r}")
            self._by_id[key] = item

    @classmethod
    def from_records(cls, records: Sequence[Any]) -> "CatalogStore":
        """Validate raw JSON-like records into a store."""

        items: List[CatalogItem] = []
        for position, record in enumerate(records):
            if not isinstance(record, dict):
                raise CatalogLoadError(f"Catalog record #{position} is not an object.")
            try:
                items.append(CatalogItem.model_validate(record))
            except ValidationError as exc:
                raise CatalogLoadError(f"Catalog record #{position} is invalid: {exc}") from exc
        return cls(items)

    @classmethod
    def load(cls, path: Path) -> "CatalogStore":
        """Read the catalog JSON array from disk, raising :class:`CatalogLoadError` on any problem."""

        try:
            raw = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise CatalogLoadError(f"Cannot read catalog {path}: {exc}") from exc
        try:
            records = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise CatalogLoadError(f"Catalog {path} is not valid JSON: {exc}") from exc
        if not isinstance(records, list):
            raise CatalogLoadError(f"Catalog {path} is not an array.")

        store = cls.from_records(records)
        logger.info("Loaded catalog %s: %d items", path, len(store))
        return store

    @property
    def items(self) -> tuple[CatalogItem, ...]:
        return self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    def get(self, item_id: Union[int, str]) -> Optional[CatalogItem]:
        return self._by_id.get(self._key(item_id))

    def query(self, text: str) -> List[CatalogItem]:
        """Case-insensitive substring match on name, brand, and OEM number."""

        needle = (text or "").strip().lower()
        if not needle:
            return list(self._items)
        return [item for item in self._items if self._matches(item, needle)]

    def lookup_vin(self, vin: str) -> List[CatalogItem]:
        """Return catalog items for a VIN.

        Anything that is not a full 17-character VIN is treated as a text
        query. A full VIN maps deterministically to a window of up to twelve
        items starting at a position derived from a rolling hash of the VIN.
        """

        normalized = (vin or "").strip().upper()
        if not normalized:
            raise ValueError("VIN required")
        if len(normalized) != VIN_LENGTH:
            return self.query(normalized)
        if not self._items:
            return []

        digest = 0
        for char in normalized:
            digest = (digest * 31 + ord(char)) & 0xFFFFFFFF
        start = digest % len(self._items)
        count = min(VIN_RESULT_LIMIT, len(self._items))
        return [self._items[(start + offset) % len(self._items)] for offset in range(count)]

    def sample(self, size: int) -> List[CatalogItem]:
        """Return the first ``size`` items, used for degraded responses."""

        return list(self._items[: max(0, size)])

    @staticmethod
    def _matches(item: CatalogItem, needle: str) -> bool:
        return any(value and needle in value.lower() for value in (item.name, item.brand, item.oem))

    @staticmethod
    def _key(item_id: Union[int, str]) -> str:
        # Numeric string ids from URLs must find integer ids from JSON.
        text = str(item_id).strip()
        try:
            return str(int(text))
        except ValueError:
            return text
