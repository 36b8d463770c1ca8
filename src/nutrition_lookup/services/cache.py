"""Nutrition cache abstractions."""

from dataclasses import dataclass
from typing import Protocol

from nutrition_lookup.domain.nutrition import CacheEntry


class NutritionCache(Protocol):
    """Persistent memoization of lookup results.

    Implementations raise CacheError when the store itself fails; a missing
    row is reported as None.
    """

    def get(self, key: str) -> CacheEntry | None:
        """Return the entry stored under a normalized term."""

    def get_by_product_id(self, product_id: str) -> CacheEntry | None:
        """Return the entry carrying a catalog product id."""

    def upsert(self, entry: CacheEntry) -> None:
        """Insert or replace the entry for its key."""


@dataclass
class InMemoryNutritionCache(NutritionCache):
    """In-memory cache used for local runs and tests."""

    _entries: dict[str, CacheEntry]

    def __init__(self) -> None:
        self._entries = {}

    def get(self, key: str) -> CacheEntry | None:
        """Return the entry for a key, if present."""
        return self._entries.get(key)

    def get_by_product_id(self, product_id: str) -> CacheEntry | None:
        """Return the most recent entry for a product id."""
        matches = [
            entry for entry in self._entries.values() if entry.product_id == product_id
        ]
        if not matches:
            return None
        return max(matches, key=lambda entry: entry.created_at)

    def upsert(self, entry: CacheEntry) -> None:
        """Store an entry, replacing any previous one for the key."""
        self._entries[entry.key] = entry

    def __len__(self) -> int:
        return len(self._entries)
