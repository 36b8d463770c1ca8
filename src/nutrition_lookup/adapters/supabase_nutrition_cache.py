"""Supabase-backed nutrition cache."""

from dataclasses import dataclass
from datetime import UTC, datetime

from pydantic import ValidationError
from supabase import Client

from nutrition_lookup.domain.errors import CacheError
from nutrition_lookup.domain.nutrition import CacheEntry, NutritionRecord
from nutrition_lookup.services.cache import NutritionCache

_COLUMNS = "food_name, product_id, nutrition_data, is_food, created_at"


@dataclass
class SupabaseNutritionCache(NutritionCache):
    """Supabase implementation of the nutrition cache table."""

    client: Client
    table_name: str = "nutrition_cache"

    def get(self, key: str) -> CacheEntry | None:
        """Return the row stored under a normalized term."""
        return self._select_one("food_name", key)

    def get_by_product_id(self, product_id: str) -> CacheEntry | None:
        """Return the row carrying a catalog product id."""
        return self._select_one("product_id", product_id)

    def upsert(self, entry: CacheEntry) -> None:
        """Insert or replace the row for the entry key."""
        payload = {
            "food_name": entry.key,
            "product_id": entry.product_id,
            "nutrition_data": (
                entry.nutrition_data.to_payload() if entry.nutrition_data else None
            ),
            "is_food": entry.is_food,
            "created_at": entry.created_at.isoformat(),
        }
        try:
            self.client.table(self.table_name).upsert(
                payload, on_conflict="food_name"
            ).execute()
        except Exception as exc:
            raise CacheError(f"Failed to write cache row {entry.key!r}") from exc

    def _select_one(self, column: str, value: str) -> CacheEntry | None:
        try:
            response = (
                self.client.table(self.table_name)
                .select(_COLUMNS)
                .eq(column, value)
                .order("created_at", desc=True)
                .limit(1)
                .execute()
            )
        except Exception as exc:
            raise CacheError(f"Failed to read cache row {column}={value!r}") from exc
        if not response.data:
            return None
        return _row_to_entry(response.data[0])


def _row_to_entry(row: dict[str, object]) -> CacheEntry:
    raw_data = row.get("nutrition_data")
    created_at = row.get("created_at")
    try:
        nutrition_data = (
            NutritionRecord.model_validate(raw_data) if raw_data is not None else None
        )
        created = (
            datetime.fromisoformat(created_at)
            if isinstance(created_at, str)
            else datetime.min.replace(tzinfo=UTC)
        )
    except (ValidationError, ValueError) as exc:
        raise CacheError(f"Malformed cache row {row.get('food_name')!r}") from exc
    return CacheEntry(
        key=str(row["food_name"]),
        nutrition_data=nutrition_data,
        is_food=row.get("is_food"),
        created_at=created,
        product_id=row.get("product_id"),
    )
