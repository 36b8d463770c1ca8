"""Nutrition domain models."""

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_TOTAL_WEIGHT_G = 100.0


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict[str, object]:
        """Return the JSON shape served to clients and stored in the cache."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class NutrientEntry(_CamelModel):
    """Quantity of a single nutrient."""

    label: str
    quantity: float
    unit: str


class NutritionRecord(_CamelModel):
    """Normalized result of a food lookup."""

    calories: float = 0.0
    total_weight: float = DEFAULT_TOTAL_WEIGHT_G
    diet_labels: list[str] = Field(default_factory=list)
    health_labels: list[str] = Field(default_factory=list)
    nutrients: dict[str, NutrientEntry] = Field(default_factory=dict)
    product_name: str | None = None
    brand: str | None = None
    image: str | None = None
    categories: str | None = None
    nutri_score: str | None = None
    product_id: str | None = None


class ProductSummary(_CamelModel):
    """Catalog search result shown before a product is selected."""

    id: str
    name: str
    brand: str | None = None
    image: str | None = None
    quantity: str | None = None
    categories: str | None = None
    nutri_score: str | None = None


@dataclass(frozen=True)
class CacheEntry:
    """Persisted lookup result keyed by normalized term."""

    key: str
    nutrition_data: NutritionRecord | None
    is_food: bool | None
    created_at: datetime
    product_id: str | None = None


def normalize_term(raw: str) -> str:
    """Lowercase and trim a search string into a cache key."""
    return raw.strip().lower()
