"""Shared test fixtures."""

import json
from dataclasses import dataclass, field

import pytest

from nutrition_lookup.adapters.open_food_facts_client import CatalogClient
from nutrition_lookup.config import Settings
from nutrition_lookup.containers import AppContainer
from nutrition_lookup.domain.errors import CacheError
from nutrition_lookup.domain.nutrition import CacheEntry
from nutrition_lookup.services.cache import InMemoryNutritionCache, NutritionCache
from nutrition_lookup.services.nutrition import NutritionService
from nutrition_lookup.services.sources import (
    CatalogNutritionSource,
    TextGenerationClient,
)

BANANA_PRODUCT: dict[str, object] = {
    "code": "0000000004011",
    "product_name": "Banana",
    "brands": "Chiquita",
    "quantity": "118 g",
    "image_url": "https://images.example/banana.jpg",
    "categories": "Fruits, Bananas",
    "categories_tags": ["en:plant-based-foods", "en:fruits", "en:bananas"],
    "labels_tags": ["en:vegan", "en:vegetarian", "en:organic"],
    "nutriscore_grade": "a",
    "nutriments": {
        "energy": 89,
        "energy_unit": "kcal",
        "proteins": 1.3,
        "fat": 0.4,
        "carbohydrates": 27,
        "fiber": 3.1,
        "sugars": 14.4,
    },
}


@dataclass
class FakeCatalogClient(CatalogClient):
    """Fake catalog client with in-memory responses."""

    products: list[dict[str, object]] = field(
        default_factory=lambda: [dict(BANANA_PRODUCT)]
    )
    product_by_id: dict[str, dict[str, object]] = field(default_factory=dict)
    search_calls: list[str] = field(default_factory=list)
    product_calls: list[str] = field(default_factory=list)

    async def search_products(
        self, query: str, page_size: int = 5
    ) -> dict[str, object]:
        self.search_calls.append(query)
        return {"count": len(self.products), "products": self.products[:page_size]}

    async def get_product(self, product_id: str) -> dict[str, object] | None:
        self.product_calls.append(product_id)
        return self.product_by_id.get(product_id)


@dataclass
class FakeTextClient(TextGenerationClient):
    """Fake text generation client returning queued answers."""

    answers: dict[str, str] = field(default_factory=dict)
    default_answer: str = json.dumps({"isFood": False})
    prompts: list[str] = field(default_factory=list)

    async def generate(self, *, model: str, prompt: str, temperature: float) -> str:
        self.prompts.append(prompt)
        for term, answer in self.answers.items():
            if f'"{term}"' in prompt:
                return answer
        return self.default_answer


@dataclass
class FailingCache(NutritionCache):
    """Cache whose store is unreachable."""

    reads: int = 0
    writes: int = 0

    def get(self, key: str) -> CacheEntry | None:
        self.reads += 1
        raise CacheError("store unavailable")

    def get_by_product_id(self, product_id: str) -> CacheEntry | None:
        self.reads += 1
        raise CacheError("store unavailable")

    def upsert(self, entry: CacheEntry) -> None:
        self.writes += 1
        raise CacheError("store unavailable")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_key="header.payload.signature",
        openai_api_key="openai-key",
    )


@pytest.fixture
def catalog_client() -> FakeCatalogClient:
    return FakeCatalogClient()


@pytest.fixture
def cache() -> InMemoryNutritionCache:
    return InMemoryNutritionCache()


@pytest.fixture
def nutrition_service(
    catalog_client: FakeCatalogClient, cache: InMemoryNutritionCache
) -> NutritionService:
    return NutritionService(
        source=CatalogNutritionSource(client=catalog_client),
        cache=cache,
        catalog=catalog_client,
    )


@pytest.fixture
def container(settings: Settings, nutrition_service: NutritionService) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        nutrition_service=nutrition_service,
        close_resources=close_resources,
    )
