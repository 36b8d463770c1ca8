"""Nutrition resolution pipeline: denylist, cache, external source, cache write."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, TypeVar

from nutrition_lookup.adapters.open_food_facts_client import CatalogClient
from nutrition_lookup.domain.errors import (
    CacheError,
    NotFoodError,
    NotFoundError,
    QueryValidationError,
    UpstreamError,
)
from nutrition_lookup.domain.nutrition import (
    CacheEntry,
    NutritionRecord,
    ProductSummary,
    normalize_term,
)
from nutrition_lookup.services.cache import NutritionCache
from nutrition_lookup.services.nutrient_mapper import (
    map_to_nutrition_record,
    map_to_product_summary,
)
from nutrition_lookup.services.sources import NutritionSource, SourceResult

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

T = TypeVar("T")

NON_FOOD_TERMS = frozenset(
    {
        "car",
        "computer",
        "phone",
        "building",
        "house",
        "table",
        "chair",
        "desk",
        "television",
        "laptop",
        "keyboard",
        "mouse",
        "monitor",
        "window",
        "door",
        "shoe",
        "shirt",
        "pants",
        "dress",
        "hat",
        "glove",
        "sock",
        "watch",
        "clock",
        "camera",
        "book",
        "pen",
        "pencil",
        "paper",
        "notebook",
        "calculator",
    }
)

_logger = logging.getLogger(__name__)


@dataclass
class NutritionService:
    """Resolves food queries to nutrition records with a persistent cache."""

    source: NutritionSource
    cache: NutritionCache
    catalog: CatalogClient
    debug: bool = False
    retry_attempts: int = 0
    retry_delay_seconds: float = 0.3
    _inflight: "dict[str, asyncio.Future[NutritionRecord]]" = field(
        default_factory=dict, init=False, repr=False
    )

    async def resolve(self, raw_query: str) -> NutritionRecord:
        """Resolve a free-text food query."""
        term = normalize_term(raw_query)
        if not term:
            raise QueryValidationError("Query parameter is required")
        if term in NON_FOOD_TERMS:
            raise NotFoodError(term)
        return await self._single_flight(
            f"name:{term}", lambda: self._resolve_term(term)
        )

    async def resolve_product(self, product_id: str) -> NutritionRecord:
        """Resolve a catalog product by its code."""
        product_id = product_id.strip()
        if not product_id:
            raise QueryValidationError("Product id is required")
        return await self._single_flight(
            f"product:{product_id}", lambda: self._resolve_product(product_id)
        )

    async def search_products(
        self, raw_query: str, limit: int = 5
    ) -> list[ProductSummary]:
        """List catalog candidates for a query without resolving them."""
        term = normalize_term(raw_query)
        if not term:
            raise QueryValidationError("Query parameter is required")
        payload = await self._call_with_retry(
            lambda: self.catalog.search_products(term, page_size=limit),
            action="search_products",
        )
        products = payload.get("products")
        if not isinstance(products, list):
            return []
        results = [
            map_to_product_summary(product)
            for product in products
            if isinstance(product, dict)
        ]
        if self.debug:
            _logger.info("Catalog search: query=%s results=%s", term, len(results))
        return results

    async def _resolve_term(self, term: str) -> NutritionRecord:
        entry = self._read_cache(lambda: self.cache.get(term), term)
        if entry is not None:
            if entry.is_food is False:
                raise NotFoodError(term)
            if entry.nutrition_data is not None:
                if self.debug:
                    _logger.info("Nutrition cache hit: term=%s", term)
                return entry.nutrition_data

        result: SourceResult = await self._call_with_retry(
            lambda: self.source.lookup(term), action=f"lookup:{term}"
        )
        if not result.is_food or result.record is None:
            self._write_cache(CacheEntry(term, None, False, datetime.now(tz=UTC)))
            raise NotFoodError(term)

        self._write_cache(
            CacheEntry(
                key=term,
                nutrition_data=result.record,
                is_food=True,
                created_at=datetime.now(tz=UTC),
                product_id=result.product_id,
            )
        )
        return result.record

    async def _resolve_product(self, product_id: str) -> NutritionRecord:
        entry = self._read_cache(
            lambda: self.cache.get_by_product_id(product_id), product_id
        )
        if entry is not None and entry.nutrition_data is not None:
            return entry.nutrition_data

        product = await self._call_with_retry(
            lambda: self.catalog.get_product(product_id),
            action=f"get_product:{product_id}",
        )
        if product is None:
            raise NotFoundError(product_id)
        record = map_to_nutrition_record(product)
        record.product_id = record.product_id or product_id
        key = normalize_term(record.product_name or "") or product_id
        self._write_cache(
            CacheEntry(
                key=key,
                nutrition_data=record,
                is_food=True,
                created_at=datetime.now(tz=UTC),
                product_id=product_id,
            )
        )
        return record

    def _read_cache(
        self, read: "Callable[[], CacheEntry | None]", key: str
    ) -> CacheEntry | None:
        """Read from the cache, treating store failures as a miss."""
        try:
            entry = read()
        except CacheError:
            _logger.warning("Nutrition cache read failed: key=%s", key, exc_info=True)
            return None
        if entry is None and self.debug:
            _logger.info("Nutrition cache miss: key=%s", key)
        return entry

    def _write_cache(self, entry: CacheEntry) -> None:
        """Persist an entry; failures never reach the caller."""
        try:
            self.cache.upsert(entry)
        except CacheError:
            _logger.warning(
                "Nutrition cache write failed: key=%s", entry.key, exc_info=True
            )

    async def _single_flight(
        self, key: str, factory: "Callable[[], Awaitable[NutritionRecord]]"
    ) -> NutritionRecord:
        """Share one in-flight resolution between concurrent identical calls."""
        task = self._inflight.get(key)
        if task is None or task.done():
            task = asyncio.ensure_future(factory())
            self._inflight[key] = task
            task.add_done_callback(lambda _: self._forget(key, task))
        return await asyncio.shield(task)

    def _forget(self, key: str, task: "asyncio.Future[NutritionRecord]") -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        # Mark the outcome retrieved even when every waiter was cancelled.
        if not task.cancelled():
            task.exception()

    async def _call_with_retry(
        self, func: "Callable[[], Awaitable[T]]", *, action: str
    ) -> T:
        """Call the external source, retrying upstream failures if configured."""
        attempt = 0
        while True:
            try:
                return await func()
            except UpstreamError as exc:
                attempt += 1
                _logger.warning(
                    "Nutrition %s failed (attempt %s/%s, status=%s): %s",
                    action,
                    attempt,
                    self.retry_attempts + 1,
                    exc.status_code or "n/a",
                    exc,
                )
                if attempt > self.retry_attempts:
                    raise
                await asyncio.sleep(self.retry_delay_seconds)
