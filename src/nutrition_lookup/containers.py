"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from nutrition_lookup.adapters.open_food_facts_client import HttpxOpenFoodFactsClient
from nutrition_lookup.adapters.openai_text_client import OpenAITextClient
from nutrition_lookup.adapters.supabase_nutrition_cache import SupabaseNutritionCache
from nutrition_lookup.config import Settings
from nutrition_lookup.services.nutrition import NutritionService
from nutrition_lookup.services.sources import (
    CatalogNutritionSource,
    GenerativeNutritionSource,
    NutritionSource,
)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    nutrition_service: NutritionService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_key
    )
    cache = SupabaseNutritionCache(
        supabase_client, table_name=resolved_settings.cache_table
    )
    catalog_client = HttpxOpenFoodFactsClient.create(
        base_url=resolved_settings.off_base_url,
        user_agent=resolved_settings.off_user_agent,
        timeout_seconds=resolved_settings.off_timeout_seconds,
    )
    openai_client: OpenAITextClient | None = None
    source: NutritionSource
    if resolved_settings.nutrition_source == "generative":
        if not resolved_settings.openai_api_key:
            raise ValueError("OPENAI_API_KEY is required for the generative source")
        openai_client = OpenAITextClient.create(resolved_settings.openai_api_key)
        source = GenerativeNutritionSource(
            client=openai_client,
            model=resolved_settings.openai_model,
            temperature=resolved_settings.openai_temperature,
        )
    else:
        source = CatalogNutritionSource(
            client=catalog_client, page_size=resolved_settings.off_page_size
        )
    nutrition_service = NutritionService(
        source=source,
        cache=cache,
        catalog=catalog_client,
        debug=resolved_settings.debug,
        retry_attempts=resolved_settings.source_retry_attempts,
    )

    async def close_resources() -> None:
        await catalog_client.close()
        if openai_client is not None:
            await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        nutrition_service=nutrition_service,
        close_resources=close_resources,
    )
