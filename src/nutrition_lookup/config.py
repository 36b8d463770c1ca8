"""Application configuration."""

import os
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_key: str
    cache_table: str = "nutrition_cache"
    nutrition_source: Literal["catalog", "generative"] = "catalog"
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o"
    openai_temperature: float = 0.2
    off_base_url: str = "https://world.openfoodfacts.org"
    off_user_agent: str = "nutrition-lookup/0.1"
    off_page_size: int = 5
    off_timeout_seconds: float = 15
    source_retry_attempts: int = 0
    debug: bool = False
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
