"""Tests for settings loading."""

from nutrition_lookup.config import Settings


def test_settings_read_environment(monkeypatch) -> None:
    monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.co")
    monkeypatch.setenv("SUPABASE_KEY", "anon-key")
    monkeypatch.setenv("NUTRITION_SOURCE", "generative")
    monkeypatch.setenv("SOURCE_RETRY_ATTEMPTS", "2")

    settings = Settings()

    assert settings.supabase_url == "https://project.supabase.co"
    assert settings.nutrition_source == "generative"
    assert settings.source_retry_attempts == 2
    assert settings.cache_table == "nutrition_cache"
    assert settings.openai_temperature == 0.2
