"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    openai_api_key: str
    openai_analysis_model: str = "gpt-5.2"
    openai_search_model: str = "gpt-5-mini"
    openai_meal_plan_model: str = "gpt-5.2"
    openai_reasoning_effort: str | None = "medium"
    openai_store: bool = False
    open_food_facts_base_url: str = "https://world.openfoodfacts.org/api/v2"
    open_food_facts_user_agent: str = "HealthScanner/0.1"
    request_timeout_seconds: float = 30.0
    placeholder_image_url: str = "https://picsum.photos/300/200"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def normalize_client_id(raw: str | None) -> str:
    """Return a usable client id, falling back to the shared default."""
    if raw is None:
        return "default"
    cleaned = raw.strip()
    return cleaned or "default"
