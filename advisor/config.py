"""Application settings loaded from environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strongly typed application configuration."""

    environment: str = Field(default="development", alias="ENVIRONMENT")
    log_level: Literal["debug", "info", "warning", "error", "critical"] = Field(
        default="info", alias="LOG_LEVEL"
    )
    port: int = Field(default=8000, alias="PORT")
    provider_mode: Literal["static", "live"] = Field(
        default="static",
        alias="PROVIDER_MODE",
        description="Select fixture-backed or network-backed providers.",
    )

    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")
    openai_base_url: str = Field(
        default="https://api.openai.com/v1", alias="OPENAI_BASE_URL"
    )
    chat_model: str = Field(default="gpt-4o-mini", alias="CHAT_MODEL")
    arcgis_search_url: str = Field(
        default="https://www.arcgis.com/sharing/rest/search", alias="ARCGIS_SEARCH_URL"
    )
    arcgis_item_url: str = Field(
        default="https://www.arcgis.com/sharing/rest/content/items",
        alias="ARCGIS_ITEM_URL",
    )
    upstream_timeout: float = Field(
        default=10.0, gt=0, alias="UPSTREAM_TIMEOUT", description="Seconds"
    )

    max_message_length: int = Field(default=500, ge=1, alias="MAX_MESSAGE_LENGTH")
    min_query_length: int = Field(default=3, ge=1, alias="MIN_QUERY_LENGTH")
    default_search_limit: int = Field(default=20, ge=1, alias="DEFAULT_SEARCH_LIMIT")
    max_search_limit: int = Field(default=100, ge=1, alias="MAX_SEARCH_LIMIT")
    max_recommendations: int = Field(default=3, ge=1, alias="MAX_RECOMMENDATIONS")
    search_fallback_enabled: bool = Field(default=True, alias="SEARCH_FALLBACK_ENABLED")

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, frozen=True)


@lru_cache
def get_settings() -> Settings:
    """Return a cached instance of settings."""

    return Settings()
