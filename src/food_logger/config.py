"""Application configuration."""

import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from food_logger.services.clock import DEFAULT_TIMEZONE
from food_logger.services.resolver import AUTO_ACCEPT_THRESHOLD, CHOICES_THRESHOLD
from food_logger.services.scoring import DEFAULT_SOURCE_BIAS

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    openai_api_key: str | None = None
    parser_model: str = "gpt-4o-mini"
    mock_parser: bool = False
    off_base_url: str = "https://world.openfoodfacts.org"
    fdc_api_key: str | None = None
    fdc_base_url: str = "https://api.nal.usda.gov/fdc/v1"
    nutritionix_app_id: str | None = None
    nutritionix_api_key: str | None = None
    nutritionix_base_url: str = "https://trackapi.nutritionix.com/v2"
    provider_timeout_seconds: float = 15.0
    search_ttl_seconds: int = 3600
    pending_ttl_seconds: int = 3600
    source_bias: dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_SOURCE_BIAS)
    )
    auto_accept_threshold: float = AUTO_ACCEPT_THRESHOLD
    choices_threshold: float = CHOICES_THRESHOLD
    timezone: str = DEFAULT_TIMEZONE
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def has_fdc(self) -> bool:
        return bool(self.fdc_api_key)

    @property
    def has_nutritionix(self) -> bool:
        return bool(self.nutritionix_app_id and self.nutritionix_api_key)
