"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

DEFAULT_REGIONS = ("us", "uk", "de", "fr", "es")


class Settings(BaseSettings):
    """Server settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    ai_gateway_api_key: str
    ai_gateway_base_url: str = "https://ai.gateway.lovable.dev/v1"
    ai_model: str = "google/gemini-2.5-flash"
    openfoodfacts_base_url: str = "https://world.openfoodfacts.org"
    openfoodfacts_regions: str | None = None
    http_timeout_seconds: float = 15.0
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


class ClientSettings(BaseSettings):
    """Settings for the capture client."""

    api_url: str = "http://localhost:8000"
    api_key: str | None = None
    confirm_delay_seconds: float = 1.5
    camera_index: int = 0
    http_timeout_seconds: float = 60.0

    model_config = SettingsConfigDict(
        env_prefix="NUTRISCAN_",
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_regions(raw: str | None) -> tuple[str, ...]:
    """Parse the Open Food Facts mirror list from env, keeping its order."""
    if raw is None:
        return DEFAULT_REGIONS
    cleaned = raw.strip()
    if cleaned in {"", "*"}:
        return DEFAULT_REGIONS
    regions: list[str] = []
    for chunk in cleaned.split(","):
        value = chunk.strip().lower()
        if not value or value in regions:
            continue
        if value.isalpha():
            regions.append(value)
    return tuple(regions) or DEFAULT_REGIONS
