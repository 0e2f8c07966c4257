"""Application configuration with environment separation."""
from functools import lru_cache
from enum import Enum

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class ProviderMode(str, Enum):
    """Whether a provider talks to its real upstream or synthesizes data."""
    LIVE = "live"
    DEMO = "demo"


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Environment
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = Field(default=True, validate_default=True)
    log_level: str = Field(default="INFO")

    # App
    app_name: str = "Dashboard Widget API"
    version: str = "2.0.0"
    api_prefix: str = "/api"

    # Security - stored as comma-separated string in .env
    allowed_origins: str = Field(default="http://localhost:3000,http://localhost:5173")
    rate_limit_per_minute: int = Field(default=120)

    # External APIs - a missing key switches that provider to demo data
    openweather_api_key: str = Field(default="")
    alpha_vantage_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("alpha_vantage_api_key", "alphavantage_api_key"),
    )
    finnhub_api_key: str = Field(default="")
    offline_mode: bool = Field(default=False)  # Force every provider to demo data

    # Outbound fetches
    fetch_timeout_seconds: float = Field(default=8.0, gt=0)
    fetch_max_retries: int = Field(default=2, ge=1)

    # In-memory state housekeeping
    cache_sweep_interval_seconds: float = Field(default=600.0, gt=0)

    @field_validator("debug", mode="before")
    @classmethod
    def set_debug(cls, v, info):
        """Disable debug in production."""
        if info.data.get("environment") == Environment.PRODUCTION:
            return False
        return v

    @property
    def allowed_origins_list(self) -> list[str]:
        """Get allowed origins as list."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    def provider_modes(self) -> dict[str, ProviderMode]:
        """Decide once which providers run against live upstreams.

        CoinGecko and ESPN need no key, so they are live unless the whole
        server is pinned offline.
        """
        def mode(live: bool) -> ProviderMode:
            return ProviderMode.LIVE if live and not self.offline_mode else ProviderMode.DEMO

        return {
            "weather": mode(bool(self.openweather_api_key)),
            "crypto": mode(True),
            "stocks": mode(bool(self.alpha_vantage_api_key or self.finnhub_api_key)),
            "sports": mode(True),
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
