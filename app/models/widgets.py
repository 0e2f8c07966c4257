"""Normalized widget payloads.

Every provider, live or demo, produces one of these models. They are
cached and served as camelCase dicts.
"""
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serializes snake_case fields as camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WidgetPayload(CamelModel):
    """Base for everything served under {"data": ...}."""

    demo: bool = False

    def to_response(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ForecastDay(CamelModel):
    date: str
    temp: float
    min: float
    max: float
    condition: str
    description: str | None = None
    icon: str | None = None


class WeatherData(WidgetPayload):
    location: str
    temp: float
    condition: str
    humidity: int
    wind: float
    units: str
    country: str | None = None
    description: str | None = None
    feels_like: float | None = None
    pressure: int | None = None
    icon: str | None = None
    wind_direction: int | None = None
    visibility: int | None = None  # km
    cloudiness: int | None = None
    forecast: list[ForecastDay] | None = None
    last_updated: str | None = None


class CryptoData(WidgetPayload):
    coin: str
    price: float
    change_24h: float = Field(alias="change24h")
    market_cap: float | None = None
    volume_24h: float | None = Field(default=None, alias="volume24h")
    currency: str
    name: str | None = None
    symbol: str | None = None
    rank: int | None = None
    # Expanded detail only
    change_7d: float | None = Field(default=None, alias="change7d")
    change_30d: float | None = Field(default=None, alias="change30d")
    change_1y: float | None = Field(default=None, alias="change1y")
    circulating_supply: float | None = None
    total_supply: float | None = None
    max_supply: float | None = None
    ath: float | None = None
    ath_change_percentage: float | None = None
    last_updated: str | None = None


class StockData(WidgetPayload):
    symbol: str
    price: float
    change: float
    change_percent: float
    volume: int | None = None
    previous_close: float
    open: float | None = None
    high: float | None = None
    low: float | None = None
    source: str | None = None
    last_updated: str | None = None


class Game(CamelModel):
    id: str
    home_team: str
    away_team: str
    home_score: int | None = None
    away_score: int | None = None
    status: str  # "Scheduled", "Live" or "Final"
    detail: str | None = None
    date: str


class SportsData(WidgetPayload):
    league: str
    games: list[Game]
    last_updated: str | None = None
