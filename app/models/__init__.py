"""Widget payload models."""
from app.models.widgets import (
    CryptoData,
    ForecastDay,
    Game,
    SportsData,
    StockData,
    WeatherData,
    WidgetPayload,
)

__all__ = [
    "WidgetPayload",
    "WeatherData",
    "ForecastDay",
    "CryptoData",
    "StockData",
    "SportsData",
    "Game",
]
