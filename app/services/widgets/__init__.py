"""Widget data providers."""
from app.services.widgets.base import WidgetProvider
from app.services.widgets.crypto import CryptoProvider
from app.services.widgets.registry import WidgetServices
from app.services.widgets.search import SearchService
from app.services.widgets.sports import SportsProvider
from app.services.widgets.stocks import StocksProvider
from app.services.widgets.weather import WeatherProvider

__all__ = [
    "WidgetProvider", "WidgetServices", "SearchService",
    "WeatherProvider", "CryptoProvider", "StocksProvider", "SportsProvider",
]
