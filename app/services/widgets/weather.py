"""Weather widget provider.

Data sources:
- OpenWeather current conditions (requires OPENWEATHER_API_KEY)
- OpenWeather 5-day / 3-hour forecast for the expanded view

Caching: 5 min live, 1 min demo.
"""
import logging
import re
from datetime import datetime, timezone
from typing import Any

from app.core.errors import InvalidInputError, UpstreamError, WidgetError
from app.models.widgets import ForecastDay, WeatherData
from app.services.widgets.base import DETAIL_LEVELS, WidgetProvider, pick

logger = logging.getLogger(__name__)

# Letters (any script), digits, whitespace and , . ' -
_LOCATION_STRIP = re.compile(r"[^\w\s,.'-]|_", re.UNICODE)
MAX_LOCATION_LENGTH = 100
UNITS = ("imperial", "metric")


class WeatherProvider(WidgetProvider):
    """Current conditions plus an optional daily forecast."""

    widget_type = "weather"
    provider_name = "OpenWeather"

    BASE_URL = "https://api.openweathermap.org/data/2.5"
    DEMO_CONDITIONS = {
        "Clear": "clear sky",
        "Clouds": "scattered clouds",
        "Rain": "light rain",
        "Snow": "light snow",
        "Mist": "mist",
    }
    FORECAST_DAYS = 5

    def __init__(self, *, api_key: str = "", **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key

    def sanitize(self, params: dict[str, Any]) -> dict[str, str]:
        location = params.get("location") or "New York"
        if len(location) > MAX_LOCATION_LENGTH:
            raise InvalidInputError("Invalid location parameter")
        location = " ".join(_LOCATION_STRIP.sub("", location).split()).lower()
        if not location:
            raise InvalidInputError("Invalid location parameter")

        return {
            "location": location,
            "units": pick(params.get("units"), UNITS, "units", "imperial"),
            "detail_level": pick(params.get("detailLevel"), DETAIL_LEVELS, "detailLevel", "compact"),
        }

    async def fetch_live(self, query: dict[str, str]) -> WeatherData:
        params = {"q": query["location"], "units": query["units"], "appid": self.api_key}
        data = await self._get_json(f"{self.BASE_URL}/weather", params, not_found="Location not found")

        try:
            main = data["main"]
            condition = (data.get("weather") or [{}])[0]
            sys = data.get("sys") or {}
            wind = data.get("wind") or {}
            weather = WeatherData(
                location=data["name"],
                country=sys.get("country"),
                temp=round(main["temp"]),
                feels_like=main.get("feels_like"),
                condition=condition.get("main", "Unknown"),
                description=condition.get("description"),
                icon=condition.get("icon"),
                humidity=main["humidity"],
                pressure=main.get("pressure"),
                wind=round(wind.get("speed", 0)),
                wind_direction=wind.get("deg"),
                visibility=round(data["visibility"] / 1000) if data.get("visibility") else None,
                cloudiness=(data.get("clouds") or {}).get("all"),
                units=query["units"],
                last_updated=datetime.now(timezone.utc).isoformat(),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamError(f"Unexpected OpenWeather payload: {e!r}") from e

        if query["detail_level"] == "expanded":
            weather.forecast = await self._fetch_forecast(query)
        return weather

    async def _fetch_forecast(self, query: dict[str, str]) -> list[ForecastDay] | None:
        """Collapse 3-hourly forecast slots into one entry per day. Best effort."""
        params = {"q": query["location"], "units": query["units"], "appid": self.api_key}
        try:
            data = await self._get_json(f"{self.BASE_URL}/forecast", params)
            days: list[ForecastDay] = []
            seen = set()
            for item in data.get("list", [])[:40]:
                moment = datetime.fromtimestamp(item["dt"], tz=timezone.utc)
                day_key = moment.date()
                if day_key in seen:
                    continue
                seen.add(day_key)
                condition = item["weather"][0]
                days.append(ForecastDay(
                    date=moment.strftime("%a, %b %d"),
                    temp=item["main"]["temp"],
                    min=item["main"]["temp_min"],
                    max=item["main"]["temp_max"],
                    condition=condition["main"],
                    description=condition.get("description"),
                    icon=condition.get("icon"),
                ))
                if len(days) >= self.FORECAST_DAYS:
                    break
            return days
        except (
            WidgetError, AttributeError, KeyError, IndexError,
            TypeError, ValueError, OverflowError, OSError,
        ) as e:
            logger.warning("Forecast fetch failed for %s: %s", query["location"], e)
            return None

    def generate_demo(self, query: dict[str, str]) -> WeatherData:
        rng = self._rng
        condition = rng.choice(list(self.DEMO_CONDITIONS))
        metric = query["units"] == "metric"
        temp = rng.randint(7, 27) if metric else rng.randint(45, 80)

        forecast = None
        if query["detail_level"] == "expanded":
            forecast = []
            for offset in range(self.FORECAST_DAYS):
                day_condition = rng.choice(list(self.DEMO_CONDITIONS))
                day_temp = temp + rng.randint(-5, 5)
                forecast.append(ForecastDay(
                    date=f"Day {offset + 1}",
                    temp=day_temp,
                    min=day_temp - rng.randint(2, 6),
                    max=day_temp + rng.randint(2, 6),
                    condition=day_condition,
                    description=self.DEMO_CONDITIONS[day_condition],
                ))

        return WeatherData(
            location=query["location"].title(),
            temp=temp,
            condition=condition,
            description=self.DEMO_CONDITIONS[condition],
            humidity=rng.randint(30, 70),
            pressure=rng.randint(1000, 1050),
            wind=rng.randint(1, 10) if metric else rng.randint(2, 22),
            units=query["units"],
            forecast=forecast,
            last_updated=datetime.now(timezone.utc).isoformat(),
            demo=True,
        )
