"""Stocks widget provider.

Data sources:
- Alpha Vantage GLOBAL_QUOTE (ALPHA_VANTAGE_API_KEY)
- Finnhub /quote as second source (FINNHUB_API_KEY)

Alpha Vantage's free tier allows 5 calls/minute, hence the tight limiter
rule and 5 min cache.
"""
import logging
import re
from datetime import date, datetime, timezone
from typing import Any

from app.core.errors import InvalidInputError, UpstreamError
from app.models.widgets import StockData
from app.services.widgets.base import DETAIL_LEVELS, WidgetProvider, pick

logger = logging.getLogger(__name__)

_SYMBOL_STRIP = re.compile(r"[^A-Z0-9.]")
MAX_SYMBOL_LENGTH = 10


class StocksProvider(WidgetProvider):
    """Latest quote for a ticker symbol."""

    widget_type = "stocks"
    provider_name = "Alpha Vantage"

    ALPHA_VANTAGE_URL = "https://www.alphavantage.co/query"
    FINNHUB_URL = "https://finnhub.io/api/v1/quote"

    def __init__(self, *, alpha_vantage_key: str = "", finnhub_key: str = "", **kwargs):
        super().__init__(**kwargs)
        self.alpha_vantage_key = alpha_vantage_key
        self.finnhub_key = finnhub_key

    def sanitize(self, params: dict[str, Any]) -> dict[str, str]:
        symbol = params.get("symbol") or "AAPL"
        if len(symbol) > MAX_SYMBOL_LENGTH:
            raise InvalidInputError("Invalid symbol parameter")
        symbol = _SYMBOL_STRIP.sub("", symbol.strip().upper())
        if not symbol:
            raise InvalidInputError("Invalid symbol parameter")

        return {
            "symbol": symbol,
            "detail_level": pick(params.get("detailLevel"), DETAIL_LEVELS, "detailLevel", "compact"),
        }

    def cache_params(self, query: dict[str, str]) -> dict[str, str]:
        # Both detail levels render the same quote
        return {"symbol": query["symbol"]}

    async def fetch_live(self, query: dict[str, str]) -> StockData:
        symbol = query["symbol"]
        errors = []

        if self.alpha_vantage_key:
            try:
                return await self._fetch_alpha_vantage(symbol)
            except UpstreamError as e:
                errors.append(str(e))
                logger.warning("Alpha Vantage failed for %s: %s", symbol, e)

        if self.finnhub_key:
            try:
                return await self._fetch_finnhub(symbol)
            except UpstreamError as e:
                errors.append(str(e))

        raise UpstreamError(f"No stock source answered for {symbol}", details={"errors": errors})

    async def _fetch_alpha_vantage(self, symbol: str) -> StockData:
        data = await self._get_json(
            self.ALPHA_VANTAGE_URL,
            {"function": "GLOBAL_QUOTE", "symbol": symbol, "apikey": self.alpha_vantage_key},
        )
        if not isinstance(data, dict):
            raise UpstreamError("Unexpected Alpha Vantage payload")

        if data.get("Error Message"):
            raise InvalidInputError("Invalid stock symbol", details={"symbol": symbol})
        if data.get("Note") or data.get("Information"):
            # Quota notices come back as HTTP 200
            raise UpstreamError("Alpha Vantage call frequency limit reached")

        quote = data.get("Global Quote") or {}
        if not quote.get("01. symbol"):
            raise UpstreamError(f"Alpha Vantage has no quote for {symbol}")

        try:
            return StockData(
                symbol=quote["01. symbol"],
                price=round(float(quote["05. price"]), 2),
                change=round(float(quote["09. change"]), 2),
                change_percent=round(float(quote["10. change percent"].rstrip("%")), 2),
                volume=int(quote.get("06. volume") or 0),
                previous_close=round(float(quote["08. previous close"]), 2),
                open=round(float(quote["02. open"]), 2),
                high=round(float(quote["03. high"]), 2),
                low=round(float(quote["04. low"]), 2),
                source="alphavantage",
                last_updated=quote.get("07. latest trading day"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamError(f"Unexpected Alpha Vantage quote for {symbol}: {e!r}") from e

    async def _fetch_finnhub(self, symbol: str) -> StockData:
        data = await self._get_json(
            self.FINNHUB_URL,
            {"symbol": symbol, "token": self.finnhub_key},
            source="Finnhub",
        )
        if not isinstance(data, dict):
            raise UpstreamError("Unexpected Finnhub payload")

        # Finnhub answers unknown symbols with an all-zero quote
        if not data.get("c"):
            raise UpstreamError(f"Finnhub has no quote for {symbol}")

        try:
            return StockData(
                symbol=symbol,
                price=round(float(data["c"]), 2),
                change=round(float(data.get("d") or 0), 2),
                change_percent=round(float(data.get("dp") or 0), 2),
                previous_close=round(float(data["pc"]), 2),
                open=data.get("o"),
                high=data.get("h"),
                low=data.get("l"),
                source="finnhub",
                last_updated=datetime.now(timezone.utc).isoformat(),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamError(f"Unexpected Finnhub quote for {symbol}: {e!r}") from e

    def generate_demo(self, query: dict[str, str]) -> StockData:
        rng = self._rng
        price = 150 + rng.random() * 200
        change_percent = (rng.random() - 0.5) * 8  # -4% .. +4%
        change = price * change_percent / 100

        return StockData(
            symbol=query["symbol"],
            price=round(price, 2),
            change=round(change, 2),
            change_percent=round(change_percent, 2),
            volume=rng.randint(1_000_000, 50_000_000),
            previous_close=round(price - change, 2),
            high=round(price + rng.random() * 10, 2),
            low=round(price - rng.random() * 10, 2),
            last_updated=date.today().isoformat(),
            demo=True,
        )
