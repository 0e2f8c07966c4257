"""Crypto widget provider.

Data sources:
- CoinGecko API (free tier, no key)

Caching: 2 min live, 1 min demo.
"""
import re
from datetime import datetime, timezone
from typing import Any

from app.core.errors import InvalidInputError, UpstreamError
from app.models.widgets import CryptoData
from app.services.widgets.base import DETAIL_LEVELS, WidgetProvider, pick

_COIN_STRIP = re.compile(r"[^a-z0-9-]")
MAX_COIN_LENGTH = 50
CURRENCIES = ("usd", "eur", "gbp", "jpy", "btc", "eth")


def _round(value: Any, digits: int = 2) -> float | None:
    return round(value, digits) if isinstance(value, (int, float)) else None


class CryptoProvider(WidgetProvider):
    """Spot price and market data for one coin in one quote currency."""

    widget_type = "crypto"
    provider_name = "CoinGecko"

    COINGECKO_BASE = "https://api.coingecko.com/api/v3"

    # Rough USD anchors so demo prices look sane
    DEMO_BASE_PRICES = {
        "bitcoin": 65000.0,
        "ethereum": 3200.0,
        "solana": 150.0,
        "cardano": 0.45,
        "dogecoin": 0.12,
        "ripple": 0.55,
    }
    DEMO_FX = {"usd": 1.0, "eur": 0.92, "gbp": 0.79, "jpy": 150.0}

    def sanitize(self, params: dict[str, Any]) -> dict[str, str]:
        coin = params.get("coin") or "bitcoin"
        if len(coin) > MAX_COIN_LENGTH:
            raise InvalidInputError("Invalid coin parameter")
        coin = _COIN_STRIP.sub("", coin.strip().lower())
        if not coin:
            raise InvalidInputError("Invalid coin parameter")

        return {
            "coin": coin,
            "currency": pick(params.get("currency"), CURRENCIES, "currency", "usd"),
            "detail_level": pick(params.get("detailLevel"), DETAIL_LEVELS, "detailLevel", "compact"),
        }

    async def fetch_live(self, query: dict[str, str]) -> CryptoData:
        coin, currency = query["coin"], query["currency"]
        data = await self._get_json(
            f"{self.COINGECKO_BASE}/coins/{coin}",
            {
                "localization": "false",
                "tickers": "false",
                "community_data": "false",
                "developer_data": "false",
                "sparkline": "false",
            },
            headers={"Accept": "application/json"},
            not_found="Cryptocurrency not found",
        )

        try:
            market = data["market_data"]
            price = market["current_price"][currency]
            crypto = CryptoData(
                coin=coin,
                name=data.get("name"),
                symbol=(data.get("symbol") or "").upper() or None,
                rank=data.get("market_cap_rank"),
                price=price,
                change_24h=_round(market.get("price_change_percentage_24h")) or 0.0,
                market_cap=(market.get("market_cap") or {}).get(currency),
                volume_24h=(market.get("total_volume") or {}).get(currency),
                currency=currency,
                last_updated=market.get("last_updated") or datetime.now(timezone.utc).isoformat(),
            )
            if query["detail_level"] == "expanded":
                crypto.change_7d = _round(market.get("price_change_percentage_7d"))
                crypto.change_30d = _round(market.get("price_change_percentage_30d"))
                crypto.change_1y = _round(market.get("price_change_percentage_1y"))
                crypto.circulating_supply = market.get("circulating_supply")
                crypto.total_supply = market.get("total_supply")
                crypto.max_supply = market.get("max_supply")
                crypto.ath = (market.get("ath") or {}).get(currency)
                crypto.ath_change_percentage = _round((market.get("ath_change_percentage") or {}).get(currency))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise UpstreamError(f"Unexpected CoinGecko payload for {coin}: {e!r}") from e
        return crypto

    def generate_demo(self, query: dict[str, str]) -> CryptoData:
        rng = self._rng
        coin, currency = query["coin"], query["currency"]

        usd_price = self.DEMO_BASE_PRICES.get(coin, rng.uniform(0.5, 500.0))
        usd_price *= 1 + rng.uniform(-0.05, 0.05)
        if currency == "btc":
            price = usd_price / self.DEMO_BASE_PRICES["bitcoin"]
        elif currency == "eth":
            price = usd_price / self.DEMO_BASE_PRICES["ethereum"]
        else:
            price = usd_price * self.DEMO_FX[currency]

        supply = rng.uniform(1e7, 1e10)
        crypto = CryptoData(
            coin=coin,
            name=coin.replace("-", " ").title(),
            price=round(price, 8 if price < 1 else 2),
            change_24h=round(rng.uniform(-8, 8), 2),
            market_cap=round(price * supply, 2),
            volume_24h=round(price * supply * rng.uniform(0.01, 0.1), 2),
            currency=currency,
            last_updated=datetime.now(timezone.utc).isoformat(),
            demo=True,
        )
        if query["detail_level"] == "expanded":
            crypto.change_7d = round(rng.uniform(-15, 15), 2)
            crypto.change_30d = round(rng.uniform(-30, 30), 2)
            crypto.change_1y = round(rng.uniform(-60, 120), 2)
            crypto.circulating_supply = round(supply)
        return crypto
