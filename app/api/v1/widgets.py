"""Widget data endpoints consumed by the dashboard UI."""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.v1.deps import client_ip, get_services
from app.services.widgets.registry import WidgetServices
from app.services.widgets.tools import build_countdown, build_notes, build_todo

router = APIRouter(prefix="/widget", tags=["widgets"])


@router.get("/weather")
async def get_weather(
    location: Optional[str] = Query(default=None, description="City name, e.g. 'London' or 'Paris, FR'"),
    units: Optional[str] = Query(default=None, description="'imperial' (default) or 'metric'"),
    detail_level: Optional[str] = Query(default=None, alias="detailLevel"),
    services: WidgetServices = Depends(get_services),
    client: str = Depends(client_ip),
):
    """Current weather for a location; 'expanded' adds a 5-day forecast."""
    params = {"location": location, "units": units, "detailLevel": detail_level}
    return {"data": await services.provider("weather").get_data(params, client)}


@router.get("/crypto")
async def get_crypto(
    coin: Optional[str] = Query(default=None, description="CoinGecko coin id, e.g. 'bitcoin'"),
    currency: Optional[str] = Query(default=None, description="usd, eur, gbp, jpy, btc or eth"),
    detail_level: Optional[str] = Query(default=None, alias="detailLevel"),
    services: WidgetServices = Depends(get_services),
    client: str = Depends(client_ip),
):
    """Price and market data for one cryptocurrency."""
    params = {"coin": coin, "currency": currency, "detailLevel": detail_level}
    return {"data": await services.provider("crypto").get_data(params, client)}


@router.get("/stocks")
async def get_stocks(
    symbol: Optional[str] = Query(default=None, description="Ticker symbol, e.g. 'AAPL'"),
    detail_level: Optional[str] = Query(default=None, alias="detailLevel"),
    services: WidgetServices = Depends(get_services),
    client: str = Depends(client_ip),
):
    """Latest quote for a ticker."""
    params = {"symbol": symbol, "detailLevel": detail_level}
    return {"data": await services.provider("stocks").get_data(params, client)}


@router.get("/sports")
async def get_sports(
    league: Optional[str] = Query(default=None, description="nfl, nba, mlb, nhl or soccer"),
    teams: Optional[str] = Query(default=None, description="Comma-separated team names to follow"),
    services: WidgetServices = Depends(get_services),
    client: str = Depends(client_ip),
):
    """Scoreboard for a league."""
    params = {"league": league, "teams": teams}
    return {"data": await services.provider("sports").get_data(params, client)}


@router.get("/countdown")
async def get_countdown(
    title: Optional[str] = None,
    target_date: Optional[str] = Query(default=None, alias="targetDate"),
    timezone: Optional[str] = None,
    show_progress: Optional[str] = Query(default=None, alias="showProgress"),
    alert_days: Optional[str] = Query(default=None, alias="alertDays"),
):
    """Time left until a target date."""
    return {"data": build_countdown({
        "title": title,
        "targetDate": target_date,
        "timezone": timezone,
        "showProgress": show_progress,
        "alertDays": alert_days,
    })}


@router.get("/notes")
async def get_notes(
    title: Optional[str] = None,
    content: Optional[str] = None,
    font_size: Optional[str] = Query(default=None, alias="fontSize"),
    line_height: Optional[str] = Query(default=None, alias="lineHeight"),
    show_word_count: Optional[str] = Query(default=None, alias="showWordCount"),
    auto_save: Optional[str] = Query(default=None, alias="autoSave"),
):
    return {"data": build_notes({
        "title": title,
        "content": content,
        "fontSize": font_size,
        "lineHeight": line_height,
        "showWordCount": show_word_count,
        "autoSave": auto_save,
    })}


@router.get("/todo")
async def get_todo(
    title: Optional[str] = None,
    items: Optional[str] = Query(default=None, description="JSON array of todo items"),
    show_completed: Optional[str] = Query(default=None, alias="showCompleted"),
    max_items: Optional[str] = Query(default=None, alias="maxItems"),
    sort_by: Optional[str] = Query(default=None, alias="sortBy"),
    enable_priorities: Optional[str] = Query(default=None, alias="enablePriorities"),
):
    return {"data": build_todo({
        "title": title,
        "items": items,
        "showCompleted": show_completed,
        "maxItems": max_items,
        "sortBy": sort_by,
        "enablePriorities": enable_priorities,
    })}
