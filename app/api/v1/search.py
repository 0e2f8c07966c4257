"""Search endpoints backing the widget configuration forms."""
from fastapi import APIRouter, Depends, Query

from app.api.v1.deps import client_ip, get_services
from app.services.widgets.registry import WidgetServices

router = APIRouter(prefix="/search", tags=["search"])


@router.get("/cities")
async def search_cities(
    q: str = Query(default="", description="At least 2 characters"),
    services: WidgetServices = Depends(get_services),
    client: str = Depends(client_ip),
):
    return {"data": await services.search.search_cities(q, client)}


@router.get("/crypto")
async def search_crypto(
    q: str = Query(default=""),
    services: WidgetServices = Depends(get_services),
    client: str = Depends(client_ip),
):
    return {"data": await services.search.search_crypto(q, client)}


@router.get("/stocks")
async def search_stocks(
    q: str = Query(default=""),
    services: WidgetServices = Depends(get_services),
    client: str = Depends(client_ip),
):
    return {"data": await services.search.search_stocks(q, client)}
