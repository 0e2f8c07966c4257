"""ESP32 companion display endpoints."""
from fastapi import APIRouter, Depends, Path

from app.api.v1.deps import client_ip, get_services
from app.services.widgets.feed import build_device_feed
from app.services.widgets.registry import WidgetServices

router = APIRouter(prefix="/esp32", tags=["devices"])

DEVICE_ID_PATTERN = r"^[A-Za-z0-9_-]{1,64}$"


@router.get("")
async def get_anonymous_feed(
    services: WidgetServices = Depends(get_services),
    client: str = Depends(client_ip),
):
    """Widget feed for a device that did not identify itself."""
    return await build_device_feed(services, None, client)


@router.get("/{device_id}")
async def get_device_feed(
    device_id: str = Path(..., pattern=DEVICE_ID_PATTERN),
    services: WidgetServices = Depends(get_services),
    client: str = Depends(client_ip),
):
    """Flattened widget feed for one physical display."""
    return await build_device_feed(services, device_id, client)
