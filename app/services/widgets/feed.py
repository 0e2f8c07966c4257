"""Flattened widget feed for ESP32 companion displays."""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

from app.core.errors import RateLimitedError
from app.core.rate_limiting import API_LIMITS
from app.services.widgets.registry import WidgetServices
from app.services.widgets.tools import build_countdown

logger = logging.getLogger(__name__)

# What a device shows until per-device layouts exist. Cached widgets are
# served without charging provider windows; the esp32 window throttles devices.
DEVICE_WIDGETS = [
    ("weather", {"location": "New York", "units": "imperial"}),
    ("crypto", {"coin": "bitcoin", "currency": "usd"}),
    ("stocks", {"symbol": "AAPL"}),
]


async def build_device_feed(
    services: WidgetServices,
    device_id: str | None,
    client_ip: str,
) -> dict[str, Any]:
    """Collect the default widgets for one device, dropping any that fail."""
    client_id = f"esp32-{device_id or client_ip}"
    if services.limiter.check(f"esp32:{device_id or client_ip}", API_LIMITS["esp32"]):
        raise RateLimitedError("Rate limit exceeded")

    results = await asyncio.gather(
        *(
            services.provider(kind).get_data(params, client_id, cache_first=True)
            for kind, params in DEVICE_WIDGETS
        ),
        return_exceptions=True,
    )

    widgets = []
    for (kind, _), result in zip(DEVICE_WIDGETS, results):
        if isinstance(result, Exception):
            logger.warning("ESP32 feed dropped %s widget for %s: %s", kind, device_id, result)
            continue
        widgets.append({"type": kind, "data": result})
    widgets.append({"type": "countdown", "data": build_countdown({"title": "New Year"})})

    return {
        "deviceId": device_id or "unknown",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "widgets": widgets,
        "status": "success",
    }
