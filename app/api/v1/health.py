"""Health check endpoints."""
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from app.api.v1.deps import get_services
from app.services.widgets.registry import WidgetServices

router = APIRouter()


@router.get("/health")
async def health_check(services: WidgetServices = Depends(get_services)):
    """Provider modes and in-memory state sizes."""
    settings = services.settings
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.version,
        "environment": settings.environment.value,
        "providers": {name: mode.value for name, mode in services.modes.items()},
        "cache": {
            "entries": len(services.cache),
            "rateLimitEntries": len(services.limiter),
        },
        "uptime": round(time.time() - services.started_at, 3),
    }
