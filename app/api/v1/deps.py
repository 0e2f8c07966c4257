"""Request-scoped dependencies."""
from fastapi import Request

from app.services.widgets.registry import WidgetServices


def get_services(request: Request) -> WidgetServices:
    """Widget services built for this app instance."""
    return request.app.state.services


def client_ip(request: Request) -> str:
    """Caller identity for per-client rate windows."""
    return request.client.host if request.client else "unknown"
